# Download command - fetch the compressed video of a completed job

import re
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import httpx
import typer
from rich.progress import BarColumn, DownloadColumn, Progress, TimeRemainingColumn, TransferSpeedColumn

from .common import console, error_message

FILENAME_PATTERN = re.compile(r"filename\*?=(?:utf-8'')?\"?([^\";]+)\"?", re.IGNORECASE)


def filename_from_disposition(header: Optional[str], fallback: str) -> str:
    """Extract the suggested filename from a Content-Disposition header"""
    if header:
        match = FILENAME_PATTERN.search(header)
        if match:
            return Path(unquote(match.group(1))).name
    return fallback


def download_video(job_id: str, server_url: str, output_path: Optional[str] = None) -> Path:
    """
    Download a compressed video

    Args:
        job_id: Completed job to download
        server_url: Base URL of the server
        output_path: Target file; defaults to the server-suggested name in the current directory

    Returns:
        Path: Where the file was saved
    """
    console.print(f"[yellow]📥 Downloading job {job_id}...[/yellow]")
    output_file: Optional[Path] = None

    try:
        with httpx.Client(timeout=7200.0) as client:
            with client.stream("GET", f"{server_url}/api/download/{job_id}") as response:
                if response.status_code != 200:
                    response.read()
                    console.print(f"[red]❌ {error_message(response)}[/red]")
                    raise typer.Exit(1)

                suggested = filename_from_disposition(
                    response.headers.get("content-disposition"), f"compressed-{job_id}.mp4"
                )
                output_file = Path(output_path) if output_path else Path.cwd() / suggested
                total_size = int(response.headers.get("content-length", 0)) or None

                with Progress(
                    BarColumn(),
                    "[progress.percentage]{task.percentage:>3.0f}%",
                    DownloadColumn(),
                    TransferSpeedColumn(),
                    TimeRemainingColumn(),
                    console=console
                ) as progress:
                    task = progress.add_task("Downloading...", total=total_size)
                    with open(output_file, "wb") as f:
                        for chunk in response.iter_bytes(chunk_size=1024 * 1024):
                            f.write(chunk)
                            progress.update(task, advance=len(chunk))

    except httpx.TimeoutException:
        console.print("[red]❌ Download timeout[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]❌ Download failed: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Download interrupted by user.[/yellow]")
        if output_file is not None and output_file.exists():
            output_file.unlink()
            console.print(f"[yellow]Cleaned up partial file: {output_file}[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Download complete![/green] Saved to {output_file.absolute()}")
    return output_file
