# Upload command - send a video to the server and register a compression job

import mimetypes
from pathlib import Path

import httpx
import typer

from .common import console, error_message, format_size


def upload_video(file_path: str, resolution: str, server_url: str) -> str:
    """
    Upload a video file

    Args:
        file_path: Local path of the video
        resolution: Target preset (720p, 1080p, original)
        server_url: Base URL of the server

    Returns:
        str: The new job ID
    """
    path = Path(file_path)
    if not path.is_file():
        console.print(f"[red]❌ File not found: {file_path}[/red]")
        raise typer.Exit(1)

    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    size = path.stat().st_size
    console.print(f"[yellow]📤 Uploading {path.name} ({format_size(size)}) for {resolution}...[/yellow]")

    try:
        with open(path, "rb") as f, httpx.Client(timeout=600.0) as client:
            response = client.post(
                f"{server_url}/api/upload",
                files={"video": (path.name, f, content_type)},
                data={"resolution": resolution},
            )
    except httpx.TimeoutException:
        console.print("[red]❌ Upload timed out[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]❌ Cannot connect to server at {server_url}: {e}[/red]")
        raise typer.Exit(1)

    if response.status_code != 200:
        console.print(f"[red]❌ Upload failed: {error_message(response)}[/red]")
        raise typer.Exit(1)

    data = response.json()
    console.print(f"[green]✅ Uploaded![/green] Job ID: [cyan]{data['job_id']}[/cyan]")
    console.print(f"[dim]Use 'reelpress compress {data['job_id']}' to start compression[/dim]")
    return data["job_id"]
