# ReelPress command-line client - Typer app wiring every server operation

import os
from typing import Optional

import requests
import typer
from dotenv import load_dotenv

from .commands.common import console
from .commands.download import download_video
from .commands.jobs import delete_job, list_jobs, show_status, start_compression
from .commands.status import show_presets, show_server_health
from .commands.upload import upload_video

load_dotenv()

app = typer.Typer(help="ReelPress CLI - compress videos on a ReelPress server", no_args_is_help=True)

DEFAULT_SERVER_URL = "http://localhost:5000"


def get_server_url() -> str:
    """
    Auto-detect best server URL.
    Priority: REELPRESS_SERVER_URL > REELPRESS_LOCAL_URL (if reachable) > REELPRESS_REMOTE_URL
    """
    explicit_url = os.getenv("REELPRESS_SERVER_URL")
    if explicit_url:
        return explicit_url.rstrip("/")

    local_url = os.getenv("REELPRESS_LOCAL_URL")
    remote_url = os.getenv("REELPRESS_REMOTE_URL")

    if local_url and not remote_url:
        return local_url.rstrip("/")
    if remote_url and not local_url:
        return remote_url.rstrip("/")

    # Both configured: prefer local when it answers quickly
    if local_url and remote_url:
        try:
            response = requests.get(f"{local_url}/api/ping", timeout=1.5)
            if response.status_code == 200:
                console.print("[dim]🏠 Using LOCAL server[/dim]")
                return local_url.rstrip("/")
        except requests.RequestException:
            pass
        console.print("[dim]🌐 Using REMOTE server[/dim]")
        return remote_url.rstrip("/")

    return DEFAULT_SERVER_URL


@app.command()
def ping():
    """Connectivity check to the server."""
    server_url = get_server_url()
    console.print(f"[yellow]📡 Contacting ReelPress server at {server_url}...[/yellow]")
    try:
        r = requests.get(f"{server_url}/api/ping", timeout=5)
    except requests.RequestException as e:
        console.print(f"[bold red]❌ Connection Failed:[/bold red] {e}")
        raise typer.Exit(1)

    if r.status_code == 200:
        console.print("[bold green]🏓 PONG![/bold green] Server is alive.")
    else:
        console.print(f"[yellow]⚠️ Server responded with status: {r.status_code}[/yellow]")
        raise typer.Exit(1)


@app.command()
def upload(
    file_path: str = typer.Argument(..., help="Path to the video to upload"),
    resolution: str = typer.Option("1080p", "--resolution", "-r", help="Target preset: 720p, 1080p or original"),
    compress: bool = typer.Option(False, "--compress", "-c", help="Start compression right after the upload"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Follow progress until the job finishes (with --compress)"),
):
    """
    Upload a video and register it for compression.
    """
    server_url = get_server_url()
    job_id = upload_video(file_path, resolution, server_url)
    if compress:
        start_compression(job_id, server_url, watch=watch)


@app.command()
def compress(
    job_id: str = typer.Argument(..., help="Job ID returned by upload"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Follow progress until the job finishes"),
):
    """
    Start compressing an uploaded video.
    """
    start_compression(job_id, get_server_url(), watch=watch)


@app.command()
def status(
    job_id: str = typer.Argument(..., help="Job ID to inspect"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep polling until the job finishes"),
):
    """
    Show the status and progress of a job.
    """
    show_status(job_id, get_server_url(), watch=watch)


@app.command()
def jobs(
    status_filter: Optional[str] = typer.Option(None, "--status", "-s", help="Only show jobs in this status"),
):
    """
    List all jobs on the server, most recent first.
    """
    list_jobs(get_server_url(), status=status_filter)


@app.command()
def download(
    job_id: str = typer.Argument(..., help="Completed job to download"),
    output_path: Optional[str] = typer.Option(None, "--output", "-o", help="Output file path (defaults to the server-suggested name)"),
):
    """
    Download the compressed video of a completed job.
    """
    download_video(job_id, get_server_url(), output_path)


@app.command()
def delete(
    job_id: str = typer.Argument(..., help="Job to remove"),
):
    """
    Delete a job and its files. A running compression is cancelled.
    """
    delete_job(job_id, get_server_url())


@app.command()
def health():
    """
    Display server health, job counts and resource usage.
    """
    show_server_health(get_server_url())


@app.command()
def presets():
    """
    List the available quality presets.
    """
    show_presets(get_server_url())


def main():
    app()


if __name__ == "__main__":
    main()
