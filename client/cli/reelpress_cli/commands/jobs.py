# Job commands - start compression, check status, list jobs, delete jobs

import time
from typing import Optional

import httpx
import requests
import typer
from rich.panel import Panel
from rich.table import Table

from .common import console, error_message, format_size, styled_status

POLL_INTERVAL = 2.0


def start_compression(job_id: str, server_url: str, watch: bool = False):
    """
    Ask the server to start compressing an uploaded video

    Args:
        job_id: ID returned by the upload command
        server_url: Base URL of the server
        watch: Keep polling until the job finishes
    """
    console.print(f"[cyan]Requesting compression for job {job_id}...[/cyan]")

    try:
        response = requests.post(f"{server_url}/api/compress/{job_id}", timeout=30)
    except requests.exceptions.Timeout:
        console.print("[red]Error: Request timed out[/red]")
        raise typer.Exit(1)
    except requests.exceptions.ConnectionError:
        console.print(f"[red]Error: Cannot connect to server at {server_url}[/red]")
        raise typer.Exit(1)

    if response.status_code == 200:
        console.print("[green]Compression started![/green]")
        if watch:
            show_status(job_id, server_url, watch=True)
        else:
            console.print(f"[dim]Use 'reelpress status {job_id} --watch' to follow progress[/dim]")
        return

    if response.status_code == 429:
        data = response.json()
        console.print(
            f"[yellow]Server busy: {data.get('active_jobs')}/{data.get('limit')} compressions running. "
            "Try again in a moment.[/yellow]"
        )
    else:
        console.print(f"[red]Error: {error_message(response)}[/red]")
    raise typer.Exit(1)


def _render_job(job: dict):
    lines = [
        f"[bold]{job['input_file']}[/bold]",
        f"Status: {styled_status(job['status'])}",
        f"Resolution: {job['resolution']}",
        f"Progress: {job['progress']}%",
        f"Original size: {format_size(job['original_size'])}",
    ]
    if job["status"] == "completed":
        lines.append(f"Compressed size: {format_size(job['compressed_size'])}")
        lines.append(f"Saved: {job['compression_ratio']}% in {job['processing_time']}s")
    if job.get("error"):
        lines.append(f"[red]Error: {job['error']}[/red]")
    console.print(Panel("\n".join(lines), title=f"Job {job['id']}"))


def show_status(job_id: str, server_url: str, watch: bool = False):
    """
    Show the status of one job

    Args:
        job_id: Job to inspect
        server_url: Base URL of the server
        watch: Poll until the job leaves processing
    """
    def fetch() -> Optional[dict]:
        try:
            response = requests.get(f"{server_url}/api/status/{job_id}", timeout=10)
        except requests.exceptions.RequestException as e:
            console.print(f"[red]Error: {e}[/red]")
            return None
        if response.status_code == 404:
            console.print(f"[red]Error: Job {job_id} not found[/red]")
            return None
        if response.status_code != 200:
            console.print(f"[red]Error: {error_message(response)}[/red]")
            return None
        return response.json()

    job = fetch()
    if job is None:
        raise typer.Exit(1)

    if not watch:
        _render_job(job)
        return

    console.print("[dim]Watching for updates... Press Ctrl+C to stop[/dim]\n")
    try:
        while job is not None and job["status"] == "processing":
            console.print(f"[yellow]⏳ {job['progress']}%[/yellow]")
            time.sleep(POLL_INTERVAL)
            job = fetch()
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped watching[/dim]")
        return

    if job is not None:
        _render_job(job)


def list_jobs(server_url: str, status: Optional[str] = None):
    """
    List all jobs known to the server

    Args:
        server_url: Base URL of the server
        status: Only show jobs with this status
    """
    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.get(f"{server_url}/api/jobs")
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error: Server returned {e.response.status_code}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    jobs = response.json()
    if status:
        jobs = [job for job in jobs if job["status"] == status]

    if not jobs:
        console.print("[dim]No jobs found[/dim]")
        return

    table = Table(title=f"Compression Jobs ({len(jobs)} total)")
    table.add_column("Job ID", style="cyan", no_wrap=True)
    table.add_column("Filename")
    table.add_column("Resolution", style="magenta")
    table.add_column("Status", style="bold")
    table.add_column("Progress", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Saved", justify="right")

    for job in jobs:
        filename = job['input_file'][:25] + "..." if len(job['input_file']) > 25 else job['input_file']
        table.add_row(
            job["id"],
            filename,
            job["resolution"],
            styled_status(job["status"]),
            f"{job['progress']}%",
            format_size(job["compressed_size"] or job["original_size"]),
            f"{job['compression_ratio']}%" if job.get("compression_ratio") else "-",
        )

    console.print(table)


def delete_job(job_id: str, server_url: str):
    """
    Delete a job and its files on the server

    Args:
        job_id: Job to delete
        server_url: Base URL of the server
    """
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.delete(f"{server_url}/api/cleanup/{job_id}")
    except httpx.HTTPError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if response.status_code == 200:
        console.print(f"[green]Job {job_id} deleted[/green]")
    elif response.status_code == 404:
        console.print(f"[red]Error: Job {job_id} not found[/red]")
        raise typer.Exit(1)
    else:
        console.print(f"[red]Error: {error_message(response)}[/red]")
        raise typer.Exit(1)
