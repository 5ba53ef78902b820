# Health command - show server health, job counts and resource usage

from datetime import datetime

import httpx
import typer
from rich.table import Table

from .common import console


def show_server_health(server_url: str):
    """
    Display server health: job counts, compression slots and resource usage.
    """
    console.print("[bold blue]🔍 ReelPress Server Health[/bold blue]")
    console.print(f"[dim]Generated at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}[/dim]")
    console.print()

    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.get(f"{server_url}/api/health")
            response.raise_for_status()
            health_data = response.json()
    except httpx.TimeoutException:
        console.print("[red]❌ Server timeout - may be unreachable[/red]")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]❌ Server error: {e.response.status_code}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]❌ Failed to get server health: {str(e)}[/red]")
        raise typer.Exit(1)

    status = health_data.get('status', 'unknown')
    if status == 'healthy':
        status_display = "[green]✅ Healthy[/green]"
    elif status == 'degraded':
        status_display = "[yellow]⚠️  Degraded[/yellow]"
    else:
        status_display = "[red]❌ Unhealthy[/red]"

    server_table = Table(title="🚀 Server Status", show_header=False, box=None)
    server_table.add_row("Status", status_display)
    if 'uptime' in health_data:
        server_table.add_row("Uptime", f"{health_data['uptime']:.0f}s")
    for issue in health_data.get('issues') or []:
        server_table.add_row("Issue", f"[yellow]{issue}[/yellow]")
    console.print(server_table)

    jobs = health_data.get('jobs')
    if jobs:
        jobs_table = Table(title="🎬 Jobs", show_header=False, box=None)
        jobs_table.add_row("Active", f"{jobs['active']}/{jobs['limit']}")
        for name, count in jobs['by_status'].items():
            jobs_table.add_row(name.capitalize(), str(count))
        jobs_table.add_row("Files (uploads/outputs)", f"{jobs['uploads']}/{jobs['outputs']}")
        console.print(jobs_table)

    process = health_data.get('process')
    if process:
        proc_table = Table(title="🧠 Process", show_header=False, box=None)
        proc_table.add_row("Memory (RSS)", f"{process['memory_rss_mb']} MB")
        proc_table.add_row("CPU", f"{process['cpu_percent']:.1f}%")
        console.print(proc_table)


def show_presets(server_url: str):
    """Display the quality presets the server accepts"""
    try:
        with httpx.Client(timeout=10.0) as client:
            response = client.get(f"{server_url}/api/presets")
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPError as e:
        console.print(f"[red]❌ Failed to get presets: {str(e)}[/red]")
        raise typer.Exit(1)

    table = Table(title="🎚️  Quality Presets")
    table.add_column("Key", style="cyan")
    table.add_column("Video", style="green")
    table.add_column("Audio", style="green")
    table.add_column("CRF", justify="right")
    table.add_column("Description", style="dim")

    default = data.get("default")
    for preset in data.get("presets", []):
        key = preset["key"]
        if key == default:
            key = f"{key} (default)"
        table.add_row(
            key,
            preset.get("video_bitrate") or "source",
            preset["audio_bitrate"],
            str(preset["crf"]),
            preset["description"],
        )
    console.print(table)
