# Shared helpers for CLI commands - console, size formatting, error extraction

from typing import Optional

from rich.console import Console

console = Console()

STATUS_STYLES = {
    "uploaded": "[blue]uploaded[/blue]",
    "processing": "[yellow]processing[/yellow]",
    "completed": "[green]completed[/green]",
    "failed": "[red]failed[/red]",
}


def format_size(size_bytes: Optional[int]) -> str:
    """Format bytes to human readable size"""
    if size_bytes is None:
        return "-"
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def styled_status(status: str) -> str:
    return STATUS_STYLES.get(status, f"[dim]{status}[/dim]")


def error_message(response) -> str:
    """Pull the server's error text out of a failed response"""
    try:
        data = response.json()
    except ValueError:
        return response.text or f"Server returned {response.status_code}"
    return data.get("error") or data.get("detail") or f"Server returned {response.status_code}"
