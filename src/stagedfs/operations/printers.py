"""
Human-readable output formatting.

Centralizes all CLI output formatting so commands only decide what to show.
"""
from __future__ import annotations

from rich.console import Console
from rich.table import Table

from .facade import ObjectSummary

_console = Console()
_err_console = Console(stderr=True)


def _format_bytes(size: int) -> str:
    """Format byte count as human readable string."""
    value = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if value < 1024.0:
            return f"{value:.1f} {unit}" if unit != "B" else f"{size} B"
        value /= 1024.0
    return f"{value:.1f} PB"


def print_write_summary(action: str, summary: ObjectSummary) -> None:
    """
    Print summary of a command that committed an object.

    Args:
        action: Verb shown to the user ("Wrote", "Appended", ...)
        summary: Outcome of the command
    """
    _console.print(
        f"[bold]{action}[/] {_format_bytes(summary.transferred)} to [cyan]{summary.uri}[/] "
        f"[dim](now {_format_bytes(summary.size)})[/]"
    )


def print_truncate_summary(summary: ObjectSummary) -> None:
    if summary.transferred:
        _console.print(
            f"[bold]Truncated[/] [cyan]{summary.uri}[/] to {_format_bytes(summary.size)} "
            f"[dim](dropped {_format_bytes(summary.transferred)})[/]"
        )
    else:
        _console.print(f"[cyan]{summary.uri}[/] already {_format_bytes(summary.size)}; unchanged")


def print_remove_summary(summary: ObjectSummary) -> None:
    _console.print(f"[bold]Removed[/] [cyan]{summary.uri}[/] [dim]({_format_bytes(summary.size)})[/]")


def print_stat(summary: ObjectSummary, verbose: bool = False) -> None:
    """
    Print object metadata as a table.

    Args:
        summary: Stat result
        verbose: Also show the exact byte count
    """
    table = Table(title=summary.uri, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", style="cyan")
    table.add_row("Size", _format_bytes(summary.size))
    if verbose:
        table.add_row("Bytes", str(summary.size))
    table.add_row("Content type", summary.content_type or "unknown")
    _console.print(table)


def print_cat_summary(summary: ObjectSummary) -> None:
    """Report bytes written by cat on stderr, keeping stdout to object content."""
    _err_console.print(f"[dim]{summary.uri}: {_format_bytes(summary.transferred)}[/]")
