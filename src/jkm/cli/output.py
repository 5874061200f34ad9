"""Output routing for CLI commands.

user_output: human-readable messages, written to stderr
machine_output: structured data (JSON), written to stdout

Keeping the streams separate lets `jkm list --format json | jq` work while
progress messages still reach the terminal.
"""

from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text


def user_output(message: Any = "", nl: bool = True) -> None:
    """Write a human-readable message to stderr."""
    click.echo(message, nl=nl, err=True)


def machine_output(message: Any = "", nl: bool = True) -> None:
    """Write machine-readable data to stdout."""
    click.echo(message, nl=nl)


def stderr_console() -> Console:
    return Console(stderr=True)


def format_batch_summary(title: str, rows: list[tuple[str, bool, str]]) -> Panel:
    """Format a summary box for a batch of per-kernel results.

    Args:
        title: Panel title (e.g. "Setup")
        rows: (kernel name, success, message) per attempted kernel

    Returns:
        Rich Panel with one line per kernel and an overall count
    """
    overall_success = all(ok for _, ok, _ in rows)

    lines: list[Text] = []
    for name, ok, message in rows:
        marker = "✓" if ok else "✗"
        style = "green" if ok else "red"
        lines.append(Text(f"{marker} {name}: {message}", style=style))

    succeeded = sum(1 for _, ok, _ in rows if ok)
    lines.append(Text(""))
    lines.append(Text(f"{succeeded}/{len(rows)} succeeded", style="bold"))

    content = Text("\n").join(lines)
    status = "Complete" if overall_success else "Finished with errors"
    return Panel(
        content,
        title=f"{title} {status}",
        border_style="green" if overall_success else "red",
        padding=(1, 2),
    )
