"""Shared utility functions for the Vibe Coding Wizard core.

Provides name helpers, duration formatting, and Rich-based console
reporting.  Everything that prints goes through the module-level ``console``
so tests and embedding UIs can swap a single object.
"""

from __future__ import annotations

import re

from rich.console import Console
from rich.table import Table
from rich.tree import Tree

console = Console()

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary display name to a safe file-name stem.

    * Lowercases the input.
    * Replaces spaces, underscores and other non-alphanumeric characters
      (except hyphens) with hyphens.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("GENERATE_APP_OR_SCRIPT") -> "generate-app-or-script"
        sanitize_name("  Order Entry (v2)  ") -> "order-entry-v2"
    """
    result = re.sub(r"[^a-zA-Z0-9-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def normalize_key(name: str | None) -> str:
    """Return the comparison key used for case-insensitive name checks."""
    return (name or "").strip().casefold()


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


def format_command(command: list[str] | tuple[str, ...]) -> str:
    """Join an argument vector for display (not for shell execution)."""
    return " ".join(command)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_tree(tree: Tree) -> None:
    """Print a pre-built Rich tree followed by a blank line."""
    console.print(tree)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
