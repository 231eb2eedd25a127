"""Rich console output utilities for h5pforge-cli.

This module provides formatted console output with Rich,
supporting colored success/error/warning messages and
respecting NO_COLOR environment variable.
"""

from __future__ import annotations

from collections.abc import Sequence
import os
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Rich automatically respects NO_COLOR, but we also support --no-color flag
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(force_terminal=force_terminal, no_color=no_color or _force_no_color)


# Default console instance
console = create_console()


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with green checkmark.

    Example:
        >>> success("Compiled photosynthesis.h5p")
        ✓ Compiled photosynthesis.h5p
    """
    console.print(f"[green]✓[/green] {message}", soft_wrap=True, **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X.

    Example:
        >>> error("ValidationError: Invalid content at chapters[0].content[0]")
        ✗ ValidationError: Invalid content at chapters[0].content[0]
    """
    console.print(f"[red]✗[/red] {escape(message)}", soft_wrap=True, **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning message with yellow triangle."""
    console.print(f"[yellow]⚠[/yellow] {escape(message)}", soft_wrap=True, **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print an informational message."""
    console.print(message, soft_wrap=True, **kwargs)


def table(title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    """Print rows as a Rich table.

    Example:
        >>> table("Cached libraries", ["Library", "Version"], [["H5P.Image", "1.1"]])
    """
    rich_table = Table(title=title)
    for column in columns:
        rich_table.add_column(column)
    for row in rows:
        rich_table.add_row(*row)
    console.print(rich_table)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable/disable colors.

    Note:
        This updates the module-level console instance.
    """
    global console
    console = create_console(no_color=no_color)
