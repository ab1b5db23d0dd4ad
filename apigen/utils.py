"""Shared utility functions for apigen.

Provides schema-document loading for the CLI and Rich-based console output
helpers.
"""

from __future__ import annotations

import re
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Schema document loading
# ---------------------------------------------------------------------------


def read_schema_argument(argument: str) -> str:
    """Return the schema JSON text designated by a CLI argument.

    ``@path`` always reads the file at *path*; a bare argument that names an
    existing file is read too.  Anything else is returned unchanged and
    treated as inline JSON.

    Raises:
        FileNotFoundError: If an ``@path`` argument names a missing file.
    """
    if argument.startswith("@"):
        return Path(argument[1:]).read_text(encoding="utf-8")
    if not argument.lstrip().startswith(("{", "[")):
        candidate = Path(argument)
        if candidate.is_file():
            return candidate.read_text(encoding="utf-8")
    return argument


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary identifier to a safe directory-name fragment.

    * Lowercases the input.
    * Replaces characters other than letters, digits, hyphens and
      underscores with hyphens.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("My Shop") -> "my-shop"
        sanitize_name("  v2 (beta)  ") -> "v2-beta"
    """
    result = re.sub(r"[^a-zA-Z0-9_-]", "-", name.strip().lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


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
        table.add_row(escape(key), escape(str(value)))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")
