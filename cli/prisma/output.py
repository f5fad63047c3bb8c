"""Rich console output utilities for the PRISMA CLI."""

from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()
error_console = Console(stderr=True)

# Top-level fields shown as scalars in the summary table
SCALAR_FIELDS = [
    "id",
    "name",
    "title",
    "tagline",
    "bio",
    "template",
    "status",
    "subdomain",
    "updated_at",
    "published_at",
]

COLLECTION_FIELDS = ["experience", "education", "projects", "skills", "certifications"]


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_json(data: Any) -> None:
    """Print formatted JSON."""
    import json

    console.print_json(json.dumps(data, indent=2, default=str))


def _truncate(value: Any, limit: int = 60) -> str:
    text = "" if value is None else str(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def print_portfolio(document: dict[str, Any]) -> None:
    """Print a portfolio document as a table."""
    table = Table(show_header=True, header_style="bold", title=document.get("name"))
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    for key in SCALAR_FIELDS:
        table.add_row(key, _truncate(document.get(key)))

    for key in COLLECTION_FIELDS:
        items = document.get(key) or []
        table.add_row(key, f"{len(items)} item(s)")

    console.print(table)


def print_history(summary: dict[str, Any]) -> None:
    """Print the undo/redo log with the cursor marked."""
    table = Table(show_header=True, header_style="bold", title="History")
    table.add_column("#", justify="right")
    table.add_column("Action")
    table.add_column("", justify="center")

    for index, action in enumerate(summary["actions"]):
        marker = "[green]●[/green]" if index == summary["index"] else ""
        style = "dim" if index > summary["index"] else None
        table.add_row(str(index), action, marker, style=style)

    console.print(table)
    console.print(
        f"[dim]{summary['entries']}/{summary['limit']} entries · "
        f"undo: {'yes' if summary['can_undo'] else 'no'} · "
        f"redo: {'yes' if summary['can_redo'] else 'no'}[/dim]"
    )


def print_config(config: dict[str, Any]) -> None:
    """Print configuration sections as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")

    for section, values in config.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", _truncate(value, 50))

    console.print(table)
