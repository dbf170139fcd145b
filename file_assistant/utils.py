"""
Utility functions for the File Assistant.

Includes:
- Console helpers
- Known directory aliases
- Argument trimming
"""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Global console instance
console = Console()


def print_header(title: str, subtitle: str = ""):
    """Print a styled header."""
    console.print(Panel(f"[bold blue]{title}[/bold blue]\n[italic]{subtitle}[/italic]", expand=False))


def print_commands_table(commands: list[tuple[str, str]]):
    """Print the command vocabulary as a table."""
    table = Table(title="Available Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Arguments", style="magenta")

    for tag, usage in commands:
        table.add_row(tag, usage)

    console.print(table)


def print_error(msg: str):
    console.print(f"[bold red]ERROR:[/bold red] {msg}")


def print_warning(msg: str):
    console.print(f"[bold yellow]WARNING:[/bold yellow] {msg}")


# -----------------------------------------------------------------------------
# Directory aliases
# -----------------------------------------------------------------------------

QUOTE_CHARS = "\"'`"


def default_known_dirs() -> dict[str, Path]:
    """Build the alias table for common user folders."""
    home = Path.home()
    return {
        "downloads": home / "Downloads",
        "documents": home / "Documents",
        "desktop": home / "Desktop",
    }


def clean_arg(value: str) -> str:
    """Trim whitespace and surrounding quote characters from an argument."""
    return value.strip().strip(QUOTE_CHARS).strip()


def resolve_dir(name: str, known_dirs: dict[str, Path] | None = None) -> str:
    """
    Resolve a directory argument through the alias table.

    Args:
        name: Raw directory argument, e.g. "Downloads" or "/data/inbox/".
        known_dirs: Alias table; defaults to default_known_dirs().

    Returns:
        The aliased folder if the name matches an alias (case-insensitive),
        otherwise the name with quotes and trailing separators trimmed.
    """
    if known_dirs is None:
        known_dirs = default_known_dirs()

    cleaned = clean_arg(name)
    key = cleaned.strip("\\/ ").lower()
    for alias, path in known_dirs.items():
        if alias.lower() == key:
            return str(path)

    # Keep a bare root ("/") intact
    trimmed = cleaned.rstrip("\\/")
    return trimmed if trimmed else cleaned
