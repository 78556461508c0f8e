"""Console output helpers for the compound-eye CLI.

Usage:
    from cli.console import console, print_success, print_error

    console.print("Hello world", style="bold")
    print_success("Operation completed")
    print_error("Something went wrong")
"""

from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message (green checkmark)."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message (red X) to stderr."""
    err_console.print(f"[red]✗[/red] {message}")


def print_info(message: str) -> None:
    """Print an info message (blue info sign)."""
    console.print(f"[blue]ℹ[/blue] {message}")


def create_table(title: str = "") -> Table:
    """Create a rich Table, titled if a title is given."""
    return Table(title=title) if title else Table()


__all__ = [
    "console",
    "err_console",
    "print_success",
    "print_error",
    "print_info",
    "create_table",
]
