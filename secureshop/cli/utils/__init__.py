"""
Shared utilities for CLI commands.
"""
from rich.console import Console
from rich.table import Table

# Global console instances
console = Console()
error_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓ {message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    error_console.print(f"[red]✗ {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠ {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]ℹ {message}[/blue]")


def account_table(account) -> Table:
    """Render an account record as a two-column table."""
    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("ID", str(account.id))
    table.add_row("Email", account.email)
    table.add_row("Role", account.role.value)
    table.add_row("Active", "yes" if account.is_active else "no")
    table.add_row("Failed attempts", str(account.failed_login_attempts))
    table.add_row("Locked until", str(account.locked_until) if account.locked_until else "-")
    return table
