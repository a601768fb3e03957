"""
Main CLI command registration.

This module sets up the main CLI command group and registers all subcommands.
"""
import typer

# Create the main command group
app = typer.Typer(help="SecureShop CLI")


@app.callback()
def main_callback():
    """SecureShop command line interface."""
    pass


from . import server as server_module  # noqa: E402
from . import accounts as accounts_module  # noqa: E402

app.add_typer(server_module.app, name="server", help="Server management commands")
app.add_typer(accounts_module.app, name="accounts", help="Account administration commands")

__all__ = ['app']
