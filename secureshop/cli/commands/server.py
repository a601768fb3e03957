"""
Server management commands.
"""
from typing import Optional

import typer

from ..utils import print_info, print_success

# Create the command group
app = typer.Typer(help="Server management commands")


@app.command("run")
def run_server(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (defaults to PORT)"),
    reload: bool = False,
    workers: int = 1,
) -> None:
    """Run the API server."""
    # Import uvicorn only when needed
    import uvicorn

    from ...core.config import settings

    host = host or settings.HOST
    port = port or settings.PORT
    print_success(f"Starting SecureShop server at http://{host}:{port}")
    uvicorn.run(
        "secureshop:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
    )


@app.command("status")
def server_status() -> None:
    """Show the effective configuration."""
    from ...core.config import settings

    print_info("Server status:")
    print_info(f"  Environment: {settings.ENV}")
    print_info(f"  Debug mode: {settings.DEBUG}")
    print_info(f"  Database: {settings.DATABASE_URL}")
    print_info(f"  Shared store: {settings.STORE_BACKEND}")
    print_info(f"  Secure cookies: {settings.COOKIE_SECURE}")
