"""Server command."""

from __future__ import annotations

import click
import uvicorn

from catalog_service.cli.utils import info
from catalog_service.core.settings import get_app_settings


@click.command(name="server")
@click.option("--host", default=None, help="Host to bind (default: APP_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind (default: APP_PORT)")
@click.option("--reload/--no-reload", default=False, help="Enable auto-reload on code changes")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["critical", "error", "warning", "info", "debug", "trace"]),
    help="Uvicorn log level",
)
def server(host: str | None, port: int | None, reload: bool, log_level: str) -> None:
    """Run the API server with uvicorn."""
    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port

    info(f"Server will run at: http://{host}:{port}")
    info(f"Environment: {settings.environment}")
    uvicorn.run(
        "catalog_service.app.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )
