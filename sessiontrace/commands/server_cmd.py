"""CLI handlers for server commands."""

from __future__ import annotations

import click

from sessiontrace.config import load_config


@click.group("server")
def server_group():
    """Run the HTTP server."""
    pass


@server_group.command("start")
@click.option("--host", default=None, help="Bind address (default from config)")
@click.option("--port", type=int, default=None, help="Bind port (default from config)")
def server_start(host: str | None, port: int | None):
    """Start the sessiontrace HTTP server in the foreground."""
    import uvicorn

    from sessiontrace.context import AppContext
    from sessiontrace.web.app import create_app

    config = load_config()
    ctx = AppContext(config=config)
    app = create_app(ctx)

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    click.echo(f"Serving on http://{bind_host}:{bind_port}")
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)
