"""Click CLI definitions - main entry point."""

from __future__ import annotations

import logging
import sys

import click

from sessiontrace.commands.config_cmd import config_group
from sessiontrace.commands.hosts_cmd import hosts_group
from sessiontrace.commands.server_cmd import server_group
from sessiontrace.commands.session_cmd import session_group


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, debug: bool) -> None:
    """sessiontrace - SIP/RTP session lookup and host management."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(session_group, "session")
cli.add_command(hosts_group, "hosts")
cli.add_command(config_group, "config")
cli.add_command(server_group, "server")


if __name__ == "__main__":
    cli()
