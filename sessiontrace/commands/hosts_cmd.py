"""CLI handlers for host commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from sessiontrace.commands._helpers import get_context
from sessiontrace.models.host import InvalidHostError
from sessiontrace.services.host_service import parse_hosts


def _run(coro):
    return asyncio.run(coro)


@click.group("hosts")
def hosts_group():
    """Manage host records."""
    pass


@hosts_group.command("list")
def hosts_list():
    """List hosts."""

    async def _list():
        ctx = await get_context()
        try:
            hosts = await ctx.host_service.list_hosts()
            if not hosts:
                click.echo("No hosts found.")
                return
            for h in hosts:
                click.echo(f"  {h.name}")
                click.echo(f"    sip:   {', '.join(h.sip) or '-'}")
                click.echo(f"    media: {', '.join(h.media) or '-'}")
        finally:
            await ctx.close()

    _run(_list())


@hosts_group.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def hosts_import(file: Path):
    """Replace all hosts with the JSON array in FILE."""
    try:
        hosts = parse_hosts(file.read_bytes())
    except InvalidHostError as e:
        raise click.ClickException(f"{file}: {e}") from e

    async def _import():
        ctx = await get_context()
        try:
            count = await ctx.host_service.save_all(hosts)
            click.echo(f"Imported {count} hosts from {file}")
        finally:
            await ctx.close()

    _run(_import())
