"""CLI handlers for session lookups."""

from __future__ import annotations

import asyncio
import json

import click

from sessiontrace.commands._helpers import get_context
from sessiontrace.models.session_request import MissingFieldError, SessionRequest
from sessiontrace.web.serialization import serialize_document, serialize_media_details


def _run(coro):
    return asyncio.run(coro)


def _request(created_at: int | None, terminated_at: int | None, call_id: tuple[str, ...]) -> SessionRequest:
    """Build the request, failing before any database work if a field is missing."""
    req = SessionRequest(
        created_at=created_at,
        terminated_at=terminated_at,
        call_id=call_id or None,
    )
    try:
        req.require()
    except MissingFieldError as e:
        option = "--" + e.field.replace("_", "-")
        raise click.ClickException(f"Missing required option: {option}") from e
    return req


@click.group("session")
def session_group():
    """Query call and media sessions."""
    pass


@session_group.command("media")
@click.option("--created-at", type=int, help="Call start, epoch millis")
@click.option("--terminated-at", type=int, help="Call end, epoch millis")
@click.option("--call-id", "call_id", multiple=True, help="Call-ID (repeatable)")
def session_media(created_at: int | None, terminated_at: int | None, call_id: tuple[str, ...]):
    """Print RTP/RTCP legs with block statistics as JSON."""
    req = _request(created_at, terminated_at, call_id)

    async def _media():
        ctx = await get_context()
        try:
            details = await ctx.media_session_service.details(req)
            click.echo(json.dumps(serialize_media_details(details), indent=2))
        finally:
            await ctx.close()

    _run(_media())


@session_group.command("call")
@click.option("--created-at", type=int, help="Call start, epoch millis")
@click.option("--terminated-at", type=int, help="Call end, epoch millis")
@click.option("--call-id", "call_id", multiple=True, help="Call-ID (repeatable)")
def session_call(created_at: int | None, terminated_at: int | None, call_id: tuple[str, ...]):
    """Print raw SIP documents of a call as JSON."""
    req = _request(created_at, terminated_at, call_id)

    async def _call():
        ctx = await get_context()
        try:
            docs = await ctx.call_session_service.find_in_raw(req)
            click.echo(json.dumps([serialize_document(d) for d in docs], indent=2))
        finally:
            await ctx.close()

    _run(_call())
