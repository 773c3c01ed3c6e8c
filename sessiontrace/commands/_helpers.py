"""CLI helpers for connecting to MongoDB."""

from __future__ import annotations

from sessiontrace.context import AppContext


async def get_context() -> AppContext:
    """Create and initialize an AppContext. Raises if MongoDB is unreachable."""
    ctx = AppContext()
    await ctx.initialize()
    if not await ctx.mongo.ping():
        await ctx.close()
        raise SystemExit(f"MongoDB not reachable at {ctx.config.mongodb.uri}")
    return ctx
