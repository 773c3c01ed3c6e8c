"""MongoDB index creation."""

from __future__ import annotations

import logging

import pymongo

logger = logging.getLogger(__name__)


async def run_migrations(db) -> None:
    """Create indexes on startup."""
    logger.info("Running MongoDB migrations...")

    # Hosts indexes
    hosts = db["hosts"]
    await hosts.create_index([("name", pymongo.ASCENDING)], unique=True)

    logger.info("MongoDB migrations complete")
