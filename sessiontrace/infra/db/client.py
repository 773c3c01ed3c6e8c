"""Motor async MongoDB wrapper with day-partitioned collection lookup."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

import motor.motor_asyncio

logger = logging.getLogger(__name__)


def partition_names(
    prefix: str, time_range: tuple[int, int], partition_format: str = "%Y%m%d"
) -> list[str]:
    """Names of the daily partitions of `prefix` covering an epoch-millis range.

    Returned in chronological order, without duplicates.
    """
    start_ms, end_ms = time_range
    if end_ms < start_ms:
        return []
    day = datetime.fromtimestamp(start_ms / 1000, tz=timezone.utc).date()
    last = datetime.fromtimestamp(end_ms / 1000, tz=timezone.utc).date()
    names: list[str] = []
    while day <= last:
        name = f"{prefix}_{day.strftime(partition_format)}"
        if name not in names:
            names.append(name)
        day += timedelta(days=1)
    return names


class MongoClient:
    """Thin wrapper around Motor's async MongoDB client."""

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database: str = "sip3",
        partition_format: str = "%Y%m%d",
    ):
        self._client = motor.motor_asyncio.AsyncIOMotorClient(uri)
        self._db = self._client[database]
        self._partition_format = partition_format
        logger.info("MongoDB client created: %s/%s", uri, database)

    @property
    def db(self) -> motor.motor_asyncio.AsyncIOMotorDatabase:
        return self._db

    @property
    def client(self) -> motor.motor_asyncio.AsyncIOMotorClient:
        return self._client

    def close(self) -> None:
        self._client.close()
        logger.info("MongoDB client closed")

    async def ping(self) -> bool:
        """Check if MongoDB is reachable."""
        try:
            await self._client.admin.command("ping")
            return True
        except Exception:
            logger.warning("MongoDB ping failed")
            return False

    async def find(
        self,
        prefix: str,
        time_range: tuple[int, int],
        filter: dict,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict]:
        """Query every existing partition of `prefix` intersecting `time_range`.

        Partitions are read in chronological order and the sort is applied
        within each partition, so an ascending sort on the partitioning
        timestamp yields a globally ordered result.
        """
        existing = set(
            await self._db.list_collection_names(
                filter={"name": {"$regex": f"^{re.escape(prefix)}_"}}
            )
        )
        documents: list[dict] = []
        for name in partition_names(prefix, time_range, self._partition_format):
            if name not in existing:
                continue
            cursor = self._db[name].find(filter)
            if sort:
                cursor = cursor.sort(sort)
            documents.extend([doc async for doc in cursor])
        logger.debug("Found %d documents in %s for range %s", len(documents), prefix, time_range)
        return documents
