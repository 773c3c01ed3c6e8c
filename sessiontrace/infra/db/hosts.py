"""Host repository - MongoDB CRUD for host records."""

from __future__ import annotations

import logging

import pymongo

from sessiontrace.models.host import Host

logger = logging.getLogger(__name__)


class HostRepo:
    """CRUD operations for hosts in MongoDB."""

    COLLECTION = "hosts"
    STAGING_COLLECTION = "hosts_import"

    def __init__(self, db) -> None:
        self._db = db
        self._col = db[self.COLLECTION]

    async def list_all(self) -> list[Host]:
        """List all hosts ordered by name."""
        cursor = self._col.find().sort("name", 1)
        return [Host.from_doc(doc) async for doc in cursor]

    async def find_by_name(self, name: str) -> Host | None:
        """Find a host by its name."""
        doc = await self._col.find_one({"name": name})
        return Host.from_doc(doc) if doc else None

    async def insert(self, host: Host) -> Host:
        """Insert a new host. Raises pymongo DuplicateKeyError on name clash."""
        doc = host.to_doc()
        doc.pop("_id", None)
        result = await self._col.insert_one(doc)
        return Host(
            id=str(result.inserted_id),
            name=host.name,
            sip=host.sip,
            media=host.media,
        )

    async def replace(self, host: Host) -> Host | None:
        """Replace the host with the same name. Returns None if absent."""
        doc = host.to_doc()
        doc.pop("_id", None)
        result = await self._col.find_one_and_replace(
            {"name": host.name},
            doc,
            return_document=True,
        )
        return Host.from_doc(result) if result else None

    async def delete_by_name(self, name: str) -> bool:
        """Delete a host by name."""
        result = await self._col.delete_one({"name": name})
        return result.deleted_count > 0

    async def replace_all(self, hosts: list[Host]) -> int:
        """Swap the stored hosts for the given ones.

        The new set is written to a staging collection first and renamed over
        `hosts` only once every insert succeeded, so a failed import leaves
        the current hosts in place.
        """
        staging = self._db[self.STAGING_COLLECTION]
        await staging.drop()
        await staging.create_index([("name", pymongo.ASCENDING)], unique=True)
        docs = []
        for host in hosts:
            doc = host.to_doc()
            doc.pop("_id", None)
            docs.append(doc)
        if docs:
            try:
                await staging.insert_many(docs)
            except Exception:
                await staging.drop()
                raise
        await staging.rename(self.COLLECTION, dropTarget=True)
        logger.debug("Replaced hosts collection with %d documents", len(docs))
        return len(docs)
