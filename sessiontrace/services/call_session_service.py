"""Call session service: raw SIP documents of the requested calls."""

from __future__ import annotations

import logging

from sessiontrace.infra.db.client import MongoClient
from sessiontrace.models.session_request import SessionRequest

logger = logging.getLogger(__name__)


class CallSessionService:
    """Lookup of raw SIP call documents."""

    def __init__(self, mongo: MongoClient, termination_timeout: int = 10000) -> None:
        self._mongo = mongo
        self._termination_timeout = termination_timeout

    async def find_in_raw(self, req: SessionRequest) -> list[dict]:
        """Raw SIP messages of `req.call_id` around the call's lifetime."""
        created_at, terminated_at, call_id = req.require()

        filter = {
            "created_at": {
                "$gte": created_at - self._termination_timeout,
                "$lte": terminated_at + self._termination_timeout,
            },
            "call_id": {"$in": list(call_id)},
        }
        docs = await self._mongo.find("sip_call_raw", (created_at, terminated_at), filter)
        logger.debug("Found %d raw SIP documents for %s", len(docs), list(call_id))
        return docs
