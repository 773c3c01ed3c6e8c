"""Media session service: rebuild RTP/RTCP legs with per-block statistics."""

from __future__ import annotations

import logging

import pymongo

from sessiontrace.infra.db.client import MongoClient
from sessiontrace.models.media import LegSession, MediaReport
from sessiontrace.models.session_request import SessionRequest
from sessiontrace.services.blocks import aggregate_blocks, select_media_session
from sessiontrace.services.legs import (
    create_leg_session,
    generate_leg_id,
    generate_party_id,
    group_by,
)

logger = logging.getLogger(__name__)

SOURCES = ("rtp", "rtcp")


def merge_legs(
    rtp: dict[str, LegSession], rtcp: dict[str, LegSession]
) -> list[dict[str, LegSession | None]]:
    """One `{"rtp", "rtcp"}` entry per leg id seen in either stream."""
    leg_ids = list(rtp) + [leg_id for leg_id in rtcp if leg_id not in rtp]
    return [{"rtp": rtp.get(leg_id), "rtcp": rtcp.get(leg_id)} for leg_id in leg_ids]


class MediaSessionService:
    """Business logic for media session details."""

    def __init__(
        self,
        mongo: MongoClient,
        block_count: int = 28,
        termination_timeout: int = 60000,
    ) -> None:
        self._mongo = mongo
        self._block_count = block_count
        self._termination_timeout = termination_timeout

    async def details(self, req: SessionRequest) -> list[dict[str, LegSession | None]]:
        """Find RTP and RTCP legs of the requested calls, merged by leg id."""
        created_at, terminated_at, call_id = req.require()

        rtp = await self.find_leg_sessions("rtp", created_at, terminated_at, call_id)
        rtcp = await self.find_leg_sessions("rtcp", created_at, terminated_at, call_id)
        logger.info(
            "Media details for %s: %d rtp legs, %d rtcp legs",
            list(call_id), len(rtp), len(rtcp),
        )
        return merge_legs(rtp, rtcp)

    async def find_leg_sessions(
        self,
        source: str,
        created_at: int,
        terminated_at: int,
        call_id: tuple[str, ...] | list[str],
        with_blocks: bool = True,
    ) -> dict[str, LegSession]:
        """Build the legs of one report stream (`rtp` or `rtcp`)."""
        if source not in SOURCES:
            raise ValueError(f"Unknown media source: {source}")

        index = await self._find(f"rtpr_{source}_index", created_at, terminated_at, call_id)
        sessions = {
            leg_id: create_leg_session(leg_id, docs)
            for leg_id, docs in group_by(index, generate_leg_id).items()
        }

        # Raw reports are fetched once per leg window and shared between
        # legs of the same call
        reports: list[dict] = []
        for leg_id, leg in sessions.items():
            leg_reports = [d for d in reports if generate_leg_id(d) == leg_id]
            if not leg_reports:
                reports.extend(
                    await self._find(
                        f"rtpr_{source}_raw", leg.created_at, leg.terminated_at, [leg.call_id]
                    )
                )
                leg_reports = [d for d in reports if generate_leg_id(d) == leg_id]

            if with_blocks:
                self._update_blocks(leg, leg_reports)

        return sessions

    def _update_blocks(self, leg: LegSession, docs: list[dict]) -> None:
        for party_id, party_docs in group_by(docs, generate_party_id).items():
            party_reports = [MediaReport.from_doc(d) for d in party_docs]
            media_session = select_media_session(leg, party_reports[0])
            if media_session.blocks:
                logger.warning(
                    "Leg %s: party %s maps to an already aggregated direction, skipped",
                    leg.leg_id, party_id,
                )
                continue
            media_session.blocks = aggregate_blocks(
                leg, media_session, party_reports, self._block_count
            )

    async def _find(
        self,
        prefix: str,
        created_at: int,
        terminated_at: int,
        call_id: tuple[str, ...] | list[str],
    ) -> list[dict]:
        until = terminated_at + self._termination_timeout
        filter = {
            "started_at": {"$gte": created_at, "$lte": until},
            "call_id": {"$in": list(call_id)},
        }
        return await self._mongo.find(
            prefix, (created_at, until), filter, [("started_at", pymongo.ASCENDING)]
        )
