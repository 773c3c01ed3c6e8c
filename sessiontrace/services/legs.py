"""Leg and party grouping of RTP/RTCP report documents."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sessiontrace.models.media import (
    Address,
    LegSession,
    MediaReport,
    MediaSession,
    MinMaxAvg,
)

logger = logging.getLogger(__name__)


def _rtp_port(port: int) -> int:
    # RTCP runs on RTP port + 1
    return port & ~1


def generate_leg_id(doc: dict) -> str:
    """Direction-independent leg id shared by the RTP and RTCP reports of a leg."""
    a = (doc["src_addr"], _rtp_port(int(doc["src_port"])))
    b = (doc["dst_addr"], _rtp_port(int(doc["dst_port"])))
    first, second = sorted((a, b))
    return f"{doc['call_id']}:{first[0]}:{first[1]}:{second[0]}:{second[1]}"


def generate_party_id(doc: dict) -> str:
    """Directional id of the endpoint pair that produced a report."""
    return f"{doc['src_addr']}:{doc['src_port']}>{doc['dst_addr']}:{doc['dst_port']}"


def group_by(docs: Iterable[dict], key) -> dict[str, list[dict]]:
    """Group documents by key function, keeping first-seen key order."""
    groups: dict[str, list[dict]] = {}
    for doc in docs:
        groups.setdefault(key(doc), []).append(doc)
    return groups


def _index_terminated_at(doc: dict) -> int:
    if doc.get("terminated_at") is not None:
        return int(doc["terminated_at"])
    return int(doc["started_at"]) + int(doc.get("duration", 0))


def _media_session(reports: list[MediaReport], docs: list[dict]) -> MediaSession:
    first = reports[0]
    session = MediaSession(
        src=first.src,
        dst=first.dst,
        created_at=min(r.started_at for r in reports),
        terminated_at=max(_index_terminated_at(d) for d in docs),
    )
    jitter = MinMaxAvg()
    r_factor = MinMaxAvg()
    mos = MinMaxAvg()
    for report, doc in zip(reports, docs):
        session.packets = session.packets + report.packets
        jitter.merge(MinMaxAvg.from_doc(doc.get("jitter")))
        r_factor.merge(MinMaxAvg.from_doc(doc.get("r_factor")))
        mos.merge(MinMaxAvg.from_doc(doc.get("mos")))
    session.jitter = jitter
    session.r_factor = r_factor
    session.mos = mos
    return session


def _endpoint(address: Address) -> tuple[str, int]:
    return address.addr, _rtp_port(address.port)


def create_leg_session(leg_id: str, docs: list[dict]) -> LegSession:
    """Build a leg from its index documents.

    The direction of the first document becomes `out`; documents flowing
    the other way make up `in`. A direction without documents stays an
    empty sub-session of zero duration.
    """
    if not docs:
        raise ValueError(f"No index documents for leg {leg_id}")

    reports = [MediaReport.from_doc(d) for d in docs]
    first = reports[0]

    out_pairs = [
        (r, d) for r, d in zip(reports, docs) if _endpoint(r.src) == _endpoint(first.src)
    ]
    in_pairs = [
        (r, d) for r, d in zip(reports, docs) if _endpoint(r.src) != _endpoint(first.src)
    ]

    out = _media_session([r for r, _ in out_pairs], [d for _, d in out_pairs])
    in_ = (
        _media_session([r for r, _ in in_pairs], [d for _, d in in_pairs])
        if in_pairs
        else MediaSession.empty()
    )

    created_at = min(r.started_at for r in reports)
    terminated_at = max(_index_terminated_at(d) for d in docs)

    leg = LegSession(
        leg_id=leg_id,
        call_id=first.call_id,
        src=first.src,
        dst=first.dst,
        created_at=created_at,
        terminated_at=terminated_at,
        out=out,
        in_=in_,
    )
    logger.debug(
        "Leg %s: %d index documents, duration=%d", leg_id, len(docs), leg.duration
    )
    return leg
