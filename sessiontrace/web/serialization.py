"""Model <-> JSON conversion for HTTP transport."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from bson import ObjectId

from sessiontrace.models.host import Host
from sessiontrace.models.media import LegSession


# --- Host ---

def serialize_host(host: Host) -> dict:
    # Storage ids stay internal
    return {
        "name": host.name,
        "sip": list(host.sip),
        "media": list(host.media),
    }


# --- Media session ---

def serialize_leg_session(leg: LegSession | None) -> dict | None:
    if leg is None:
        return None
    return leg.to_doc()


def serialize_media_details(details: list[dict[str, LegSession | None]]) -> list[dict]:
    return [
        {
            "rtp": serialize_leg_session(entry["rtp"]),
            "rtcp": serialize_leg_session(entry["rtcp"]),
        }
        for entry in details
    ]


# --- Raw documents ---

def serialize_document(value: Any) -> Any:
    """Make a raw MongoDB document JSON-safe."""
    if isinstance(value, dict):
        return {k: serialize_document(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize_document(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value
