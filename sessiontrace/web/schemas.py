"""Request bodies accepted by the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel

from sessiontrace.models.host import Host
from sessiontrace.models.session_request import SessionRequest


class HostBody(BaseModel):
    name: str = ""
    sip: list[str] = []
    media: list[str] = []

    def to_host(self) -> Host:
        return Host.from_dict(self.model_dump())


class SessionRequestBody(BaseModel):
    """All fields optional here; the services name the first missing one."""

    created_at: int | None = None
    terminated_at: int | None = None
    call_id: list[str] | None = None

    def to_request(self) -> SessionRequest:
        return SessionRequest.from_dict(self.model_dump())
