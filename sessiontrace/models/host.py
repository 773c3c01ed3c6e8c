"""Host domain model: a named group of SIP and media addresses."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass


class InvalidHostError(ValueError):
    """Host definition is malformed (bad address, duplicate name, bad JSON)."""


def is_valid_address(value: str) -> bool:
    """Accept `IP`, `IP:port` and `CIDR` notations."""
    if not isinstance(value, str) or not value:
        return False
    if "/" in value:
        try:
            ipaddress.ip_network(value, strict=False)
            return True
        except ValueError:
            return False
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        pass
    addr, sep, port = value.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        return False
    try:
        ipaddress.ip_address(addr.strip("[]"))
        return True
    except ValueError:
        return False


@dataclass(frozen=True)
class Host:
    """Maps a host name to the addresses it uses for signaling and media."""

    name: str
    sip: tuple[str, ...] = ()
    media: tuple[str, ...] = ()
    id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise InvalidHostError("Host name must be a string")
        if not self.name:
            raise InvalidHostError("Host name cannot be empty")
        for address in (*self.sip, *self.media):
            if not is_valid_address(address):
                raise InvalidHostError(f"Invalid address: {address}")

    def to_doc(self) -> dict:
        """Serialize to MongoDB document."""
        doc: dict = {
            "name": self.name,
            "sip": list(self.sip),
            "media": list(self.media),
        }
        if self.id:
            doc["_id"] = self.id
        return doc

    @classmethod
    def from_doc(cls, doc: dict) -> Host:
        """Deserialize from MongoDB document."""
        return cls(
            id=str(doc["_id"]),
            name=doc["name"],
            sip=tuple(doc.get("sip", [])),
            media=tuple(doc.get("media", [])),
        )

    @classmethod
    def from_dict(cls, data: dict) -> Host:
        """Build from user input (REST body or import file entry)."""
        if not isinstance(data, dict):
            raise InvalidHostError("Host entry must be an object")
        sip = data.get("sip") or []
        media = data.get("media") or []
        if not isinstance(sip, list) or not isinstance(media, list):
            raise InvalidHostError("Host 'sip' and 'media' must be lists")
        return cls(name=data.get("name", ""), sip=tuple(sip), media=tuple(media))
