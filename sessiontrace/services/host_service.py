"""Host business logic service."""

from __future__ import annotations

import json
import logging

from pymongo.errors import DuplicateKeyError

from sessiontrace.infra.db.hosts import HostRepo
from sessiontrace.models.host import Host, InvalidHostError

logger = logging.getLogger(__name__)


class HostNotFoundError(LookupError):
    """No host with the requested name."""


class DuplicateHostError(ValueError):
    """A host with the same name already exists."""


def parse_hosts(content: bytes | str) -> list[Host]:
    """Parse a JSON array of host objects, rejecting duplicate names."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidHostError(f"Invalid JSON: {e}") from e
    if not isinstance(data, list):
        raise InvalidHostError("Host list must be a JSON array")

    hosts = [Host.from_dict(entry) for entry in data]
    seen: set[str] = set()
    for host in hosts:
        if host.name in seen:
            raise InvalidHostError(f"Duplicate host name: {host.name}")
        seen.add(host.name)
    return hosts


class HostService:
    """Business logic for host management."""

    def __init__(self, host_repo: HostRepo) -> None:
        self._repo = host_repo

    async def list_hosts(self) -> list[Host]:
        """List all hosts."""
        return await self._repo.list_all()

    async def get_by_name(self, name: str) -> Host:
        """Get a host by name."""
        host = await self._repo.find_by_name(name)
        if host is None:
            raise HostNotFoundError(f"Host not found: {name}")
        return host

    async def create(self, host: Host) -> Host:
        """Create a new host."""
        if await self._repo.find_by_name(host.name):
            raise DuplicateHostError(f"Host '{host.name}' already exists")
        try:
            created = await self._repo.insert(host)
        except DuplicateKeyError as e:
            raise DuplicateHostError(f"Host '{host.name}' already exists") from e
        logger.info("Created host: %s", created.name)
        return created

    async def update(self, host: Host) -> Host:
        """Replace an existing host's addresses."""
        updated = await self._repo.replace(host)
        if updated is None:
            raise HostNotFoundError(f"Host not found: {host.name}")
        logger.info("Updated host: %s", host.name)
        return updated

    async def delete_by_name(self, name: str) -> None:
        """Delete a host by name."""
        if not await self._repo.delete_by_name(name):
            raise HostNotFoundError(f"Host not found: {name}")
        logger.info("Deleted host: %s", name)

    async def save_all(self, hosts: list[Host]) -> int:
        """Replace the stored host list."""
        count = await self._repo.replace_all(hosts)
        logger.info("Saved %d hosts", count)
        return count

    async def import_json(self, content: bytes | str) -> int:
        """Replace the stored host list with the hosts of a JSON document."""
        return await self.save_all(parse_hosts(content))
