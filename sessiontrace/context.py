"""AppContext: wires DB, config, and services together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sessiontrace.config import AppConfig, load_config
from sessiontrace.infra.db.client import MongoClient

if TYPE_CHECKING:
    from pathlib import Path

    from sessiontrace.infra.db.hosts import HostRepo
    from sessiontrace.services.call_session_service import CallSessionService
    from sessiontrace.services.host_service import HostService
    from sessiontrace.services.media_session_service import MediaSessionService

logger = logging.getLogger(__name__)


class AppContext:
    """Central wiring for all application dependencies.

    Lazily initializes services on first access. Call `initialize()` to
    set up the database connection and run migrations.
    """

    def __init__(self, config: AppConfig | None = None, config_path: Path | None = None) -> None:
        self.config = config or load_config(config_path)
        self._mongo: MongoClient | None = None
        self._host_repo: HostRepo | None = None
        self._host_service: HostService | None = None
        self._media_session_service: MediaSessionService | None = None
        self._call_session_service: CallSessionService | None = None

    async def initialize(self) -> None:
        """Initialize the database connection and run migrations."""
        from sessiontrace.infra.db.migrations import run_migrations

        self._mongo = MongoClient(
            uri=self.config.mongodb.uri,
            database=self.config.mongodb.database,
            partition_format=self.config.mongodb.partition_format,
        )
        await run_migrations(self._mongo.db)
        logger.info("AppContext initialized")

    async def close(self) -> None:
        """Close all connections."""
        if self._mongo:
            self._mongo.close()
        logger.info("AppContext closed")

    @property
    def mongo(self) -> MongoClient:
        if self._mongo is None:
            raise RuntimeError("AppContext not initialized. Call initialize() first.")
        return self._mongo

    @property
    def host_repo(self) -> HostRepo:
        if self._host_repo is None:
            from sessiontrace.infra.db.hosts import HostRepo

            self._host_repo = HostRepo(self.mongo.db)
        return self._host_repo

    @property
    def host_service(self) -> HostService:
        if self._host_service is None:
            from sessiontrace.services.host_service import HostService

            self._host_service = HostService(self.host_repo)
        return self._host_service

    @property
    def media_session_service(self) -> MediaSessionService:
        if self._media_session_service is None:
            from sessiontrace.services.media_session_service import MediaSessionService

            self._media_session_service = MediaSessionService(
                mongo=self.mongo,
                block_count=self.config.session.media.block_count,
                termination_timeout=self.config.session.media.termination_timeout,
            )
        return self._media_session_service

    @property
    def call_session_service(self) -> CallSessionService:
        if self._call_session_service is None:
            from sessiontrace.services.call_session_service import CallSessionService

            self._call_session_service = CallSessionService(
                mongo=self.mongo,
                termination_timeout=self.config.session.call.termination_timeout,
            )
        return self._call_session_service
