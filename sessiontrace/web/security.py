"""HTTP security filter: HTTP Basic and form login against configured providers."""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
from typing import Protocol, runtime_checkable

from fastapi.security.utils import get_authorization_scheme_param
from starlette.requests import Request

from sessiontrace.config import SecurityConfig, UserConfig

logger = logging.getLogger(__name__)

PERMITTED_PREFIXES = (
    "/docs",
    "/redoc",
    "/openapi.json",
)
PERMITTED_PATHS = (
    "/management/configuration/hoof",
    "/login",
)


@runtime_checkable
class AuthenticationProvider(Protocol):
    """Validates a username/password pair."""

    name: str

    def authenticate(self, username: str, password: str) -> bool: ...


class StaticUserProvider:
    """Users declared in the `[security]` config section."""

    name = "static"

    def __init__(self, users: list[UserConfig]) -> None:
        self._users = {u.name: u.password for u in users}

    def authenticate(self, username: str, password: str) -> bool:
        expected = self._users.get(username)
        if expected is None:
            return False
        return secrets.compare_digest(expected.encode(), password.encode())


def parse_basic_credentials(header: str | None) -> tuple[str, str] | None:
    """Decode an `Authorization: Basic ...` header into (username, password)."""
    if not header:
        return None
    scheme, param = get_authorization_scheme_param(header)
    if scheme.lower() != "basic" or not param:
        return None
    try:
        decoded = base64.b64decode(param, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


class SecurityFilter:
    """Decides whether a request may reach the application."""

    def __init__(
        self,
        config: SecurityConfig,
        providers: list[AuthenticationProvider] | None = None,
    ) -> None:
        self._enabled = config.enabled
        self._providers: list[AuthenticationProvider] = (
            providers if providers is not None else [StaticUserProvider(config.users)]
        )
        if self._enabled:
            for provider in self._providers:
                logger.info("Authentication provider '%s' added.", provider.name)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @staticmethod
    def is_permitted(path: str) -> bool:
        if path in PERMITTED_PATHS:
            return True
        return any(path == p or path.startswith(p + "/") for p in PERMITTED_PREFIXES)

    def authenticate(self, username: str, password: str) -> bool:
        return any(p.authenticate(username, password) for p in self._providers)

    def allows(self, request: Request) -> bool:
        if not self._enabled or self.is_permitted(request.url.path):
            return True
        # Starlette header lookup is case-insensitive
        credentials = parse_basic_credentials(request.headers.get("authorization"))
        if credentials is None:
            return False
        return self.authenticate(*credentials)

    def login(self, username: str, password: str) -> bool:
        """Form login; logs the outcome of every attempt."""
        if self.authenticate(username, password):
            logger.info("Login attempt. User: %s, State: SUCCESSFUL", username)
            return True
        logger.info("Login attempt. User: %s, State: FAILED", username)
        return False
