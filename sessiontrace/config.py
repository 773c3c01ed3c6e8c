"""Configuration loading: TOML file + environment variable overlay."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]


DEFAULT_CONFIG_DIR = Path.home() / ".config" / "sessiontrace"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"


DEFAULT_CONFIG_TOML = """\
[mongodb]
uri = "mongodb://localhost:27017"
database = "sip3"
# Report collections are partitioned per day: <prefix>_<partition suffix>
partition_format = "%Y%m%d"

[session.media]
block_count = 28
termination_timeout = 60000

[session.call]
termination_timeout = 10000

[security]
enabled = false
# users = [{ name = "admin", password = "change-me" }]
users = []

[server]
host = "127.0.0.1"
port = 15000
"""


@dataclass
class MongoConfig:
    uri: str = "mongodb://localhost:27017"
    database: str = "sip3"
    partition_format: str = "%Y%m%d"


@dataclass
class MediaSessionConfig:
    block_count: int = 28
    termination_timeout: int = 60000  # millis


@dataclass
class CallSessionConfig:
    termination_timeout: int = 10000  # millis


@dataclass
class SessionConfig:
    media: MediaSessionConfig = field(default_factory=MediaSessionConfig)
    call: CallSessionConfig = field(default_factory=CallSessionConfig)


@dataclass
class UserConfig:
    name: str
    password: str = ""


@dataclass
class SecurityConfig:
    enabled: bool = False
    users: list[UserConfig] = field(default_factory=list)


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 15000


@dataclass
class AppConfig:
    mongodb: MongoConfig = field(default_factory=MongoConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    config_path: Path = DEFAULT_CONFIG_PATH


def _env_overlay(config: AppConfig) -> None:
    """Override config values with environment variables where applicable."""
    if uri := os.environ.get("MONGODB_URI"):
        config.mongodb.uri = uri
    if db := os.environ.get("SESSIONTRACE_DB"):
        config.mongodb.database = db
    if enabled := os.environ.get("SESSIONTRACE_SECURITY_ENABLED"):
        config.security.enabled = enabled.lower() in ("1", "true", "yes")


def _parse_users(data: list) -> list[UserConfig]:
    return [
        UserConfig(name=u["name"], password=u.get("password", ""))
        for u in data
        if u.get("name")
    ]


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file with env var overlay."""
    path = config_path or DEFAULT_CONFIG_PATH

    if path.exists():
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    else:
        raw = tomllib.loads(DEFAULT_CONFIG_TOML)

    mongo_raw = raw.get("mongodb", {})
    session_raw = raw.get("session", {})
    media_raw = session_raw.get("media", {})
    call_raw = session_raw.get("call", {})
    security_raw = raw.get("security", {})
    server_raw = raw.get("server", {})

    config = AppConfig(
        mongodb=MongoConfig(
            uri=mongo_raw.get("uri", "mongodb://localhost:27017"),
            database=mongo_raw.get("database", "sip3"),
            partition_format=mongo_raw.get("partition_format", "%Y%m%d"),
        ),
        session=SessionConfig(
            media=MediaSessionConfig(
                block_count=media_raw.get("block_count", 28),
                termination_timeout=media_raw.get("termination_timeout", 60000),
            ),
            call=CallSessionConfig(
                termination_timeout=call_raw.get("termination_timeout", 10000),
            ),
        ),
        security=SecurityConfig(
            enabled=security_raw.get("enabled", False),
            users=_parse_users(security_raw.get("users", [])),
        ),
        server=ServerConfig(
            host=server_raw.get("host", "127.0.0.1"),
            port=server_raw.get("port", 15000),
        ),
        config_path=path,
    )

    if config.session.media.block_count <= 0:
        raise ValueError("session.media.block_count must be positive")

    _env_overlay(config)
    return config


def init_config(config_path: Path | None = None) -> Path:
    """Create default config file."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TOML)
    return path
