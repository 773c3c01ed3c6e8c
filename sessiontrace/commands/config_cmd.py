"""CLI handlers for config commands."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click

from sessiontrace.config import DEFAULT_CONFIG_PATH, AppConfig, init_config, load_config

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

_file_option = click.option(
    "--file",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file (default: {DEFAULT_CONFIG_PATH})",
)


def _flatten(data: dict, prefix: str = "") -> dict[str, Any]:
    """`{"session": {"media": {"block_count": 28}}}` -> `{"session.media.block_count": 28}`."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, dotted + "."))
        else:
            flat[dotted] = value
    return flat


def _settable_keys() -> dict[str, Any]:
    """Dotted keys that `config set` accepts, mapped to their default values."""
    defaults = asdict(AppConfig())
    defaults.pop("config_path")
    return _flatten(defaults)


def _coerce(key: str, value: str, default: Any) -> Any:
    if isinstance(default, bool):
        if value.lower() not in ("true", "false"):
            raise click.BadParameter(f"{key} expects true or false", param_hint="VALUE")
        return value.lower() == "true"
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError:
            raise click.BadParameter(f"{key} expects an integer", param_hint="VALUE") from None
    if isinstance(default, list):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = None
        if not isinstance(parsed, list):
            raise click.BadParameter(f"{key} expects a JSON array", param_hint="VALUE")
        return parsed
    return value


@click.group("config")
def config_group():
    """Manage configuration."""
    pass


@config_group.command("init")
@_file_option
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(config_file: Path | None, force: bool):
    """Create default configuration file."""
    path = config_file or DEFAULT_CONFIG_PATH
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    init_config(path)
    click.echo(f"Configuration created at: {path}")


@config_group.command("show")
@_file_option
def config_show(config_file: Path | None):
    """Show the effective configuration, environment overrides included."""
    config = load_config(config_file)
    click.echo(f"Config file: {config.config_path}")

    values = asdict(config)
    values.pop("config_path")
    values["security"]["users"] = [u["name"] for u in values["security"]["users"]]
    for key, value in _flatten(values).items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value) or "-"
        click.echo(f"  {key} = {value}")


@config_group.command("set")
@_file_option
@click.argument("key")
@click.argument("value")
def config_set(config_file: Path | None, key: str, value: str):
    """Set a configuration value.

    KEY uses dot notation, e.g. session.media.block_count, mongodb.uri,
    security.enabled. List values are given as JSON, e.g.
    security.users '[{"name": "admin", "password": "secret"}]'.
    """
    import tomli_w

    path = config_file or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise click.ClickException(f"No config file at {path}. Run 'sessiontrace config init' first.")

    keys = _settable_keys()
    if key not in keys:
        raise click.BadParameter(f"unknown key {key!r}", param_hint="KEY")
    new_value = _coerce(key, value, keys[key])

    previous = path.read_bytes()
    data = tomllib.loads(previous.decode())
    *sections, final_key = key.split(".")
    target = data
    for section in sections:
        target = target.setdefault(section, {})
    target[final_key] = new_value

    with open(path, "wb") as f:
        tomli_w.dump(data, f)

    # Written values must still load
    try:
        load_config(path)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        path.write_bytes(previous)
        raise click.ClickException(f"Rejected {key} = {value}: {e}") from e

    click.echo(f"Set {key} = {value}")
