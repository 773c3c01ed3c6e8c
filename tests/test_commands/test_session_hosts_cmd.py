"""Tests for session and hosts CLI commands."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from click.testing import CliRunner

from sessiontrace.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def ctx(monkeypatch):
    ctx = MagicMock()
    ctx.close = AsyncMock()
    ctx.host_service = AsyncMock()
    ctx.media_session_service = AsyncMock()
    ctx.call_session_service = AsyncMock()
    get_context = AsyncMock(return_value=ctx)
    monkeypatch.setattr("sessiontrace.commands.session_cmd.get_context", get_context)
    monkeypatch.setattr("sessiontrace.commands.hosts_cmd.get_context", get_context)
    ctx.get_context = get_context
    return ctx


class TestSessionCommands:
    @pytest.mark.parametrize("command", ["media", "call"])
    def test_missing_option_fails(self, runner, ctx, command):
        result = runner.invoke(cli, ["session", command, "--terminated-at", "400", "--call-id", "c"])
        assert result.exit_code == 1
        assert "Missing required option: --created-at" in result.output
        ctx.get_context.assert_not_awaited()

    def test_missing_call_id(self, runner, ctx):
        result = runner.invoke(cli, ["session", "media", "--created-at", "0", "--terminated-at", "400"])
        assert result.exit_code == 1
        assert "--call-id" in result.output

    def test_call_prints_documents(self, runner, ctx):
        ctx.call_session_service.find_in_raw.return_value = [{"call_id": "c"}]
        result = runner.invoke(cli, [
            "session", "call", "--created-at", "0", "--terminated-at", "400",
            "--call-id", "c", "--call-id", "d",
        ])
        assert result.exit_code == 0
        assert json.loads(result.output) == [{"call_id": "c"}]
        req = ctx.call_session_service.find_in_raw.await_args.args[0]
        assert req.call_id == ("c", "d")
        ctx.close.assert_awaited_once()


class TestHostsImportCommand:
    def test_import(self, runner, ctx, tmp_path):
        path = tmp_path / "hosts.json"
        path.write_text(json.dumps([{"name": "host1", "sip": ["10.0.0.1:5060"]}]))
        ctx.host_service.save_all.return_value = 1
        result = runner.invoke(cli, ["hosts", "import", str(path)])
        assert result.exit_code == 0
        assert "Imported 1 hosts" in result.output
        hosts = ctx.host_service.save_all.await_args.args[0]
        assert [h.name for h in hosts] == ["host1"]

    def test_invalid_file_fails(self, runner, ctx, tmp_path):
        path = tmp_path / "hosts.json"
        path.write_text(json.dumps([{"name": "host1", "media": ["10.10.10.0/280"]}]))
        result = runner.invoke(cli, ["hosts", "import", str(path)])
        assert result.exit_code == 1
        assert "10.10.10.0/280" in result.output
        ctx.get_context.assert_not_awaited()
