"""Tests for the HTTP security filter."""

from __future__ import annotations

import base64
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from sessiontrace.config import AppConfig, SecurityConfig, UserConfig
from sessiontrace.web.app import create_app
from sessiontrace.web.security import SecurityFilter, StaticUserProvider, parse_basic_credentials


def basic(username: str, password: str) -> str:
    return "Basic " + base64.b64encode(f"{username}:{password}".encode()).decode()


@pytest.fixture
def secured_client():
    ctx = MagicMock()
    ctx.config = AppConfig(
        security=SecurityConfig(enabled=True, users=[UserConfig("admin", "secret")])
    )
    ctx.host_service = AsyncMock()
    ctx.host_service.list_hosts.return_value = []
    return TestClient(create_app(ctx, manage_lifecycle=False))


class TestParseBasicCredentials:
    def test_valid(self):
        assert parse_basic_credentials(basic("admin", "s:e")) == ("admin", "s:e")

    @pytest.mark.parametrize("header", [None, "", "Bearer abc", "Basic !!!", "Basic " + base64.b64encode(b"nocolon").decode()])
    def test_invalid(self, header):
        assert parse_basic_credentials(header) is None


class TestStaticUserProvider:
    def test_authenticate(self):
        provider = StaticUserProvider([UserConfig("admin", "secret")])
        assert provider.authenticate("admin", "secret")
        assert not provider.authenticate("admin", "wrong")
        assert not provider.authenticate("guest", "secret")


class TestSecurityFilter:
    def test_permitted_paths(self):
        assert SecurityFilter.is_permitted("/docs")
        assert SecurityFilter.is_permitted("/docs/oauth2-redirect")
        assert SecurityFilter.is_permitted("/openapi.json")
        assert SecurityFilter.is_permitted("/management/configuration/hoof")
        assert not SecurityFilter.is_permitted("/hosts")
        assert not SecurityFilter.is_permitted("/docsx")

    def test_login_logs_outcome(self, caplog):
        security = SecurityFilter(SecurityConfig(enabled=True, users=[UserConfig("admin", "secret")]))
        with caplog.at_level(logging.INFO, logger="sessiontrace.web.security"):
            assert security.login("admin", "secret")
            assert not security.login("admin", "nope")
        assert "Login attempt. User: admin, State: SUCCESSFUL" in caplog.text
        assert "Login attempt. User: admin, State: FAILED" in caplog.text


class TestSecuredApp:
    def test_disabled_security_permits_all(self):
        ctx = MagicMock()
        ctx.config = AppConfig()
        ctx.host_service = AsyncMock()
        ctx.host_service.list_hosts.return_value = []
        client = TestClient(create_app(ctx, manage_lifecycle=False))
        assert client.get("/hosts").status_code == 200

    def test_anonymous_request_forbidden(self, secured_client):
        assert secured_client.get("/hosts").status_code == 403

    def test_basic_auth(self, secured_client):
        assert secured_client.get("/hosts", auth=("admin", "secret")).status_code == 200

    def test_lowercase_authorization_header(self, secured_client):
        resp = secured_client.get("/hosts", headers={"authorization": basic("admin", "secret")})
        assert resp.status_code == 200

    def test_wrong_password_forbidden(self, secured_client):
        assert secured_client.get("/hosts", auth=("admin", "wrong")).status_code == 403

    def test_hoof_configuration_permitted(self, secured_client):
        resp = secured_client.get("/management/configuration/hoof")
        assert resp.status_code == 200
        assert resp.json()["security"]["enabled"] is True
        assert resp.json()["session"]["media"]["block_count"] == 28

    def test_form_login(self, secured_client):
        ok = secured_client.post("/login", data={"username": "admin", "password": "secret"})
        assert ok.status_code == 200
        bad = secured_client.post("/login", data={"username": "admin", "password": "wrong"})
        assert bad.status_code == 403
