"""Tests for CallSessionService with a mocked document store."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from sessiontrace.models.session_request import MissingFieldError, SessionRequest
from sessiontrace.services.call_session_service import CallSessionService


@pytest.fixture
def mock_mongo():
    mongo = AsyncMock()
    mongo.find.return_value = [{"call_id": "call-1", "created_at": 1500}]
    return mongo


@pytest.fixture
def service(mock_mongo):
    return CallSessionService(mock_mongo, termination_timeout=10000)


class TestCallSessionService:
    @pytest.mark.asyncio
    async def test_find_in_raw(self, service, mock_mongo):
        req = SessionRequest(created_at=20000, terminated_at=30000, call_id=("call-1", "call-2"))
        docs = await service.find_in_raw(req)
        assert docs == [{"call_id": "call-1", "created_at": 1500}]
        mock_mongo.find.assert_awaited_once_with(
            "sip_call_raw",
            (20000, 30000),
            {
                "created_at": {"$gte": 10000, "$lte": 40000},
                "call_id": {"$in": ["call-1", "call-2"]},
            },
        )

    @pytest.mark.asyncio
    async def test_missing_call_id(self, service, mock_mongo):
        with pytest.raises(MissingFieldError, match="call_id"):
            await service.find_in_raw(SessionRequest(created_at=1, terminated_at=2))
        mock_mongo.find.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_created_at_reported_first(self, service):
        with pytest.raises(MissingFieldError) as exc_info:
            await service.find_in_raw(SessionRequest())
        assert exc_info.value.field == "created_at"
