"""Tests for MediaSessionService with a mocked document store."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from sessiontrace.models.session_request import MissingFieldError, SessionRequest
from sessiontrace.services.media_session_service import MediaSessionService, merge_legs


def doc(src_port, dst_port, started_at, duration, reverse=False, expected=None):
    return {
        "call_id": "call-1",
        "src_addr": "10.0.0.2" if reverse else "10.0.0.1",
        "src_port": src_port,
        "dst_addr": "10.0.0.1" if reverse else "10.0.0.2",
        "dst_port": dst_port,
        "started_at": started_at,
        "duration": duration,
        "packets": {"expected": duration if expected is None else expected, "received": duration},
    }


STORE = {
    "rtpr_rtp_index": [
        doc(20000, 30000, 0, 400),
        doc(30000, 20000, 0, 400, reverse=True),
    ],
    "rtpr_rtp_raw": [
        doc(20000, 30000, 0, 250),
        doc(30000, 20000, 0, 400, reverse=True),
        doc(20000, 30000, 250, 150),
    ],
    "rtpr_rtcp_index": [doc(20001, 30001, 0, 400)],
    "rtpr_rtcp_raw": [doc(20001, 30001, 0, 400)],
}


@pytest.fixture
def mock_mongo():
    mongo = AsyncMock()

    async def find(prefix, time_range, filter, sort=None):
        return list(STORE.get(prefix, []))

    mongo.find.side_effect = find
    return mongo


@pytest.fixture
def service(mock_mongo):
    return MediaSessionService(mock_mongo, block_count=4, termination_timeout=60000)


def request(**overrides):
    data = {"created_at": 0, "terminated_at": 400, "call_id": ("call-1",)}
    data.update(overrides)
    return SessionRequest(**data)


class TestMediaSessionService:
    @pytest.mark.asyncio
    async def test_details_merges_rtp_and_rtcp(self, service):
        details = await service.details(request())
        assert len(details) == 1
        rtp, rtcp = details[0]["rtp"], details[0]["rtcp"]
        assert rtp is not None and rtcp is not None
        assert rtp.leg_id == rtcp.leg_id

    @pytest.mark.asyncio
    async def test_every_direction_has_block_count_blocks(self, service):
        details = await service.details(request())
        rtp = details[0]["rtp"]
        assert len(rtp.out.blocks) == 4
        assert len(rtp.in_.blocks) == 4
        assert [b.packets.expected for b in rtp.out.blocks] == [100, 100, 100, 100]

    @pytest.mark.asyncio
    async def test_missing_direction_gets_no_blocks(self, service):
        details = await service.details(request())
        rtcp = details[0]["rtcp"]
        assert len(rtcp.out.blocks) == 4
        assert rtcp.in_.blocks == []

    @pytest.mark.asyncio
    async def test_query_filter(self, service, mock_mongo):
        await service.details(request())
        prefix, time_range, filter, sort = mock_mongo.find.await_args_list[0].args
        assert prefix == "rtpr_rtp_index"
        assert time_range == (0, 60400)
        assert filter == {
            "started_at": {"$gte": 0, "$lte": 60400},
            "call_id": {"$in": ["call-1"]},
        }
        assert sort == [("started_at", 1)]

    @pytest.mark.asyncio
    async def test_raw_queried_once_per_leg(self, service, mock_mongo):
        await service.details(request())
        prefixes = [c.args[0] for c in mock_mongo.find.await_args_list]
        assert prefixes.count("rtpr_rtp_raw") == 1
        assert prefixes.count("rtpr_rtcp_raw") == 1

    @pytest.mark.asyncio
    async def test_empty_result(self, service, mock_mongo):
        mock_mongo.find.side_effect = None
        mock_mongo.find.return_value = []
        assert await service.details(request()) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["created_at", "terminated_at", "call_id"])
    async def test_missing_field(self, service, mock_mongo, missing):
        with pytest.raises(MissingFieldError) as exc_info:
            await service.details(request(**{missing: None}))
        assert exc_info.value.field == missing
        mock_mongo.find.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_direction_aggregated_once(self, mock_mongo):
        """Two parties resolving to the same direction must not double its blocks."""
        store = dict(STORE)
        store["rtpr_rtp_raw"] = [
            doc(20000, 30000, 0, 400),
            doc(20001, 30001, 0, 400),
        ]

        async def find(prefix, time_range, filter, sort=None):
            return list(store.get(prefix, []))

        mock_mongo.find.side_effect = find
        service = MediaSessionService(mock_mongo, block_count=4)

        details = await service.details(request())
        assert len(details[0]["rtp"].out.blocks) == 4

    @pytest.mark.asyncio
    async def test_unknown_source(self, service):
        with pytest.raises(ValueError, match="Unknown media source"):
            await service.find_leg_sessions("sip", 0, 1, ["call-1"])

    @pytest.mark.asyncio
    async def test_without_blocks(self, service):
        legs = await service.find_leg_sessions("rtp", 0, 400, ["call-1"], with_blocks=False)
        assert all(leg.out.blocks == [] for leg in legs.values())


class TestMergeLegs:
    def test_union_of_leg_ids(self):
        merged = merge_legs({"a": "rtp-a", "b": "rtp-b"}, {"b": "rtcp-b", "c": "rtcp-c"})
        assert merged == [
            {"rtp": "rtp-a", "rtcp": None},
            {"rtp": "rtp-b", "rtcp": "rtcp-b"},
            {"rtp": None, "rtcp": "rtcp-c"},
        ]

    def test_empty(self):
        assert merge_legs({}, {}) == []
