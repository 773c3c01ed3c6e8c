"""Tests for HostRepo bulk replacement."""

from unittest.mock import AsyncMock, MagicMock

import pymongo
import pytest

from sessiontrace.infra.db.hosts import HostRepo
from sessiontrace.models.host import Host


def _collection():
    col = MagicMock()
    col.drop = AsyncMock()
    col.create_index = AsyncMock()
    col.insert_many = AsyncMock()
    col.rename = AsyncMock()
    col.delete_many = AsyncMock()
    return col


@pytest.fixture
def collections():
    return {"hosts": _collection(), "hosts_import": _collection()}


@pytest.fixture
def repo(collections):
    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections[name]
    return HostRepo(db)


HOSTS = [
    Host("host1", sip=("10.10.10.0:5060",), media=("10.10.10.0/28",)),
    Host("host2", sip=("10.10.20.0:5060",)),
]


class TestReplaceAll:
    @pytest.mark.asyncio
    async def test_swaps_staged_hosts_in(self, repo, collections):
        staging = collections["hosts_import"]

        count = await repo.replace_all(HOSTS)

        assert count == 2
        staging.create_index.assert_awaited_once_with([("name", pymongo.ASCENDING)], unique=True)
        docs = staging.insert_many.await_args.args[0]
        assert [d["name"] for d in docs] == ["host1", "host2"]
        assert all("_id" not in d for d in docs)
        staging.rename.assert_awaited_once_with("hosts", dropTarget=True)
        collections["hosts"].delete_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_current_hosts(self, repo, collections):
        staging = collections["hosts_import"]
        staging.insert_many.side_effect = RuntimeError("write failed")

        with pytest.raises(RuntimeError):
            await repo.replace_all(HOSTS)

        staging.rename.assert_not_awaited()
        collections["hosts"].delete_many.assert_not_awaited()
        collections["hosts"].drop.assert_not_awaited()
        assert staging.drop.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_list_clears_hosts(self, repo, collections):
        staging = collections["hosts_import"]

        assert await repo.replace_all([]) == 0

        staging.insert_many.assert_not_awaited()
        staging.rename.assert_awaited_once_with("hosts", dropTarget=True)
