# tests/test_reconciler.py
import asyncio
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from signalist.watchlist.reconciler import (
    INVALID_SYMBOL,
    NOT_AUTHENTICATED,
    PERSISTENCE_FAILED,
    WatchlistReconciler,
)

OWNER = "64f1a2b3c4d5e67890ab12cd"


@pytest.fixture
def reconciler(watchlist_repo):
    return WatchlistReconciler(watchlist_repo)


def stored(fake_db):
    return fake_db["watchlists"].docs


async def test_add_creates_entry(reconciler, fake_db):
    res = await reconciler.set_membership(OWNER, " aapl ", True, "Apple Inc")
    assert res.success and res.is_member and res.error is None
    assert res.symbol == "AAPL"
    assert [(d["user_id"], d["symbol"], d["company"]) for d in stored(fake_db)] == [(OWNER, "AAPL", "Apple Inc")]


async def test_re_add_is_idempotent(reconciler, fake_db):
    await reconciler.set_membership(OWNER, "AAPL", True, "Apple Inc")
    res = await reconciler.set_membership(OWNER, "AAPL", True, "Something Else")
    assert res.success and res.is_member
    assert len(stored(fake_db)) == 1
    assert stored(fake_db)[0]["company"] == "Apple Inc"


async def test_concurrent_adds_leave_one_entry(reconciler, fake_db):
    results = await asyncio.gather(*(reconciler.add(OWNER, "MSFT") for _ in range(5)))
    assert all(r.success for r in results)
    assert len(stored(fake_db)) == 1


async def test_company_defaults_to_symbol(reconciler, fake_db):
    await reconciler.add(OWNER, "nvda")
    assert stored(fake_db)[0]["company"] == "NVDA"


async def test_same_symbol_different_owners(reconciler, fake_db):
    await reconciler.add(OWNER, "AAPL")
    await reconciler.add("other-user", "AAPL")
    assert len(stored(fake_db)) == 2


async def test_duplicate_key_race_is_success():
    repo = AsyncMock()
    repo.upsert_entry.side_effect = DuplicateKeyError("E11000 duplicate key")
    res = await WatchlistReconciler(repo).set_membership(OWNER, "AAPL", True)
    assert res.success and res.is_member


async def test_remove_existing(reconciler, fake_db):
    await reconciler.add(OWNER, "AAPL")
    res = await reconciler.set_membership(OWNER, "AAPL", False)
    assert res.success and not res.is_member
    assert stored(fake_db) == []


async def test_remove_non_member_succeeds(reconciler, fake_db):
    res = await reconciler.remove(OWNER, "TSLA")
    assert res.success and not res.is_member
    assert stored(fake_db) == []


async def test_remove_only_touches_own_entry(reconciler, fake_db):
    await reconciler.add(OWNER, "AAPL")
    await reconciler.add("other-user", "AAPL")
    await reconciler.remove(OWNER, "AAPL")
    assert [d["user_id"] for d in stored(fake_db)] == ["other-user"]


@pytest.mark.parametrize("owner", [None, ""])
async def test_unauthenticated_never_touches_storage(owner):
    repo = AsyncMock()
    res = await WatchlistReconciler(repo).set_membership(owner, "AAPL", True)
    assert not res.success
    assert res.error == NOT_AUTHENTICATED
    assert res.is_member is False
    repo.upsert_entry.assert_not_called()
    repo.delete_entry.assert_not_called()


async def test_persistence_error_is_reported():
    repo = AsyncMock()
    repo.delete_entry.side_effect = ServerSelectionTimeoutError("no servers")
    res = await WatchlistReconciler(repo).set_membership(OWNER, "AAPL", False)
    assert not res.success
    assert res.error == PERSISTENCE_FAILED
    # caller still believes it is a member
    assert res.is_member is True


async def test_blank_symbol_rejected():
    repo = AsyncMock()
    res = await WatchlistReconciler(repo).set_membership(OWNER, "   ", True)
    assert not res.success and res.error == INVALID_SYMBOL
    repo.upsert_entry.assert_not_called()


async def test_blank_company_falls_back_to_symbol(reconciler, fake_db):
    res = await reconciler.set_membership(OWNER, "NVDA", True, "   ")
    assert res.success and res.is_member
    assert stored(fake_db)[0]["company"] == "NVDA"
