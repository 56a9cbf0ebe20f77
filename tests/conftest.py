# tests/conftest.py
import os

import pytest

# settings are read at import time
os.environ["FINNHUB_API_KEY"] = "test-key"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("SMTP_HOST", None)

from bson import ObjectId

from tests.helpers import FakeDB, FakeFinnhub


@pytest.fixture
def fake_db():
    return FakeDB()


@pytest.fixture
def user_repo(fake_db):
    from signalist.db.repositories import UserRepository
    return UserRepository(fake_db)


@pytest.fixture
def watchlist_repo(fake_db):
    from signalist.db.repositories import WatchlistRepository
    return WatchlistRepository(fake_db)


# ========== FAKES ==========

@pytest.fixture
def finnhub():
    return FakeFinnhub()


# ========== APP CLIENT ==========

TEST_USER_ID = ObjectId()


@pytest.fixture
def test_user():
    return {
        "_id": TEST_USER_ID,
        "email": "ada@example.com",
        "name": "Ada",
        "is_active": True,
    }


@pytest.fixture
def client(monkeypatch, fake_db, user_repo, watchlist_repo, finnhub, test_user):
    async def _noop(*args, **kwargs):
        return None

    # no live Mongo or scheduler
    monkeypatch.setattr("signalist.main.connect_to_mongo", _noop)
    monkeypatch.setattr("signalist.main.start_scheduler", lambda: None)

    from fastapi.testclient import TestClient
    from signalist.api import deps
    from signalist.main import app

    app.dependency_overrides[deps.get_user_repository] = lambda: user_repo
    app.dependency_overrides[deps.get_watchlist_repository] = lambda: watchlist_repo
    app.dependency_overrides[deps.get_finnhub] = lambda: finnhub
    app.dependency_overrides[deps.get_current_user] = lambda: test_user
    app.dependency_overrides[deps.get_optional_user] = lambda: test_user

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
