# signalist/db/mongo.py
"""MongoDB connection lifecycle.

One Motor client per process: ``connect_to_mongo`` initialises it exactly
once (concurrent callers await the same initialisation task, a failed
attempt is not cached), ``get_db`` hands out the live handle and
``close_mongo_connection`` tears it down so a later connect starts fresh.
"""

from __future__ import annotations
import asyncio
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from signalist.core.config import settings
from signalist.logger import get_logger

log = get_logger(__name__)

USERS = "users"
WATCHLISTS = "watchlists"

# Process-wide handles
_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None
_init_task: Optional[asyncio.Task] = None
_repositories: Dict[str, object] = {}


class DatabaseNotConnected(RuntimeError):
    """get_db() called before connect_to_mongo() or after close."""


async def _connect(uri: str, db_name: str) -> AsyncIOMotorDatabase:
    global _client, _db

    client = AsyncIOMotorClient(
        uri,
        maxPoolSize=10,
        minPoolSize=0,
        maxIdleTimeMS=60000,
        serverSelectionTimeoutMS=5000,
    )
    try:
        await client.admin.command("ping")
        db = client[db_name]
        await ensure_indexes(db)
    except BaseException:
        # also on cancellation from close_mongo_connection()
        client.close()
        raise

    _client, _db = client, db
    log.info("Connected to MongoDB: %s", db_name)
    return db


async def connect_to_mongo(uri: Optional[str] = None, db_name: Optional[str] = None) -> AsyncIOMotorDatabase:
    """Initialise the shared client once and return the database handle."""
    global _init_task

    if _db is not None:
        return _db

    if _init_task is None:
        _init_task = asyncio.ensure_future(
            _connect(uri or settings.MONGO_URI, db_name or settings.MONGO_DB_NAME)
        )
    task = _init_task
    try:
        return await asyncio.shield(task)
    except Exception:
        if _init_task is task:
            _init_task = None
        raise


async def close_mongo_connection() -> None:
    """Close the shared client; safe to call when not connected."""
    global _client, _db, _init_task
    task, _init_task = _init_task, None
    if task is not None and not task.done():
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            log.info("Cancelled in-flight MongoDB connect")
    if _client is not None:
        _client.close()
        log.info("Disconnected from MongoDB")
    _client = None
    _db = None
    _repositories.clear()


def is_connected() -> bool:
    return _db is not None


def get_db() -> AsyncIOMotorDatabase:
    if _db is None:
        raise DatabaseNotConnected("MongoDB is not connected; call connect_to_mongo() first")
    return _db


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create required indexes (idempotent).

    The (user_id, symbol) index is what keeps watchlist adds idempotent under
    concurrent requests, so a failure here aborts startup.
    """
    try:
        await db[USERS].create_index("email", unique=True)
        await db[WATCHLISTS].create_index(
            [("user_id", ASCENDING), ("symbol", ASCENDING)], unique=True, name="user_symbol_unique"
        )
        await db[WATCHLISTS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    except Exception as e:
        log.error("Failed to create MongoDB indexes: %s", e)
        raise
    log.info("MongoDB indexes created/verified")


def get_repository(repo_class):
    """Repository instance bound to the live database (one per class)."""
    name = repo_class.__name__
    if name not in _repositories:
        _repositories[name] = repo_class(get_db())
    return _repositories[name]
