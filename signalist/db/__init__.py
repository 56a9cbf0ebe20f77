# signalist/db/__init__.py
"""Database package - MongoDB via Motor"""

from signalist.db.mongo import (
    connect_to_mongo,
    close_mongo_connection,
    get_db,
    get_repository,
    is_connected,
)
from signalist.db.repositories import UserRepository, WatchlistRepository

__all__ = [
    "connect_to_mongo",
    "close_mongo_connection",
    "get_db",
    "get_repository",
    "is_connected",
    "UserRepository",
    "WatchlistRepository",
]
