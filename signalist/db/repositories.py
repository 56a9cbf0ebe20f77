# signalist/db/repositories.py
"""Repository pattern for MongoDB operations"""

from __future__ import annotations
from typing import Optional, List
from datetime import datetime, timezone
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection

from signalist.db.mongo import USERS, WATCHLISTS
from signalist.logger import get_logger

log = get_logger(__name__)


class BaseRepository:
    """Base repository with common CRUD operations"""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str):
        self.db = db
        self.collection: AsyncIOMotorCollection = db[collection_name]

    async def create(self, document: dict) -> str:
        """Create a new document"""
        result = await self.collection.insert_one(document)
        return str(result.inserted_id)

    async def find_by_id(self, id: str) -> Optional[dict]:
        """Find document by ID"""
        if not ObjectId.is_valid(id):
            return None
        return await self.collection.find_one({"_id": ObjectId(id)})

    async def find_one(self, filter: dict) -> Optional[dict]:
        """Find single document by filter"""
        return await self.collection.find_one(filter)

    async def find_many(self, filter: dict, limit: int = 100, sort: Optional[list] = None) -> List[dict]:
        """Find multiple documents"""
        cursor = self.collection.find(filter)
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.limit(limit)
        return await cursor.to_list(length=limit)


class UserRepository(BaseRepository):
    """User-specific repository operations"""

    def __init__(self, db: AsyncIOMotorDatabase):
        super().__init__(db, USERS)

    async def find_by_email(self, email: str) -> Optional[dict]:
        """Find user by email"""
        return await self.find_one({"email": email.strip().lower()})

    async def list_for_news_email(self, limit: int = 10000) -> List[dict]:
        """Users with both an email and a name, projected to what the digest needs."""
        cursor = self.collection.find(
            {"email": {"$exists": True, "$nin": [None, ""]}, "name": {"$exists": True, "$nin": [None, ""]}},
            {"_id": 1, "email": 1, "name": 1},
        ).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [
            {"id": str(d["_id"]), "email": d["email"], "name": d["name"]}
            for d in docs
            if d.get("email") and d.get("name")
        ]


class WatchlistRepository(BaseRepository):
    """Watchlist entries keyed by (user_id, symbol)"""

    def __init__(self, db: AsyncIOMotorDatabase):
        super().__init__(db, WATCHLISTS)

    async def upsert_entry(self, user_id: str, symbol: str, company: str) -> bool:
        """Insert the pair if absent; an existing pair is left untouched.

        Returns True when a new document was created. A concurrent insert of
        the same pair surfaces as DuplicateKeyError from the unique index.
        """
        result = await self.collection.update_one(
            {"user_id": user_id, "symbol": symbol},
            {"$setOnInsert": {
                "user_id": user_id,
                "symbol": symbol,
                "company": company,
                "created_at": datetime.now(timezone.utc),
            }},
            upsert=True,
        )
        return result.upserted_id is not None

    async def delete_entry(self, user_id: str, symbol: str) -> bool:
        """Delete the pair; returns False when it was not there."""
        result = await self.collection.delete_one({"user_id": user_id, "symbol": symbol})
        return result.deleted_count > 0

    async def list_for_user(self, user_id: str, limit: int = 500) -> List[dict]:
        """Entries for one user, newest first"""
        return await self.find_many({"user_id": user_id}, limit=limit, sort=[("created_at", -1)])

    async def list_symbols(self, user_id: str) -> List[str]:
        entries = await self.list_for_user(user_id)
        return [str(e["symbol"]) for e in entries if e.get("symbol")]

    async def list_symbols_by_email(self, user_repo: UserRepository, email: str) -> List[str]:
        """Watchlist symbols for the user with this email; unknown email or error gives []."""
        try:
            user = await user_repo.find_by_email(email)
            if not user:
                return []
            return await self.list_symbols(str(user["_id"]))
        except Exception as e:
            log.error("list_symbols_by_email error for %s: %s", email, e)
            return []
