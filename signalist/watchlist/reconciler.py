# signalist/watchlist/reconciler.py
"""Watchlist membership writes.

``set_membership`` makes the stored state match the requested state. Adding an
existing symbol and removing an absent one are both successes, so retries and
double clicks are harmless. Failures come back as a ``MutationResult`` rather
than an exception.
"""

from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, ValidationError
from pymongo.errors import DuplicateKeyError

from signalist.db.repositories import WatchlistRepository
from signalist.db.schemas import WatchlistEntry
from signalist.logger import get_logger
from signalist.utils.validators import normalize_ticker

log = get_logger(__name__)

NOT_AUTHENTICATED = "Not authenticated"
INVALID_SYMBOL = "Invalid symbol"
PERSISTENCE_FAILED = "Failed to update watchlist"


class MutationResult(BaseModel):
    success: bool
    symbol: str
    is_member: bool
    error: Optional[str] = None


class WatchlistReconciler:
    def __init__(self, repository: WatchlistRepository):
        self.repository = repository

    async def set_membership(
        self,
        owner_id: Optional[str],
        symbol: str,
        should_be_member: bool,
        company: Optional[str] = None,
    ) -> MutationResult:
        """Add or remove `symbol` for `owner_id`.

        `is_member` in the result is the membership the caller asked for on
        success, and the caller's previous belief (the opposite) on failure.
        """
        sym = normalize_ticker(symbol)

        def failed(error: str) -> MutationResult:
            return MutationResult(success=False, symbol=sym, is_member=not should_be_member, error=error)

        if not owner_id:
            return failed(NOT_AUTHENTICATED)

        try:
            entry = WatchlistEntry(user_id=str(owner_id), symbol=sym, company=(company or "").strip() or sym)
        except ValidationError as e:
            log.warning("Rejected watchlist symbol %r: %s", symbol, e)
            return failed(INVALID_SYMBOL)

        try:
            if should_be_member:
                created = await self.repository.upsert_entry(entry.user_id, entry.symbol, entry.company)
                log.info("Watchlist add %s for %s (%s)", entry.symbol, entry.user_id,
                         "created" if created else "already present")
            else:
                deleted = await self.repository.delete_entry(entry.user_id, entry.symbol)
                log.info("Watchlist remove %s for %s (%s)", entry.symbol, entry.user_id,
                         "deleted" if deleted else "not present")
        except DuplicateKeyError:
            # Lost an insert race against the same (user, symbol): the pair exists.
            log.info("Watchlist add %s for %s raced; entry exists", entry.symbol, entry.user_id)
        except Exception as e:
            log.error("Watchlist update failed for %s/%s: %s", entry.user_id, entry.symbol, e)
            return failed(PERSISTENCE_FAILED)

        return MutationResult(success=True, symbol=entry.symbol, is_member=should_be_member)

    async def add(self, owner_id: Optional[str], symbol: str, company: Optional[str] = None) -> MutationResult:
        return await self.set_membership(owner_id, symbol, True, company)

    async def remove(self, owner_id: Optional[str], symbol: str) -> MutationResult:
        return await self.set_membership(owner_id, symbol, False)
