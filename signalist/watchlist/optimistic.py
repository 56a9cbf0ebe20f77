# signalist/watchlist/optimistic.py
"""Client-side membership state with tentative updates.

A change is applied locally at once and handed back as a token; the caller
later confirms it or reverts it. Reverting restores the membership the symbol
had before that change, not simply the opposite. When a newer change to the
same symbol is still pending, local state is left alone and the newer change
inherits that rollback target instead.
"""

from __future__ import annotations
import itertools
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, Iterable, Set

from signalist.logger import get_logger
from signalist.utils.validators import normalize_ticker
from signalist.watchlist.reconciler import MutationResult

log = get_logger(__name__)


@dataclass(frozen=True)
class PendingChange:
    token: int
    symbol: str
    is_member: bool
    previous: bool


class OptimisticWatchlist:
    def __init__(self, symbols: Iterable[str] = ()):
        self._members: Set[str] = {normalize_ticker(s) for s in symbols if s}
        self._pending: Dict[int, PendingChange] = {}
        self._tokens = itertools.count(1)

    def is_member(self, symbol: str) -> bool:
        return normalize_ticker(symbol) in self._members

    @property
    def symbols(self) -> Set[str]:
        return set(self._members)

    @property
    def pending(self) -> Dict[int, PendingChange]:
        return dict(self._pending)

    def _set(self, symbol: str, is_member: bool) -> None:
        if is_member:
            self._members.add(symbol)
        else:
            self._members.discard(symbol)

    def tentative_apply(self, symbol: str, is_member: bool) -> int:
        sym = normalize_ticker(symbol)
        change = PendingChange(next(self._tokens), sym, is_member, sym in self._members)
        self._pending[change.token] = change
        self._set(sym, is_member)
        return change.token

    def confirm(self, token: int) -> None:
        if self._pending.pop(token, None) is None:
            raise KeyError(f"Unknown or settled change token: {token}")

    def revert(self, token: int) -> None:
        change = self._pending.pop(token, None)
        if change is None:
            raise KeyError(f"Unknown or settled change token: {token}")
        later = next(
            (p for t, p in self._pending.items() if t > token and p.symbol == change.symbol),
            None,
        )
        if later is not None:
            # a newer change owns the local state; it inherits the rollback target
            self._pending[later.token] = replace(later, previous=change.previous)
            return
        self._set(change.symbol, change.previous)

    async def apply(
        self,
        symbol: str,
        is_member: bool,
        commit: Callable[[str, bool], Awaitable[MutationResult]],
    ) -> MutationResult:
        """Apply locally, run `commit`, then confirm or revert on its result.

        An exception from `commit` reverts the change and propagates.
        """
        token = self.tentative_apply(symbol, is_member)
        sym = self._pending[token].symbol
        try:
            result = await commit(sym, is_member)
        except Exception:
            self.revert(token)
            raise

        if result.success:
            self.confirm(token)
        else:
            log.warning("Reverting %s -> %s: %s", sym, is_member, result.error)
            self.revert(token)
        return result
