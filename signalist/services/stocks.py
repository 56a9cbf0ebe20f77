# signalist/services/stocks.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from signalist.core.config import settings
from signalist.logger import get_logger
from signalist.services.finnhub_client import FinnhubClient, get_finnhub_client

log = get_logger(__name__)

POPULAR_PROFILE_COUNT = 10
DEFAULT_EXCHANGE = "US"
DEFAULT_TYPE = "Stock"


class StockSearchResult(BaseModel):
    symbol: str
    name: str
    exchange: str
    type: str
    is_in_watchlist: bool = False


async def _popular_profiles(client: FinnhubClient) -> Tuple[List[Dict[str, Any]], Dict[str, str]]:
    """Profiles for the leading popular symbols, plus a symbol -> exchange map."""
    top = settings.POPULAR_SYMBOLS[:POPULAR_PROFILE_COUNT]

    async def one(sym: str) -> Optional[Dict[str, Any]]:
        try:
            return await client.fetch_profile(sym)
        except Exception as e:
            log.error("Error fetching profile for %s: %s", sym, e)
            return None

    profiles = await asyncio.gather(*(one(s) for s in top))

    rows: List[Dict[str, Any]] = []
    exchanges: Dict[str, str] = {}
    for sym, profile in zip(top, profiles):
        name = (profile or {}).get("name") or (profile or {}).get("ticker")
        if not name:
            continue
        symbol = sym.upper()
        rows.append({"symbol": symbol, "description": name, "displaySymbol": symbol, "type": "Common Stock"})
        if profile.get("exchange"):
            exchanges[symbol] = profile["exchange"]
    return rows, exchanges


def _normalize(
    row: Dict[str, Any],
    exchanges: Dict[str, str],
    watchlist: set,
) -> StockSearchResult:
    symbol = str(row.get("symbol") or "").upper()
    return StockSearchResult(
        symbol=symbol,
        name=row.get("description") or symbol,
        exchange=exchanges.get(symbol) or DEFAULT_EXCHANGE,
        type=row.get("type") or DEFAULT_TYPE,
        is_in_watchlist=symbol in watchlist,
    )


async def search_stocks(
    query: Optional[str] = None,
    watchlist_symbols: Iterable[str] = (),
    client: Optional[FinnhubClient] = None,
) -> List[StockSearchResult]:
    """Search Finnhub, or list popular stocks for a blank query.

    Never raises: a missing API key or provider failure gives [].
    """
    client = client or get_finnhub_client()
    try:
        client.ensure_api_key()
        trimmed = (query or "").strip()
        exchanges: Dict[str, str] = {}

        if not trimmed:
            rows, exchanges = await _popular_profiles(client)
        else:
            rows = await client.search_symbols(trimmed)

        watchlist = {str(s).upper() for s in watchlist_symbols}
        results = [_normalize(r, exchanges, watchlist) for r in rows if isinstance(r, dict)]
        return results[: settings.SEARCH_MAX_RESULTS]
    except Exception as e:
        log.error("Error in stock search: %s", e)
        return []
