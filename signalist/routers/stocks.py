# signalist/routers/stocks.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from signalist.api.deps import get_finnhub, get_optional_user, get_watchlist_repository
from signalist.db.repositories import WatchlistRepository
from signalist.logger import get_logger
from signalist.services.finnhub_client import FinnhubClient, FinnhubConfigError, Quote
from signalist.services.stocks import StockSearchResult, search_stocks
from signalist.utils.validators import validate_ticker

log = get_logger(__name__)
router = APIRouter(prefix="/stocks", tags=["stocks"])


class QuoteFetchError(Exception):
    """Quote could not be retrieved from the provider."""


@router.get("/search", response_model=List[StockSearchResult])
async def search(
    q: Optional[str] = Query(None, max_length=100),
    current_user: Optional[dict] = Depends(get_optional_user),
    watchlists: WatchlistRepository = Depends(get_watchlist_repository),
    client: FinnhubClient = Depends(get_finnhub),
):
    """Symbol search; a blank query lists popular stocks"""
    symbols: List[str] = []
    if current_user:
        try:
            symbols = await watchlists.list_symbols(str(current_user["_id"]))
        except Exception as e:
            log.warning(f"Watchlist lookup failed during search: {e}")
    return await search_stocks(q, symbols, client=client)


async def _fetch_quote(client: FinnhubClient, symbol: str) -> Quote:
    try:
        return await client.fetch_quote(symbol)
    except FinnhubConfigError:
        raise
    except Exception as e:
        raise QuoteFetchError(str(e)) from e


@router.get("/{symbol}/quote", response_model=Quote)
async def quote(symbol: str, client: FinnhubClient = Depends(get_finnhub)):
    """Latest quote, never cached"""
    try:
        t = validate_ticker(symbol)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        return await _fetch_quote(client, t)
    except FinnhubConfigError as e:
        log.error(f"Quote unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Quote provider not configured")
    except QuoteFetchError as e:
        log.error(f"Quote failed for {t}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch quote")
