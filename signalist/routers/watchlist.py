# signalist/routers/watchlist.py
import asyncio
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from signalist.api.deps import (
    get_current_user,
    get_finnhub,
    get_optional_user,
    get_reconciler,
    get_watchlist_repository,
)
from signalist.db.repositories import WatchlistRepository
from signalist.logger import get_logger
from signalist.services.finnhub_client import FinnhubClient, Quote
from signalist.utils.formatting import format_change_percent, format_price
from signalist.watchlist.reconciler import (
    INVALID_SYMBOL,
    NOT_AUTHENTICATED,
    MutationResult,
    WatchlistReconciler,
)

log = get_logger(__name__)
router = APIRouter(prefix="/watchlist", tags=["watchlist"])


class MembershipUpdate(BaseModel):
    is_member: bool
    company: Optional[str] = Field(None, max_length=200)


class WatchlistItem(BaseModel):
    symbol: str
    company: str
    added_at: Optional[datetime] = None
    price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    price_display: str = "N/A"
    change_display: str = ""


async def _quote_or_none(client: FinnhubClient, symbol: str) -> Optional[Quote]:
    try:
        return await client.fetch_quote(symbol)
    except Exception as e:
        log.warning(f"Quote failed for {symbol}: {e}")
        return None


@router.get("", response_model=List[WatchlistItem])
async def list_watchlist(
    current_user: dict = Depends(get_current_user),
    watchlists: WatchlistRepository = Depends(get_watchlist_repository),
    client: FinnhubClient = Depends(get_finnhub),
):
    """Watchlist entries with live quotes; a failed quote leaves the price fields empty"""
    try:
        entries = await watchlists.list_for_user(str(current_user["_id"]))
    except Exception as e:
        log.error(f"Watchlist load failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load watchlist")

    quotes = await asyncio.gather(*(_quote_or_none(client, e["symbol"]) for e in entries))

    items = []
    for entry, quote in zip(entries, quotes):
        item = WatchlistItem(
            symbol=entry["symbol"],
            company=entry.get("company") or entry["symbol"],
            added_at=entry.get("created_at"),
        )
        if quote is not None:
            item.price = quote.price
            item.change = quote.change
            item.change_percent = quote.change_percent
            item.price_display = format_price(quote.price)
            item.change_display = format_change_percent(quote.change_percent)
        items.append(item)
    return items


@router.put("/{symbol}", response_model=MutationResult)
async def set_membership(
    symbol: str,
    body: MembershipUpdate,
    current_user: Optional[dict] = Depends(get_optional_user),
    reconciler: WatchlistReconciler = Depends(get_reconciler),
):
    """Make `symbol` a member (or not) of the caller's watchlist; repeats are no-ops"""
    owner_id = str(current_user["_id"]) if current_user else None
    result = await reconciler.set_membership(owner_id, symbol, body.is_member, body.company)

    if result.success:
        return result
    if result.error == NOT_AUTHENTICATED:
        code = status.HTTP_401_UNAUTHORIZED
    elif result.error == INVALID_SYMBOL:
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=result.model_dump())
