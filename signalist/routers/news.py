# signalist/routers/news.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from signalist.api.deps import get_current_user, get_finnhub, get_watchlist_repository
from signalist.db.repositories import WatchlistRepository
from signalist.logger import get_logger
from signalist.news.articles import FormattedArticle
from signalist.news.service import NewsFetchError, get_news
from signalist.services.finnhub_client import FinnhubClient
from signalist.utils.validators import split_symbols

log = get_logger(__name__)
router = APIRouter(prefix="/news", tags=["news"])


class NewsResponse(BaseModel):
    symbols: List[str]
    articles: List[FormattedArticle]


async def _news_or_502(symbols: List[str], client: FinnhubClient) -> NewsResponse:
    try:
        articles = await get_news(symbols, client=client)
    except NewsFetchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return NewsResponse(symbols=symbols, articles=articles)


@router.get("", response_model=NewsResponse)
async def news(
    symbols: Optional[str] = Query(None, max_length=500, description="Comma separated tickers"),
    client: FinnhubClient = Depends(get_finnhub),
):
    """Company news for `symbols`, or general market news when none are given"""
    return await _news_or_502(split_symbols(symbols), client)


@router.get("/watchlist", response_model=NewsResponse)
async def watchlist_news(
    current_user: dict = Depends(get_current_user),
    watchlists: WatchlistRepository = Depends(get_watchlist_repository),
    client: FinnhubClient = Depends(get_finnhub),
):
    """News for the signed-in user's watchlist"""
    try:
        symbols = await watchlists.list_symbols(str(current_user["_id"]))
    except Exception as e:
        log.error(f"Watchlist lookup failed for news: {e}")
        symbols = []
    return await _news_or_502(symbols, client)
