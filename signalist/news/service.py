# signalist/news/service.py
from __future__ import annotations

from typing import List, Optional, Sequence

from signalist.core.config import settings
from signalist.logger import get_logger
from signalist.news.aggregator import round_robin_collect, select_general_news
from signalist.news.articles import FormattedArticle
from signalist.news.fetcher import fetch_company_news_by_symbol
from signalist.services.finnhub_client import FinnhubClient, get_finnhub_client
from signalist.utils.formatting import DateRange
from signalist.utils.validators import clean_symbols

log = get_logger(__name__)


class NewsFetchError(Exception):
    """Generic news failure surfaced to callers."""

    def __init__(self, message: str = "Failed to fetch news"):
        super().__init__(message)


async def get_news(
    symbols: Optional[Sequence[str]] = None,
    cap: Optional[int] = None,
    client: Optional[FinnhubClient] = None,
    date_range: Optional[DateRange] = None,
) -> List[FormattedArticle]:
    """News for a set of symbols, falling back to general market news.

    Per-symbol failures only empty that symbol's queue. A missing API key or a
    failing general-news request raises NewsFetchError.
    """
    client = client or get_finnhub_client()
    if cap is None:
        cap = settings.NEWS_MAX_ARTICLES
    try:
        client.ensure_api_key()
        clean = clean_symbols(symbols)

        if clean:
            per_symbol = await fetch_company_news_by_symbol(client, clean, date_range)
            collected = round_robin_collect(clean, per_symbol, cap)
            if collected:
                return collected
            log.info("No company news for %s, falling back to general news", clean)

        general = await client.fetch_general_news()
        return select_general_news(general, cap, settings.NEWS_DEDUPE_SCAN_LIMIT)
    except Exception as e:
        log.error("get_news error: %s", e)
        raise NewsFetchError() from e
