# signalist/news/fetcher.py
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from signalist.core.config import settings
from signalist.logger import get_logger
from signalist.news.articles import RawArticle, filter_valid
from signalist.services.finnhub_client import FinnhubClient, FinnhubConfigError
from signalist.utils.formatting import DateRange, get_date_range

log = get_logger(__name__)


async def _fetch_one(client: FinnhubClient, symbol: str, date_range: DateRange) -> List[RawArticle]:
    try:
        articles = await client.fetch_company_news(symbol, date_range)
    except FinnhubConfigError:
        raise
    except Exception as e:
        log.error("Error fetching company news for %s: %s", symbol, e)
        return []
    return filter_valid(articles)


async def fetch_company_news_by_symbol(
    client: FinnhubClient,
    symbols: Sequence[str],
    date_range: Optional[DateRange] = None,
) -> Dict[str, List[RawArticle]]:
    """Fetch every symbol concurrently; a failing symbol yields an empty list.

    A missing API key is not a per-symbol problem and propagates.
    """
    date_range = date_range or get_date_range(settings.NEWS_LOOKBACK_DAYS)
    results = await asyncio.gather(*(_fetch_one(client, s, date_range) for s in symbols))
    per_symbol = dict(zip(symbols, results))

    log.info(
        "Company news %s..%s: %s",
        date_range.from_date, date_range.to_date,
        {s: len(a) for s, a in per_symbol.items()},
    )
    return per_symbol
