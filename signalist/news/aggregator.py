# signalist/news/aggregator.py
from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Sequence, Tuple

from signalist.news.articles import (
    FormattedArticle,
    RawArticle,
    format_article,
    validate_article,
)

DEFAULT_CAP = 6
DEFAULT_DEDUPE_SCAN_LIMIT = 20


def sort_newest_first(articles: Iterable[FormattedArticle]) -> List[FormattedArticle]:
    # sorted() is stable, so equal timestamps keep their insertion order
    return sorted(articles, key=lambda a: -a.datetime)


def round_robin_collect(
    symbols: Sequence[str],
    per_symbol: Dict[str, List[RawArticle]],
    cap: int = DEFAULT_CAP,
) -> List[FormattedArticle]:
    """Take one article per symbol per round, in caller order, until `cap` is reached.

    Selection is round-robin so one noisy symbol cannot crowd out the rest;
    the returned list is re-sorted newest first.
    """
    queues = {s: deque(per_symbol.get(s) or []) for s in symbols}
    collected: List[FormattedArticle] = []

    for round_index in range(cap):
        for sym in symbols:
            queue = queues[sym]
            if not queue:
                continue
            article = queue.popleft()
            if not validate_article(article):
                continue
            collected.append(format_article(article, True, sym, round_index))
            if len(collected) >= cap:
                break
        if len(collected) >= cap:
            break

    if not collected:
        return []
    return sort_newest_first(collected)[:cap]


def _dedupe_key(article: RawArticle) -> Tuple[str, str, str]:
    return (str(article.id), article.url or "", article.headline or "")


def dedupe_articles(
    articles: Iterable[RawArticle],
    limit: int = DEFAULT_DEDUPE_SCAN_LIMIT,
) -> List[RawArticle]:
    """Drop invalid articles and exact (id, url, headline) repeats; first one wins.

    Stops once `limit` unique articles have been accumulated.
    """
    seen = set()
    unique: List[RawArticle] = []
    for art in articles:
        if not validate_article(art):
            continue
        key = _dedupe_key(art)
        if key in seen:
            continue
        seen.add(key)
        unique.append(art)
        if len(unique) >= limit:
            break
    return unique


def select_general_news(
    articles: Iterable[RawArticle],
    cap: int = DEFAULT_CAP,
    scan_limit: int = DEFAULT_DEDUPE_SCAN_LIMIT,
) -> List[FormattedArticle]:
    """Dedupe, keep the `cap` most recent and format them as general news."""
    unique = dedupe_articles(articles, scan_limit)
    newest = sorted(unique, key=lambda a: -(a.datetime or 0))[:cap]
    return [format_article(a, False, None, idx) for idx, a in enumerate(newest)]
