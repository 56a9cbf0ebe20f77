# signalist/news/articles.py
"""Raw / formatted news article shapes plus the validate and format steps.

Finnhub article payloads look like::

    {"id": 7312, "headline": "...", "summary": "...", "source": "Reuters",
     "url": "https://...", "datetime": 1718200000, "image": "...",
     "category": "company", "related": "AAPL"}

Anything that fails ``validate_article`` never enters the pipeline.
"""

from __future__ import annotations

import itertools
import secrets
import time
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from signalist.logger import get_logger

log = get_logger(__name__)

ELLIPSIS = "..."
COMPANY_SUMMARY_LIMIT = 200
GENERAL_SUMMARY_LIMIT = 150

ArticleId = Union[int, float, str]

_id_seq = itertools.count(1)


class RawArticle(BaseModel):
    """Article as returned by the news source; every field may be missing."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[ArticleId] = None
    headline: Optional[str] = None
    summary: Optional[str] = None
    source: Optional[str] = None
    url: Optional[str] = None
    datetime: Optional[int] = None
    image: Optional[str] = None
    category: Optional[str] = None
    related: Optional[str] = None


class FormattedArticle(BaseModel):
    """Display-ready article. Frozen once produced."""
    model_config = ConfigDict(frozen=True)

    id: ArticleId
    headline: str
    summary: str
    source: str
    url: str
    datetime: int
    image: str = ""
    category: str
    related: str = ""


def parse_articles(payload: Any) -> List[RawArticle]:
    """Coerce an upstream JSON list into RawArticle objects, skipping garbage rows."""
    if not isinstance(payload, list):
        return []
    out: List[RawArticle] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            out.append(RawArticle.model_validate(item))
        except ValidationError as e:
            log.debug("Dropping malformed article %r: %s", item.get("id"), e.error_count())
    return out


def _present(value: Optional[str]) -> bool:
    return isinstance(value, str) and value != ""


def validate_article(article: RawArticle) -> bool:
    """True only when headline, summary, url and a non-zero timestamp are all present."""
    return (
        _present(article.headline)
        and _present(article.summary)
        and _present(article.url)
        and bool(article.datetime)
    )


def filter_valid(articles: Iterable[RawArticle]) -> List[RawArticle]:
    return [a for a in articles if validate_article(a)]


def new_company_article_id() -> str:
    """Process-unique id: millisecond clock, a monotonic counter and a random suffix."""
    return f"{int(time.time() * 1000):x}-{next(_id_seq):x}-{secrets.token_hex(3)}"


def _general_article_id(original: Optional[ArticleId], index: int) -> ArticleId:
    if isinstance(original, bool) or original is None:
        return str(index)
    if isinstance(original, (int, float)):
        return original + index
    return f"{original}-{index}"


def format_article(
    article: RawArticle,
    is_company_news: bool,
    symbol: Optional[str] = None,
    index: int = 0,
) -> FormattedArticle:
    """Normalize a validated article for presentation.

    The summary always gets the ellipsis marker appended, even when it was
    shorter than the truncation limit.
    """
    limit = COMPANY_SUMMARY_LIMIT if is_company_news else GENERAL_SUMMARY_LIMIT
    summary = (article.summary or "").strip()[:limit] + ELLIPSIS

    if is_company_news:
        article_id: ArticleId = new_company_article_id()
        source = article.source or "Company News"
        category = "company"
        related = symbol or ""
    else:
        article_id = _general_article_id(article.id, index)
        source = article.source or "Market News"
        category = article.category or "general"
        related = article.related or ""

    return FormattedArticle(
        id=article_id,
        headline=(article.headline or "").strip(),
        summary=summary,
        source=source,
        url=article.url or "",
        datetime=int(article.datetime or 0),
        image=article.image or "",
        category=category,
        related=related,
    )
