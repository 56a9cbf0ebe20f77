# signalist/tasks/daily_digest.py
"""Daily market news email for every user with an email and a name."""

from __future__ import annotations
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from signalist.db import get_repository
from signalist.db.repositories import UserRepository, WatchlistRepository
from signalist.logger import get_logger
from signalist.news.articles import FormattedArticle
from signalist.news.service import get_news
from signalist.notifications.email import send_news_summary_email
from signalist.utils.formatting import get_formatted_today_date

log = get_logger(__name__)

DIGEST_MAX_ARTICLES = 6

NewsFn = Callable[..., Awaitable[List[FormattedArticle]]]
SendFn = Callable[[str, str, Sequence[FormattedArticle]], Awaitable[bool]]


async def _articles_for_user(
    user: Dict[str, Any],
    watchlists: WatchlistRepository,
    users: UserRepository,
    news: NewsFn,
) -> List[FormattedArticle]:
    try:
        symbols = await watchlists.list_symbols_by_email(users, user["email"])
        articles: List[FormattedArticle] = []
        if symbols:
            try:
                articles = (await news(symbols))[:DIGEST_MAX_ARTICLES]
            except Exception as e:
                log.warning("[DIGEST] watchlist news failed for %s: %s", user["email"], e)
        if not articles:
            articles = (await news())[:DIGEST_MAX_ARTICLES]
        return articles
    except Exception as e:
        log.error("[DIGEST] error preparing news for %s: %s", user["email"], e)
        return []


async def run_daily_news_digest(
    users: Optional[UserRepository] = None,
    watchlists: Optional[WatchlistRepository] = None,
    news: NewsFn = get_news,
    send: SendFn = send_news_summary_email,
) -> Dict[str, Any]:
    """Build and send the digest; returns {success, sent, skipped}.

    A user whose news comes back empty is skipped rather than mailed.
    """
    users = users or get_repository(UserRepository)
    watchlists = watchlists or get_repository(WatchlistRepository)

    recipients = await users.list_for_news_email()
    if not recipients:
        log.info("[DIGEST] no users found for news email")
        return {"success": False, "sent": 0, "skipped": 0, "message": "No users found for news email"}

    per_user = []
    for user in recipients:
        per_user.append((user, await _articles_for_user(user, watchlists, users, news)))

    date = get_formatted_today_date()
    to_send = [(u, arts) for u, arts in per_user if arts]
    skipped = len(per_user) - len(to_send)

    outcomes = await asyncio.gather(
        *(send(u["email"], date, arts) for u, arts in to_send),
        return_exceptions=True,
    )
    sent = 0
    for (user, _), outcome in zip(to_send, outcomes):
        if isinstance(outcome, BaseException):
            log.error("[DIGEST] send failed for %s: %s", user["email"], outcome)
            skipped += 1
        elif outcome:
            sent += 1
        else:
            skipped += 1

    log.info("[DIGEST] %s: sent=%d skipped=%d", date, sent, skipped)
    return {"success": True, "sent": sent, "skipped": skipped, "message": "Daily news summary emails processed"}
