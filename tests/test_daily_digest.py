# tests/test_daily_digest.py
from unittest.mock import AsyncMock

from signalist.news.articles import FormattedArticle
from signalist.news.service import NewsFetchError
from signalist.tasks.daily_digest import run_daily_news_digest
from tests.helpers import BASE_TS


def art(tag):
    return FormattedArticle(id=tag, headline=tag, summary="...", source="Reuters",
                            url=f"https://x/{tag}", datetime=BASE_TS, category="company", related=tag)


async def seed(user_repo, watchlist_repo, email, name, symbols=()):
    user_id = await user_repo.create({"email": email, "name": name, "hashed_password": "x", "is_active": True})
    for s in symbols:
        await watchlist_repo.upsert_entry(user_id, s, s)
    return user_id


async def test_no_users(user_repo, watchlist_repo):
    send = AsyncMock(return_value=True)
    out = await run_daily_news_digest(user_repo, watchlist_repo, news=AsyncMock(), send=send)
    assert out["success"] is False
    assert out["sent"] == 0
    send.assert_not_called()


async def test_watchlist_news_then_fallback(user_repo, watchlist_repo):
    await seed(user_repo, watchlist_repo, "a@x.io", "A", ["AAPL"])
    await seed(user_repo, watchlist_repo, "b@x.io", "B")

    async def news(symbols=None):
        if symbols:
            return [art(s) for s in symbols] * 4
        return [art("GEN")]

    send = AsyncMock(return_value=True)
    out = await run_daily_news_digest(user_repo, watchlist_repo, news=news, send=send)

    assert out == {"success": True, "sent": 2, "skipped": 0, "message": "Daily news summary emails processed"}
    by_email = {c.args[0]: c.args[2] for c in send.await_args_list}
    assert len(by_email["a@x.io"]) == 4
    assert by_email["b@x.io"][0].id == "GEN"


async def test_watchlist_error_falls_back_to_general(user_repo, watchlist_repo):
    await seed(user_repo, watchlist_repo, "a@x.io", "A", ["AAPL"])

    async def news(symbols=None):
        if symbols:
            raise NewsFetchError()
        return [art("GEN")]

    send = AsyncMock(return_value=True)
    out = await run_daily_news_digest(user_repo, watchlist_repo, news=news, send=send)
    assert out["sent"] == 1
    assert send.await_args.args[2][0].id == "GEN"


async def test_user_without_articles_skipped(user_repo, watchlist_repo):
    await seed(user_repo, watchlist_repo, "a@x.io", "A")
    await seed(user_repo, watchlist_repo, "b@x.io", "B")

    calls = {"n": 0}

    async def news(symbols=None):
        calls["n"] += 1
        if calls["n"] == 1:
            raise NewsFetchError()
        return [art("GEN")]

    send = AsyncMock(return_value=True)
    out = await run_daily_news_digest(user_repo, watchlist_repo, news=news, send=send)
    assert out["sent"] == 1
    assert out["skipped"] == 1


async def test_failed_send_counted_as_skipped(user_repo, watchlist_repo):
    await seed(user_repo, watchlist_repo, "a@x.io", "A")
    await seed(user_repo, watchlist_repo, "b@x.io", "B")

    async def news(symbols=None):
        return [art("GEN")]

    send = AsyncMock(side_effect=[True, RuntimeError("smtp down")])
    out = await run_daily_news_digest(user_repo, watchlist_repo, news=news, send=send)
    assert out["sent"] == 1
    assert out["skipped"] == 1


async def test_users_without_name_ignored(user_repo, watchlist_repo):
    await user_repo.create({"email": "noname@x.io", "name": "", "hashed_password": "x"})
    send = AsyncMock(return_value=True)
    out = await run_daily_news_digest(user_repo, watchlist_repo, news=AsyncMock(return_value=[art("G")]), send=send)
    assert out["success"] is False
    send.assert_not_called()
