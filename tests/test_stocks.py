# tests/test_stocks.py
from signalist.core.config import settings
from signalist.services.stocks import search_stocks
from tests.helpers import FakeFinnhub


async def test_query_results_normalized():
    fh = FakeFinnhub(search=[
        {"symbol": "aapl", "description": "APPLE INC", "displaySymbol": "AAPL", "type": "Common Stock"},
        {"symbol": "APLE", "description": "", "displaySymbol": "APLE", "type": ""},
    ])
    out = await search_stocks("apple", ["AAPL"], client=fh)

    assert [r.symbol for r in out] == ["AAPL", "APLE"]
    assert out[0].name == "APPLE INC"
    assert out[0].is_in_watchlist is True
    assert out[0].exchange == "US"
    assert out[1].name == "APLE"
    assert out[1].type == "Stock"
    assert out[1].is_in_watchlist is False


async def test_results_capped():
    fh = FakeFinnhub(search=[{"symbol": f"S{i}", "description": f"Stock {i}"} for i in range(40)])
    out = await search_stocks("s", client=fh)
    assert len(out) == settings.SEARCH_MAX_RESULTS


async def test_blank_query_lists_popular_profiles(monkeypatch):
    monkeypatch.setattr(settings, "POPULAR_SYMBOLS", ["AAPL", "MSFT", "BAD", "NONAME"])
    fh = FakeFinnhub(
        profiles={
            "AAPL": {"name": "Apple Inc", "exchange": "NASDAQ NMS - GLOBAL MARKET"},
            "MSFT": {"ticker": "MSFT"},
        },
        fail_symbols={"BAD"},
    )
    out = await search_stocks("   ", ["MSFT"], client=fh)

    assert [r.symbol for r in out] == ["AAPL", "MSFT"]
    assert out[0].exchange == "NASDAQ NMS - GLOBAL MARKET"
    assert out[0].type == "Common Stock"
    assert out[1].name == "MSFT"
    assert out[1].exchange == "US"
    assert out[1].is_in_watchlist is True


async def test_popular_limited_to_ten(monkeypatch):
    symbols = [f"T{i}" for i in range(14)]
    monkeypatch.setattr(settings, "POPULAR_SYMBOLS", symbols)
    fh = FakeFinnhub(profiles={s: {"name": s} for s in symbols})
    out = await search_stocks(None, client=fh)
    assert [r.symbol for r in out] == symbols[:10]


async def test_missing_key_gives_empty():
    assert await search_stocks("apple", client=FakeFinnhub(api_key="")) == []


async def test_provider_failure_gives_empty():
    fh = FakeFinnhub()

    async def boom(query):
        raise RuntimeError("down")

    fh.search_symbols = boom
    assert await search_stocks("apple", client=fh) == []


def test_search_endpoint_flags_watchlist(client, finnhub):
    finnhub.search = [{"symbol": "NVDA", "description": "NVIDIA"}, {"symbol": "AMD", "description": "AMD"}]
    client.put("/api/watchlist/NVDA", json={"is_member": True})

    r = client.get("/api/stocks/search", params={"q": "chips"})
    assert r.status_code == 200
    flags = {s["symbol"]: s["is_in_watchlist"] for s in r.json()}
    assert flags == {"NVDA": True, "AMD": False}


def test_quote_endpoint(client, finnhub):
    finnhub.quotes = {"AAPL": (200.0, -0.5)}
    r = client.get("/api/stocks/aapl/quote")
    assert r.status_code == 200
    assert r.json()["price"] == 200.0
    assert r.json()["symbol"] == "AAPL"


def test_quote_endpoint_failure(client):
    r = client.get("/api/stocks/ZZZZ/quote")
    assert r.status_code == 502


def test_quote_endpoint_invalid_symbol(client):
    r = client.get("/api/stocks/bad$sym/quote")
    assert r.status_code == 400
