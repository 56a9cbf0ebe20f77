# signalist/services/finnhub_client.py
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel

from signalist.core.config import settings
from signalist.logger import get_logger
from signalist.news.articles import RawArticle, parse_articles
from signalist.utils.formatting import DateRange

log = get_logger(__name__)


class FinnhubError(Exception):
    """Raised when Finnhub can't return data properly."""


class FinnhubConfigError(FinnhubError):
    """Raised when the API key is not configured."""


class Quote(BaseModel):
    symbol: str
    price: float
    change: Optional[float] = None
    change_percent: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    previous_close: Optional[float] = None


class FinnhubClient:
    """Async Finnhub REST client.

    Company/general news, search and profile responses are cached in-process
    for a per-call TTL; quotes never are.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self.base_url = (base_url or settings.FINNHUB_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None
        self._cache: Dict[str, Tuple[float, Any]] = {}

    # ===================== PLUMBING =====================

    @property
    def api_key(self) -> str:
        key = self._api_key if self._api_key is not None else settings.FINNHUB_API_KEY
        return key or ""

    def ensure_api_key(self) -> str:
        key = self.api_key
        if not key:
            raise FinnhubConfigError("FINNHUB_API_KEY is not configured")
        return key

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()
        self._http = None

    def clear_cache(self) -> None:
        self._cache.clear()

    @staticmethod
    def _cache_key(path: str, params: Dict[str, Any]) -> str:
        return path + "?" + "&".join(f"{k}={params[k]}" for k in sorted(params))

    def _cache_get(self, key: str):
        it = self._cache.get(key)
        if not it:
            return None
        expires_at, val = it
        if time.monotonic() > expires_at:
            self._cache.pop(key, None)
            return None
        return val

    def _cache_put(self, key: str, val: Any, ttl: int) -> None:
        self._cache[key] = (time.monotonic() + ttl, val)

    async def _get_json(self, path: str, params: Dict[str, Any], cache_seconds: Optional[int] = None) -> Any:
        key = self._cache_key(path, params)
        if cache_seconds:
            cached = self._cache_get(key)
            if cached is not None:
                return cached

        token = self.ensure_api_key()
        try:
            r = await self._client().get(path, params={**params, "token": token})
            if r.status_code in (401, 403):
                raise FinnhubError(f"Finnhub denied access ({r.status_code}).")
            if r.status_code == 429:
                raise FinnhubError("Finnhub rate limit exceeded (429).")
            r.raise_for_status()
            data = r.json()
        except FinnhubError:
            raise
        except httpx.HTTPStatusError as e:
            raise FinnhubError(f"Fetch failed {e.response.status_code}: {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise FinnhubError(f"Finnhub request failed: {e.__class__.__name__}: {e}") from e
        except ValueError as e:
            raise FinnhubError("Finnhub returned invalid JSON") from e

        if cache_seconds:
            self._cache_put(key, data, cache_seconds)
        return data

    # ===================== NEWS =====================

    async def fetch_company_news(self, symbol: str, date_range: DateRange) -> List[RawArticle]:
        data = await self._get_json(
            "/company-news",
            {"symbol": symbol, **date_range.as_params()},
            cache_seconds=settings.NEWS_CACHE_SECONDS,
        )
        return parse_articles(data)

    async def fetch_general_news(self, category: str = "general") -> List[RawArticle]:
        data = await self._get_json(
            "/news",
            {"category": category},
            cache_seconds=settings.NEWS_CACHE_SECONDS,
        )
        return parse_articles(data)

    # ===================== QUOTES =====================

    async def fetch_quote(self, symbol: str) -> Quote:
        """Latest quote; always fetched fresh."""
        data = await self._get_json("/quote", {"symbol": symbol.upper()})
        if not isinstance(data, dict) or data.get("c") is None:
            raise FinnhubError(f"Finnhub quote missing field 'c' for {symbol}")
        return Quote(
            symbol=symbol.upper(),
            price=float(data["c"]),
            change=data.get("d"),
            change_percent=data.get("dp"),
            high=data.get("h"),
            low=data.get("l"),
            open=data.get("o"),
            previous_close=data.get("pc"),
        )

    # ===================== SEARCH =====================

    async def search_symbols(self, query: str) -> List[Dict[str, Any]]:
        data = await self._get_json("/search", {"q": query}, cache_seconds=settings.SEARCH_CACHE_SECONDS)
        result = data.get("result") if isinstance(data, dict) else None
        return result if isinstance(result, list) else []

    async def fetch_profile(self, symbol: str) -> Dict[str, Any]:
        data = await self._get_json(
            "/stock/profile2", {"symbol": symbol}, cache_seconds=settings.PROFILE_CACHE_SECONDS
        )
        return data if isinstance(data, dict) else {}


# Process-wide instance, closed from the app lifespan
_client: Optional[FinnhubClient] = None


def get_finnhub_client() -> FinnhubClient:
    global _client
    if _client is None:
        _client = FinnhubClient()
    return _client


async def close_finnhub_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        log.info("Finnhub client closed")
        _client = None
