# tests/helpers.py
"""In-memory stand-ins for Mongo and Finnhub, plus article factories."""
import itertools
from types import SimpleNamespace

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from signalist.news.articles import RawArticle
from signalist.services.finnhub_client import FinnhubConfigError, FinnhubError, Quote

BASE_TS = 1_760_000_000
_ids = itertools.count(1000)


def make_article(symbol="AAPL", ts=None, **overrides):
    """Finnhub-shaped article dict"""
    n = next(_ids)
    art = {
        "id": n,
        "headline": f"{symbol} headline {n}",
        "summary": f"{symbol} summary {n}",
        "source": "Reuters",
        "url": f"https://example.com/{symbol.lower()}/{n}",
        "datetime": ts if ts is not None else BASE_TS + n,
        "image": "",
        "category": "company",
        "related": symbol,
    }
    art.update(overrides)
    return art


# ========== IN-MEMORY MONGO ==========

def _matches(doc, filt):
    for key, cond in (filt or {}).items():
        if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$exists" and (key in doc) != arg:
                    return False
                if op == "$nin" and doc.get(key) in arg:
                    return False
                if op == "$in" and doc.get(key) not in arg:
                    return False
        elif doc.get(key) != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        for key, d in reversed(keys):
            self._docs.sort(key=lambda x: x.get(key), reverse=d < 0)
        return self

    def limit(self, n):
        if n:
            self._docs = self._docs[:n]
        return self

    async def to_list(self, length=None):
        return list(self._docs[:length] if length else self._docs)


class FakeCollection:
    """Just enough of a Motor collection for the repositories, unique index included."""

    def __init__(self, unique=()):
        self.docs = []
        self.unique = tuple(unique)

    def _check_unique(self, new):
        if not self.unique:
            return
        key = tuple(new.get(k) for k in self.unique)
        for d in self.docs:
            if tuple(d.get(k) for k in self.unique) == key:
                raise DuplicateKeyError(f"E11000 duplicate key {key}")

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, filt):
        for d in self.docs:
            if _matches(d, filt):
                return dict(d)
        return None

    def find(self, filt=None, projection=None):
        return FakeCursor([dict(d) for d in self.docs if _matches(d, filt)])

    async def update_one(self, filt, update, upsert=False):
        for d in self.docs:
            if _matches(d, filt):
                d.update(update.get("$set", {}))
                return SimpleNamespace(modified_count=1 if "$set" in update else 0, upserted_id=None)
        if not upsert:
            return SimpleNamespace(modified_count=0, upserted_id=None)
        new = {k: v for k, v in filt.items() if not isinstance(v, dict)}
        new.update(update.get("$setOnInsert", {}))
        new.update(update.get("$set", {}))
        result = await self.insert_one(new)
        return SimpleNamespace(modified_count=0, upserted_id=result.inserted_id)

    async def delete_one(self, filt):
        for i, d in enumerate(self.docs):
            if _matches(d, filt):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def create_index(self, keys, **kwargs):
        return kwargs.get("name", str(keys))


class FakeDB:
    UNIQUE = {"users": ("email",), "watchlists": ("user_id", "symbol")}

    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(self.UNIQUE.get(name, ()))
        return self.collections[name]

    async def command(self, name):
        return {"ok": 1}


# ========== FINNHUB STUB ==========

class FakeFinnhub:
    def __init__(self, company=None, general=None, quotes=None, profiles=None, search=None,
                 fail_symbols=(), general_error=None, api_key="test-key"):
        self.company = company or {}
        self.general = general or []
        self.quotes = quotes or {}
        self.profiles = profiles or {}
        self.search = search or []
        self.fail_symbols = set(fail_symbols)
        self.general_error = general_error
        self.api_key = api_key
        self.company_calls = []
        self.general_calls = 0

    def ensure_api_key(self):
        if not self.api_key:
            raise FinnhubConfigError("FINNHUB_API_KEY is not configured")
        return self.api_key

    async def fetch_company_news(self, symbol, date_range):
        self.ensure_api_key()
        self.company_calls.append(symbol)
        if symbol in self.fail_symbols:
            raise FinnhubError(f"boom {symbol}")
        return [RawArticle(**a) for a in self.company.get(symbol, [])]

    async def fetch_general_news(self, category="general"):
        self.ensure_api_key()
        self.general_calls += 1
        if self.general_error:
            raise self.general_error
        return [RawArticle(**a) for a in self.general]

    async def fetch_quote(self, symbol):
        if symbol not in self.quotes:
            raise FinnhubError(f"no quote for {symbol}")
        price, dp = self.quotes[symbol]
        return Quote(symbol=symbol, price=price, change=1.0, change_percent=dp)

    async def fetch_profile(self, symbol):
        if symbol in self.fail_symbols:
            raise FinnhubError(f"no profile for {symbol}")
        return self.profiles.get(symbol, {})

    async def search_symbols(self, query):
        return list(self.search)

