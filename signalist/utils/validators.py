import re
import unicodedata
from typing import Iterable, List

_ALLOWED = re.compile(r"^[A-Z0-9.\-:]{1,16}$")


def normalize_ticker(raw: str) -> str:
    s = unicodedata.normalize("NFKC", str(raw or ""))
    s = s.replace("\u00A0", " ").strip()           # remove NBSP, trim
    s = "".join(ch for ch in s if not ch.isspace())  # remove ALL spaces
    return s.upper()


def validate_ticker(raw: str) -> str:
    t = normalize_ticker(raw)
    if not _ALLOWED.match(t):
        raise ValueError("Invalid ticker format.")
    return t


def clean_symbols(symbols: Iterable[str] | None) -> List[str]:
    """Normalize, drop empties and repeats; first position wins."""
    out: List[str] = []
    for raw in symbols or []:
        t = normalize_ticker(raw)
        if t and t not in out:
            out.append(t)
    return out


def split_symbols(raw: str | None) -> List[str]:
    """'aapl, msft' -> ['AAPL', 'MSFT']"""
    return clean_symbols((raw or "").split(","))
