# signalist/utils/formatting.py
from __future__ import annotations

import time
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DateRange(BaseModel):
    """Inclusive calendar window sent to the news source as YYYY-MM-DD."""
    model_config = ConfigDict(frozen=True)

    from_date: date
    to_date: date

    def as_params(self) -> dict:
        return {"from": self.from_date.isoformat(), "to": self.to_date.isoformat()}


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def get_date_range(days: int, today: Optional[date] = None) -> DateRange:
    end = today or _utc_today()
    return DateRange(from_date=end - timedelta(days=days), to_date=end)


def get_formatted_today_date(today: Optional[date] = None) -> str:
    d = today or _utc_today()
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def format_time_ago(timestamp: int, now: Optional[float] = None) -> str:
    diff_seconds = (now if now is not None else time.time()) - timestamp
    hours = int(diff_seconds // 3600)
    minutes = int(diff_seconds // 60)

    if hours > 24:
        days = hours // 24
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours >= 1:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return f"{minutes} minute{'s' if minutes > 1 else ''} ago"


def format_price(price: Optional[float]) -> str:
    if price is None:
        return "N/A"
    return f"${price:,.2f}"


def format_change_percent(change_percent: Optional[float]) -> str:
    if not change_percent:
        return ""
    sign = "+" if change_percent > 0 else ""
    return f"{sign}{change_percent:.2f}%"
