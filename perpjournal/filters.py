"""
Symbol and date-range filters applied before computing dashboard views.
"""
from datetime import datetime, timezone
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from perpjournal.types import Trade

__all__ = ["DATE_RANGES", "ALL_SYMBOLS", "list_symbols", "filter_trades"]

DATE_RANGES = ("7d", "14d", "30d", "90d", "All")
ALL_SYMBOLS = "all"


def list_symbols(trades: List[Trade]) -> List[str]:
    """Distinct symbols, sorted."""
    return sorted({t.symbol for t in trades})


def _cutoff(date_range: str, now: datetime) -> datetime:
    days = int(date_range.rstrip("d"))
    return now - relativedelta(days=days)


def filter_trades(
    trades: List[Trade],
    symbol: str = ALL_SYMBOLS,
    date_range: str = "All",
    now: Optional[datetime] = None,
) -> List[Trade]:
    """
    Keeps trades on ``symbol`` entered within ``date_range`` of ``now``.

    ``symbol="all"`` and ``date_range="All"`` disable the respective filter.
    The input list is left untouched and the original order is kept.
    """
    if date_range not in DATE_RANGES:
        raise ValueError(f"Unknown date range '{date_range}'. Expected one of {DATE_RANGES}.")

    result = trades
    if symbol != ALL_SYMBOLS:
        result = [t for t in result if t.symbol == symbol]
    if date_range != "All":
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = _cutoff(date_range, now)
        result = [t for t in result if t.entry_time >= cutoff]
    return list(result)
