"""
Trade analytics engine.

Pure functions that turn a list of trades into the statistics, time series
and breakdowns shown on the dashboard. Nothing here mutates its input or
keeps state between calls.

Rounding follows the dashboard's historical behaviour: values are scaled,
rounded half toward positive infinity, and scaled back. Path-dependent
figures (drawdown, streaks, cumulative PnL) are computed over the trades
sorted by entry time, whatever order the caller supplies them in.
"""
import math
from typing import Iterable, List

import numpy as np
import pandas as pd

from perpjournal.numbers import percent, round_half_up, round_int
from perpjournal.types import (
    FEE_SPLIT,
    ORDER_TYPES,
    SESSIONS,
    DailyPnl,
    DashboardReport,
    FeeBreakdown,
    OrderTypePerformance,
    PortfolioStats,
    SessionPerformance,
    SymbolPerformance,
    Trade,
)

__all__ = [
    "compute_stats",
    "compute_daily_pnl",
    "compute_fee_breakdown",
    "compute_symbol_performance",
    "compute_session_performance",
    "compute_order_type_performance",
    "build_dashboard",
]

_NUMERIC_COLUMNS = ["entry_price", "exit_price", "size", "leverage", "pnl", "pnl_percent", "fees", "duration"]

# Standard deviations below this are treated as zero.
_STD_EPSILON = 1e-12


def _mean(total: float, count: int) -> float:
    if count == 0:
        return 0.0
    return total / count


def _to_frame(trades: Iterable[Trade]) -> pd.DataFrame:
    """
    Projects trades onto a DataFrame, one row per trade, in chronological order.

    Ties on entry time are broken by id so the row order never depends on the
    order of the input.
    """
    records = [t.model_dump() for t in trades]
    df = pd.DataFrame(records, columns=list(Trade.model_fields))

    df["entry_time"] = pd.to_datetime(df["entry_time"], utc=True)
    df["exit_time"] = pd.to_datetime(df["exit_time"], utc=True)
    df[_NUMERIC_COLUMNS] = df[_NUMERIC_COLUMNS].astype(float)
    df["is_win"] = df["status"] == "win"

    return df.sort_values(["entry_time", "id"], kind="mergesort").reset_index(drop=True)


def _running_drawdown(cum_pnl: pd.Series) -> pd.Series:
    """Distance below the running peak; the peak starts at 0, not at the first value."""
    peak = cum_pnl.cummax().clip(lower=0.0)
    return peak - cum_pnl


def _longest_streak(status: pd.Series, value: str) -> int:
    hits = status == value
    if not hits.any():
        return 0
    run_id = (hits != hits.shift()).cumsum()
    return int(hits.groupby(run_id).sum().max())


def _sharpe(pnl_percent: pd.Series) -> float:
    """
    Mean per-trade return over its sample standard deviation. Not annualized.

    Returns 0 for fewer than two trades or when the standard deviation is
    below 1e-12, i.e. identical returns up to float noise.
    """
    if len(pnl_percent) < 2:
        return 0.0
    returns = pnl_percent.to_numpy() / 100
    std = float(np.std(returns, ddof=1))
    if not math.isfinite(std) or std < _STD_EPSILON:
        return 0.0
    return float(np.mean(returns)) / std


def compute_stats(trades: List[Trade]) -> PortfolioStats:
    """
    Computes the portfolio-level statistics for a set of trades.

    Open trades count toward totals, volume and the long/short split, but are
    neither wins nor losses. An empty input yields all-zero stats.
    """
    if not trades:
        return PortfolioStats()

    df = _to_frame(trades)
    count = len(df)
    wins = df.loc[df["status"] == "win", "pnl"]
    losses = df.loc[df["status"] == "loss", "pnl"]
    long_count = int((df["side"] == "long").sum())

    total_pnl = float(df["pnl"].sum())
    total_volume = float(df["size"].sum())
    gross_profit = float(wins.sum())
    gross_loss = abs(float(losses.sum()))

    drawdown = _running_drawdown(df["pnl"].cumsum())

    return PortfolioStats(
        total_pnl=round_half_up(total_pnl),
        # Percent of notional volume, not of margin.
        total_pnl_percent=percent(total_pnl, total_volume),
        win_rate=percent(len(wins), count),
        total_trades=count,
        total_volume=round_int(total_volume),
        total_fees=round_half_up(float(df["fees"].sum())),
        avg_duration=round_int(_mean(float(df["duration"].sum()), count)),
        long_ratio=percent(long_count, count),
        short_ratio=percent(count - long_count, count),
        largest_gain=round_half_up(float(wins.max())) if len(wins) else 0.0,
        largest_loss=round_half_up(float(losses.min())) if len(losses) else 0.0,
        avg_win=round_half_up(_mean(gross_profit, len(wins))),
        avg_loss=round_half_up(_mean(gross_loss, len(losses))),
        profit_factor=round_half_up(gross_profit / gross_loss) if gross_loss else 0.0,
        max_drawdown=round_half_up(float(drawdown.max())),
        sharpe_ratio=round_half_up(_sharpe(df["pnl_percent"])),
        consecutive_wins=_longest_streak(df["status"], "win"),
        consecutive_losses=_longest_streak(df["status"], "loss"),
    )


def compute_daily_pnl(trades: List[Trade]) -> List[DailyPnl]:
    """
    Aggregates trades by the UTC calendar date of their entry.

    Only dates with at least one trade appear, in ascending order. ``cum_pnl``
    and ``drawdown`` run across the whole sequence of dates.
    """
    if not trades:
        return []

    df = _to_frame(trades)
    df["date"] = df["entry_time"].dt.strftime("%Y-%m-%d")

    daily = df.groupby("date", sort=True).agg(
        pnl=("pnl", "sum"),
        trades=("pnl", "size"),
        volume=("size", "sum"),
    )
    daily["cum_pnl"] = daily["pnl"].cumsum()
    daily["drawdown"] = _running_drawdown(daily["cum_pnl"])

    return [
        DailyPnl(
            date=str(row.Index),
            pnl=round_half_up(row.pnl),
            cum_pnl=round_half_up(row.cum_pnl),
            drawdown=round_half_up(row.drawdown),
            trades=int(row.trades),
            volume=round_int(row.volume),
        )
        for row in daily.itertuples()
    ]


def compute_fee_breakdown(trades: List[Trade]) -> List[FeeBreakdown]:
    """
    Splits total fees into taker, maker and funding buckets.

    The split uses fixed weights (55/35/10) for display purposes. It is not
    derived from how each fee was actually charged.
    """
    total_fees = math.fsum(t.fees for t in trades)
    return [
        FeeBreakdown(type=label, amount=round_half_up(total_fees * weight / 100), percentage=weight)
        for label, weight in FEE_SPLIT
    ]


def compute_symbol_performance(trades: List[Trade]) -> List[SymbolPerformance]:
    """Per-symbol results, best total PnL first. Ties keep alphabetical order."""
    if not trades:
        return []

    df = _to_frame(trades)
    grouped = df.groupby("symbol", sort=True).agg(
        trades=("pnl", "size"),
        wins=("is_win", "sum"),
        total_pnl=("pnl", "sum"),
        volume=("size", "sum"),
    )

    rows = [
        SymbolPerformance(
            symbol=str(row.Index),
            trades=int(row.trades),
            win_rate=percent(row.wins, row.trades),
            total_pnl=round_half_up(row.total_pnl),
            avg_pnl=round_half_up(row.total_pnl / row.trades),
            volume=round_int(row.volume),
        )
        for row in grouped.itertuples()
    ]
    return sorted(rows, key=lambda r: -r.total_pnl)


def compute_session_performance(trades: List[Trade]) -> List[SessionPerformance]:
    """Results bucketed by the UTC hour of entry. Always one row per session."""
    df = _to_frame(trades)
    hours = df["entry_time"].dt.hour

    results = []
    for name, start, end in SESSIONS:
        bucket = df[(hours >= start) & (hours < end)]
        results.append(
            SessionPerformance(
                session=name,
                trades=len(bucket),
                win_rate=percent(int(bucket["is_win"].sum()), len(bucket)),
                pnl=round_half_up(float(bucket["pnl"].sum())),
            )
        )
    return results


def compute_order_type_performance(trades: List[Trade]) -> List[OrderTypePerformance]:
    """Results per order type, in fixed order. Always one row per type."""
    df = _to_frame(trades)

    results = []
    for order_type in ORDER_TYPES:
        bucket = df[df["order_type"] == order_type]
        pnl = float(bucket["pnl"].sum())
        results.append(
            OrderTypePerformance(
                type=order_type,
                trades=len(bucket),
                win_rate=percent(int(bucket["is_win"].sum()), len(bucket)),
                pnl=round_half_up(pnl),
                avg_pnl=round_half_up(_mean(pnl, len(bucket))),
            )
        )
    return results


def build_dashboard(trades: List[Trade]) -> DashboardReport:
    """Runs every computation over the same trades."""
    return DashboardReport(
        stats=compute_stats(trades),
        daily_pnl=compute_daily_pnl(trades),
        fees=compute_fee_breakdown(trades),
        symbols=compute_symbol_performance(trades),
        sessions=compute_session_performance(trades),
        order_types=compute_order_type_performance(trades),
    )
