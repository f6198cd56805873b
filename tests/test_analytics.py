"""
Tests for the trade analytics engine.
"""
import random
from datetime import datetime, timezone
from typing import Any, List

import pytest

from perpjournal.analytics import (
    build_dashboard,
    compute_daily_pnl,
    compute_fee_breakdown,
    compute_order_type_performance,
    compute_session_performance,
    compute_stats,
    compute_symbol_performance,
)
from perpjournal.sample import generate_trades
from perpjournal.types import PortfolioStats, Trade

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def make_trade(trade_id: str, pnl: float, entry_time: str, **overrides: Any) -> Trade:
    """Builds a closed trade whose status and pnl_percent follow from ``pnl``."""
    size = overrides.pop("size", 1000.0)
    fields = {
        "id": trade_id,
        "symbol": "SOL-PERP",
        "side": "long",
        "order_type": "market",
        "entry_price": 150.0,
        "exit_price": 155.0,
        "size": size,
        "pnl": pnl,
        "pnl_percent": pnl / size * 100,
        "fees": 1.0,
        "entry_time": entry_time,
        "duration": 60,
        "status": "win" if pnl >= 0 else "loss",
    }
    fields.update(overrides)
    return Trade(**fields)


@pytest.fixture
def three_trades() -> List[Trade]:
    """A win, a loss, then a win on consecutive days."""
    return [
        make_trade("t1", 100.0, "2024-01-01T00:00:00Z"),
        make_trade("t2", -40.0, "2024-01-02T00:00:00Z"),
        make_trade("t3", 60.0, "2024-01-03T00:00:00Z"),
    ]


@pytest.fixture
def sample_trades() -> List[Trade]:
    return generate_trades(count=80, seed=11, now=NOW)


def test_compute_stats_empty_is_all_zero():
    """No trades means zero everywhere, not NaN and not an exception."""
    stats = compute_stats([])
    assert stats == PortfolioStats()
    assert all(value == 0 for value in stats.model_dump().values())


def test_compute_stats_three_trade_scenario(three_trades: List[Trade]):
    stats = compute_stats(three_trades)

    assert stats.total_trades == 3
    assert stats.total_pnl == 120.0
    assert stats.win_rate == 66.67
    assert stats.total_volume == 3000
    assert stats.total_pnl_percent == 4.0
    assert stats.total_fees == 3.0
    assert stats.avg_duration == 60
    assert stats.consecutive_wins == 1
    assert stats.consecutive_losses == 1
    assert stats.max_drawdown == 40.0
    assert stats.largest_gain == 100.0
    assert stats.largest_loss == -40.0
    assert stats.avg_win == 80.0
    assert stats.avg_loss == 40.0
    assert stats.profit_factor == 4.0
    # returns 0.10, -0.04, 0.06: mean 0.04, sample std 0.0721
    assert stats.sharpe_ratio == pytest.approx(0.55)


def test_compute_stats_sorts_by_entry_time(three_trades: List[Trade]):
    """Drawdown and streaks follow entry time, not input order."""
    shuffled = [three_trades[2], three_trades[0], three_trades[1]]
    assert compute_stats(shuffled) == compute_stats(three_trades)


def test_compute_stats_does_not_mutate_input(three_trades: List[Trade]):
    shuffled = [three_trades[2], three_trades[0], three_trades[1]]
    before = list(shuffled)
    compute_stats(shuffled)
    compute_daily_pnl(shuffled)
    assert shuffled == before


def test_compute_stats_longest_streaks():
    pnls = [10, 20, -5, -5, -5, 30]
    trades = [make_trade(f"t{i}", p, f"2024-02-0{i + 1}T10:00:00Z") for i, p in enumerate(pnls)]
    stats = compute_stats(trades)
    assert stats.consecutive_wins == 2
    assert stats.consecutive_losses == 3


def test_open_trade_breaks_streak_and_is_not_a_win():
    trades = [
        make_trade("a", 50.0, "2024-02-01T10:00:00Z"),
        make_trade("b", 0.0, "2024-02-02T10:00:00Z", status="open", exit_price=0.0, duration=0),
        make_trade("c", 25.0, "2024-02-03T10:00:00Z"),
    ]
    stats = compute_stats(trades)
    assert stats.total_trades == 3
    assert stats.consecutive_wins == 1
    assert stats.consecutive_losses == 0
    assert stats.win_rate == 66.67
    assert stats.avg_loss == 0.0
    assert stats.profit_factor == 0.0


def test_drawdown_counts_from_zero_when_first_trade_loses():
    trades = [
        make_trade("a", -50.0, "2024-02-01T10:00:00Z"),
        make_trade("b", 20.0, "2024-02-02T10:00:00Z"),
    ]
    assert compute_stats(trades).max_drawdown == 50.0


def test_profit_factor_zero_without_losses():
    trades = [make_trade("a", 10.0, "2024-02-01T10:00:00Z"), make_trade("b", 30.0, "2024-02-02T10:00:00Z")]
    stats = compute_stats(trades)
    assert stats.profit_factor == 0.0
    assert stats.largest_loss == 0.0


def test_sharpe_zero_for_single_trade_or_flat_returns():
    single = [make_trade("a", 10.0, "2024-02-01T10:00:00Z")]
    assert compute_stats(single).sharpe_ratio == 0.0

    flat = [make_trade(f"t{i}", 10.0, f"2024-02-0{i + 1}T10:00:00Z") for i in range(3)]
    assert compute_stats(flat).sharpe_ratio == 0.0

    # Returns that differ only by float noise count as flat.
    noisy = [
        make_trade(f"n{i}", 10.0, f"2024-02-0{i + 1}T10:00:00Z", pnl_percent=1.0 + i * 1e-13) for i in range(3)
    ]
    assert compute_stats(noisy).sharpe_ratio == 0.0


def test_long_short_ratio_sums_to_100():
    trades = [
        make_trade("a", 1.0, "2024-02-01T10:00:00Z", side="long"),
        make_trade("b", 1.0, "2024-02-02T10:00:00Z", side="long"),
        make_trade("c", 1.0, "2024-02-03T10:00:00Z", side="short"),
    ]
    stats = compute_stats(trades)
    assert stats.long_ratio == 66.67
    assert stats.short_ratio == 33.33
    assert stats.long_ratio + stats.short_ratio == pytest.approx(100, abs=0.02)


def test_compute_stats_serializes_with_dashboard_keys(three_trades: List[Trade]):
    data = compute_stats(three_trades).model_dump(by_alias=True)
    assert data["totalPnl"] == 120.0
    assert data["totalPnlPercent"] == 4.0
    assert data["consecutiveWins"] == 1
    assert "sharpeRatio" in data


def test_compute_stats_order_independent(sample_trades: List[Trade]):
    shuffled = list(sample_trades)
    random.Random(3).shuffle(shuffled)

    assert compute_stats(shuffled) == compute_stats(sample_trades)
    assert compute_symbol_performance(shuffled) == compute_symbol_performance(sample_trades)
    assert compute_daily_pnl(shuffled) == compute_daily_pnl(sample_trades)


def test_compute_functions_are_idempotent(sample_trades: List[Trade]):
    assert build_dashboard(sample_trades) == build_dashboard(sample_trades)


def test_compute_daily_pnl(three_trades: List[Trade]):
    same_day = make_trade("t4", -70.0, "2024-01-03T18:00:00Z", size=500.0)
    daily = compute_daily_pnl(three_trades + [same_day])

    assert [d.date for d in daily] == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert [d.pnl for d in daily] == [100.0, -40.0, -10.0]
    assert [d.cum_pnl for d in daily] == [100.0, 60.0, 50.0]
    assert [d.drawdown for d in daily] == [0.0, 40.0, 50.0]
    assert [d.trades for d in daily] == [1, 1, 2]
    assert [d.volume for d in daily] == [1000, 1000, 1500]


def test_compute_daily_pnl_uses_utc_date():
    # 23:30 at UTC-2 is 01:30 UTC the next day.
    trade = make_trade("a", 5.0, "2024-01-01T23:30:00-02:00")
    assert compute_daily_pnl([trade])[0].date == "2024-01-02"


def test_compute_daily_pnl_properties(sample_trades: List[Trade]):
    daily = compute_daily_pnl(sample_trades)
    dates = [d.date for d in daily]

    assert dates == sorted(set(dates))
    assert sum(d.trades for d in daily) == len(sample_trades)
    assert daily[-1].cum_pnl == pytest.approx(compute_stats(sample_trades).total_pnl, abs=0.01)


def test_compute_daily_pnl_empty():
    assert compute_daily_pnl([]) == []


def test_compute_fee_breakdown():
    trades = [
        make_trade("a", 1.0, "2024-02-01T10:00:00Z", fees=4.0),
        make_trade("b", 1.0, "2024-02-02T10:00:00Z", fees=6.0),
    ]
    breakdown = compute_fee_breakdown(trades)

    assert [f.type for f in breakdown] == ["Taker Fees", "Maker Fees", "Funding Fees"]
    assert [f.amount for f in breakdown] == [5.5, 3.5, 1.0]
    assert [f.percentage for f in breakdown] == [55, 35, 10]


def test_compute_fee_breakdown_matches_total_fees(sample_trades: List[Trade]):
    total = sum(f.amount for f in compute_fee_breakdown(sample_trades))
    assert total == pytest.approx(compute_stats(sample_trades).total_fees, abs=0.02)


def test_compute_fee_breakdown_empty():
    assert [f.amount for f in compute_fee_breakdown([])] == [0.0, 0.0, 0.0]


def test_compute_symbol_performance():
    trades = [
        make_trade("a", 100.0, "2024-02-01T10:00:00Z", symbol="SOL-PERP"),
        make_trade("b", -40.0, "2024-02-02T10:00:00Z", symbol="SOL-PERP"),
        make_trade("c", 90.0, "2024-02-03T10:00:00Z", symbol="ETH-PERP", size=2500.0),
    ]
    perf = compute_symbol_performance(trades)

    assert [p.symbol for p in perf] == ["ETH-PERP", "SOL-PERP"]
    sol = perf[1]
    assert sol.trades == 2
    assert sol.win_rate == 50.0
    assert sol.total_pnl == 60.0
    assert sol.avg_pnl == 30.0
    assert sol.volume == 2000
    assert perf[0].volume == 2500


def test_compute_symbol_performance_ties_are_alphabetical():
    trades = [
        make_trade("a", 10.0, "2024-02-01T10:00:00Z", symbol="WIF-PERP"),
        make_trade("b", 10.0, "2024-02-02T10:00:00Z", symbol="BTC-PERP"),
    ]
    assert [p.symbol for p in compute_symbol_performance(trades)] == ["BTC-PERP", "WIF-PERP"]


def test_compute_session_performance():
    trades = [
        make_trade("a", 10.0, "2024-02-01T03:00:00Z"),
        make_trade("b", -5.0, "2024-02-01T09:00:00Z"),
        make_trade("c", 20.0, "2024-02-01T16:00:00Z"),
        make_trade("d", -10.0, "2024-02-01T23:59:00Z"),
    ]
    sessions = compute_session_performance(trades)

    assert [s.session for s in sessions] == ["Asia (00-08 UTC)", "Europe (08-16 UTC)", "US (16-24 UTC)"]
    assert [s.trades for s in sessions] == [1, 1, 2]
    assert [s.win_rate for s in sessions] == [100.0, 0.0, 50.0]
    assert [s.pnl for s in sessions] == [10.0, -5.0, 10.0]


def test_compute_order_type_performance():
    trades = [
        make_trade("a", 10.0, "2024-02-01T03:00:00Z", order_type="limit"),
        make_trade("b", -4.0, "2024-02-02T03:00:00Z", order_type="limit"),
        make_trade("c", 7.0, "2024-02-03T03:00:00Z", order_type="stop-market"),
    ]
    perf = compute_order_type_performance(trades)

    assert [p.type for p in perf] == ["market", "limit", "stop-market", "stop-limit"]
    limit = perf[1]
    assert limit.trades == 2
    assert limit.win_rate == 50.0
    assert limit.pnl == 6.0
    assert limit.avg_pnl == 3.0
    assert perf[3].trades == 0
    assert perf[3].win_rate == 0.0
    assert perf[3].avg_pnl == 0.0


def test_fixed_length_breakdowns_on_empty_input():
    sessions = compute_session_performance([])
    order_types = compute_order_type_performance([])

    assert len(sessions) == 3
    assert len(order_types) == 4
    assert all(s.trades == 0 and s.win_rate == 0.0 and s.pnl == 0.0 for s in sessions)
    assert all(o.trades == 0 and o.pnl == 0.0 for o in order_types)


def test_build_dashboard(three_trades: List[Trade]):
    report = build_dashboard(three_trades)

    assert report.stats.total_trades == 3
    assert len(report.daily_pnl) == 3
    assert len(report.fees) == 3
    assert len(report.sessions) == 3
    assert len(report.order_types) == 4
    assert "dailyPnl" in report.model_dump(by_alias=True)
