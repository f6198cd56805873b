"""Tests for the trade model and its validation rules."""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from perpjournal.types import Trade

BASE = {
    "id": "t1",
    "symbol": "SOL-PERP",
    "side": "long",
    "order_type": "limit",
    "entry_price": 150.0,
    "exit_price": 160.0,
    "size": 1000.0,
    "leverage": 3,
    "pnl": 199.0,
    "pnl_percent": 19.9,
    "fees": 1.0,
    "entry_time": "2024-03-01T10:00:00Z",
    "exit_time": "2024-03-01T11:30:00Z",
    "duration": 90,
    "status": "win",
}


def test_trade_parses_iso_timestamps_as_utc():
    trade = Trade(**BASE)
    assert trade.entry_time == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert trade.is_closed


def test_naive_and_offset_timestamps_are_normalized_to_utc():
    trade = Trade(**{**BASE, "entry_time": "2024-03-01T10:00:00", "exit_time": "2024-03-01T13:00:00+02:00"})
    assert trade.entry_time.tzinfo == timezone.utc
    assert trade.exit_time == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)


def test_exit_time_defaults_to_entry_time():
    data = {k: v for k, v in BASE.items() if k != "exit_time"}
    trade = Trade(**{**data, "status": "open", "exit_price": 0.0})
    assert trade.exit_time == trade.entry_time
    assert not trade.is_closed


def test_trade_accepts_dashboard_field_names():
    trade = Trade.model_validate(
        {
            "id": "t2",
            "symbol": "ETH-PERP",
            "side": "short",
            "orderType": "stop-limit",
            "entryPrice": 3200.0,
            "size": 500.0,
            "entryTime": "2024-03-02T08:00:00Z",
            "status": "open",
        }
    )
    assert trade.order_type == "stop-limit"
    assert trade.exit_time == trade.entry_time
    assert trade.model_dump(by_alias=True)["pnlPercent"] == 0.0


@pytest.mark.parametrize(
    "override",
    [
        {"size": 0},
        {"entry_price": -1.0},
        {"fees": -0.5},
        {"leverage": 0.5},
        {"side": "flat"},
        {"order_type": "iceberg"},
        {"status": "pending"},
    ],
)
def test_invalid_trades_are_rejected(override):
    with pytest.raises(ValidationError):
        Trade(**{**BASE, **override})


def test_trade_is_immutable():
    trade = Trade(**BASE)
    with pytest.raises(ValidationError):
        trade.pnl = 0.0
