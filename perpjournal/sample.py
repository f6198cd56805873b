"""
Reproducible demo trades for trying out the dashboard without real data.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import numpy as np

from perpjournal.numbers import round_half_up
from perpjournal.types import ORDER_TYPES, Trade

__all__ = ["SYMBOLS", "generate_trades"]

SYMBOLS = ("SOL-PERP", "BTC-PERP", "ETH-PERP", "BONK-PERP", "JUP-PERP", "WIF-PERP")

# symbol -> (base price, half-width of the random spread around it)
_PRICE_BANDS = {
    "BTC-PERP": (95000.0, 5000.0),
    "ETH-PERP": (3200.0, 300.0),
    "SOL-PERP": (180.0, 30.0),
    "BONK-PERP": (0.000025, 0.000005),
    "JUP-PERP": (1.2, 0.3),
    "WIF-PERP": (2.5, 0.5),
}
_LEVERAGES = (1, 2, 3, 5, 10, 20)
_NOTES = ("Followed the plan", "Broke rules", "News catalyst", "Trend continuation", "Mean reversion play")
_TAKER_FEE = 0.0006
_LOOKBACK = timedelta(days=30)


def generate_trades(count: int = 150, seed: Optional[int] = None, now: Optional[datetime] = None) -> List[Trade]:
    """
    Generates ``count`` closed trades entered during the 30 days before ``now``.

    The same ``seed`` and ``now`` always give the same trades. Results are
    ordered newest first, as the journal lists them.
    """
    rng = np.random.default_rng(seed)
    now = now or datetime.now(timezone.utc)

    trades = []
    for i in range(count):
        symbol = SYMBOLS[rng.integers(len(SYMBOLS))]
        side = "long" if rng.random() > 0.45 else "short"
        order_type = ORDER_TYPES[rng.integers(len(ORDER_TYPES))]
        leverage = _LEVERAGES[rng.integers(len(_LEVERAGES))]

        base, spread = _PRICE_BANDS[symbol]
        entry_price = base + rng.uniform(-spread, spread)
        move = entry_price * rng.uniform(-0.08, 0.1)
        exit_price = entry_price + move if side == "long" else entry_price - move
        size = rng.uniform(100, 50000)

        direction = 1 if side == "long" else -1
        gross = (exit_price - entry_price) / entry_price * size * leverage * direction
        fees = size * _TAKER_FEE * 2
        net = gross - fees
        pnl = round_half_up(net)
        duration = int(rng.uniform(2, 1440))

        entry_time = now - timedelta(seconds=float(rng.uniform(0, _LOOKBACK.total_seconds())))
        exit_time = entry_time + timedelta(minutes=duration)
        note = _NOTES[rng.integers(len(_NOTES))] if rng.random() > 0.7 else None

        trades.append(
            Trade(
                id=f"trade-{i:04d}",
                symbol=symbol,
                side=side,
                order_type=order_type,
                entry_price=entry_price,
                exit_price=exit_price,
                size=size,
                leverage=leverage,
                pnl=pnl,
                pnl_percent=round_half_up(net / size * 100),
                fees=round_half_up(fees),
                entry_time=entry_time,
                exit_time=exit_time,
                duration=duration,
                status="win" if pnl >= 0 else "loss",
                note=note,
            )
        )

    return sorted(trades, key=lambda t: t.entry_time, reverse=True)
