"""
Building trades from storage rows, manual entries and trade files.

This is the boundary where raw data is validated. Rows use the snake_case
column names of the ``trades`` table.
"""
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from pydantic import ValidationError

from perpjournal.numbers import round_half_up, round_int
from perpjournal.types import OrderType, Side, Trade

__all__ = [
    "TradeLoadError",
    "trade_from_row",
    "new_trade",
    "annotate_trade",
    "remove_trade",
    "load_trades",
    "save_trades",
]

log = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".json", ".parquet")


class TradeLoadError(ValueError):
    """Raised when a trade file cannot be read or contains an invalid row."""


def _missing(value: Any) -> bool:
    return value is None or value == "" or (not isinstance(value, str) and bool(pd.isna(value)))


def _number(row: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = row.get(key)
    return default if _missing(value) else float(value)


def _timestamp(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def trade_from_row(row: Mapping[str, Any]) -> Trade:
    """
    Maps a storage row onto a Trade, filling the defaults storage leaves out.

    Missing numbers become 0, a missing exit time falls back to the entry
    time, and a status other than win/loss/open is derived from the PnL sign.
    """
    pnl = _number(row, "pnl")
    status = row.get("status")
    if status not in ("win", "loss", "open"):
        status = "win" if pnl >= 0 else "loss"

    entry_time = _timestamp(row.get("entry_time"))
    exit_time = row.get("exit_time")
    exit_time = entry_time if _missing(exit_time) else _timestamp(exit_time)

    note = row.get("note")
    duration = row.get("duration")

    return Trade(
        id=str(uuid.uuid4()) if _missing(row.get("id")) else str(row.get("id")),
        symbol=row.get("symbol"),
        side=row.get("side"),
        order_type=row.get("order_type") or "market",
        entry_price=_number(row, "entry_price"),
        exit_price=_number(row, "exit_price"),
        size=_number(row, "size"),
        leverage=_number(row, "leverage", default=1.0),
        pnl=pnl,
        pnl_percent=_number(row, "pnl_percent"),
        fees=_number(row, "fees"),
        entry_time=entry_time,
        exit_time=exit_time,
        duration=0 if _missing(duration) else int(duration),
        status=status,
        note=None if _missing(note) else str(note),
    )


def new_trade(
    symbol: str,
    side: Side,
    entry_price: float,
    size: float,
    entry_time: datetime,
    order_type: OrderType = "market",
    exit_price: float = 0.0,
    leverage: float = 1.0,
    fees: float = 0.0,
    exit_time: Optional[datetime] = None,
    note: Optional[str] = None,
    trade_id: Optional[str] = None,
) -> Trade:
    """
    Records a manually entered trade.

    With an exit price and a known entry price the trade is closed: PnL is
    the leveraged price move on ``size`` minus fees, and the status follows
    its sign. Otherwise the trade stays open with zero PnL and duration.
    """
    pnl = 0.0
    duration = 0
    status = "open"

    if exit_price > 0 and entry_price > 0:
        direction = 1 if side == "long" else -1
        pnl = round_half_up((exit_price - entry_price) / entry_price * size * leverage * direction - fees)
        status = "win" if pnl >= 0 else "loss"
        if exit_time is not None:
            duration = round_int((exit_time - entry_time).total_seconds() / 60)

    return Trade(
        id=trade_id or str(uuid.uuid4()),
        symbol=symbol,
        side=side,
        order_type=order_type,
        entry_price=entry_price,
        exit_price=exit_price,
        size=size,
        leverage=leverage,
        pnl=pnl,
        pnl_percent=round_half_up(pnl / size * 100) if size > 0 else 0.0,
        fees=fees,
        entry_time=entry_time,
        exit_time=exit_time or entry_time,
        duration=duration,
        status=status,
        note=note or None,
    )


def _index_of(trades: List[Trade], trade_id: str) -> int:
    for i, trade in enumerate(trades):
        if trade.id == trade_id:
            return i
    raise KeyError(f"No trade with id '{trade_id}'")


def annotate_trade(trades: List[Trade], trade_id: str, note: Optional[str]) -> List[Trade]:
    """
    Returns a new list where the trade with ``trade_id`` carries ``note``.
    An empty note clears it. Raises KeyError for an unknown id.
    """
    index = _index_of(trades, trade_id)
    updated = list(trades)
    updated[index] = trades[index].model_copy(update={"note": note or None})
    return updated


def remove_trade(trades: List[Trade], trade_id: str) -> List[Trade]:
    """Returns a new list without the trade with ``trade_id``. Raises KeyError for an unknown id."""
    index = _index_of(trades, trade_id)
    return trades[:index] + trades[index + 1:]


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype={"id": str})
    if suffix == ".json":
        return pd.read_json(path, orient="records", dtype=False)
    if suffix == ".parquet":
        return pd.read_parquet(path)
    raise TradeLoadError(f"Unsupported trade file type '{suffix}'. Expected one of {SUPPORTED_SUFFIXES}.")


# impure
def load_trades(path: Path) -> List[Trade]:
    """
    Reads a trade file (.csv, .json or .parquet) into validated trades.
    #impure: Reads from the filesystem.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Trade file not found: {path}")

    df = _read_frame(path)
    records: List[Dict[str, Any]] = df.to_dict(orient="records")

    trades = []
    for index, row in enumerate(records):
        try:
            trades.append(trade_from_row(row))
        except ValidationError as e:
            raise TradeLoadError(f"Invalid trade at row {index} of {path}: {e}") from e

    log.info("Loaded %d trades from %s", len(trades), path)
    return trades


# impure
def save_trades(trades: List[Trade], path: Path) -> None:
    """
    Writes trades using the storage column names.
    #impure: Writes to the filesystem.
    """
    df = pd.DataFrame([t.model_dump(mode="json") for t in trades], columns=list(Trade.model_fields))
    suffix = path.suffix.lower()

    if suffix == ".csv":
        df.to_csv(path, index=False)
    elif suffix == ".json":
        df.to_json(path, orient="records", indent=2, double_precision=15)
    elif suffix == ".parquet":
        df.to_parquet(path, index=False)
    else:
        raise TradeLoadError(f"Unsupported trade file type '{suffix}'. Expected one of {SUPPORTED_SUFFIXES}.")

    log.info("Wrote %d trades to %s", len(trades), path)
