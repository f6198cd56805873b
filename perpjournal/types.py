"""
Shared data structures for the trading journal.

Every model is frozen and serializes with camelCase keys
(``model_dump(by_alias=True)``), which is the shape the dashboard consumes.
"""
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "Side",
    "OrderType",
    "TradeStatus",
    "ORDER_TYPES",
    "SESSIONS",
    "FEE_SPLIT",
    "Trade",
    "PortfolioStats",
    "DailyPnl",
    "FeeBreakdown",
    "SymbolPerformance",
    "SessionPerformance",
    "OrderTypePerformance",
    "DashboardReport",
]

Side = Literal["long", "short"]
OrderType = Literal["market", "limit", "stop-market", "stop-limit"]
TradeStatus = Literal["open", "win", "loss"]

ORDER_TYPES: Tuple[str, ...] = ("market", "limit", "stop-market", "stop-limit")

# (label, first UTC hour, end UTC hour exclusive)
SESSIONS: Tuple[Tuple[str, int, int], ...] = (
    ("Asia (00-08 UTC)", 0, 8),
    ("Europe (08-16 UTC)", 8, 16),
    ("US (16-24 UTC)", 16, 24),
)

# Fixed presentation weights, not derived from trade metadata.
FEE_SPLIT: Tuple[Tuple[str, int], ...] = (
    ("Taker Fees", 55),
    ("Maker Fees", 35),
    ("Funding Fees", 10),
)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Trade(_Record):
    """
    A single journal entry: an open position or a closed one with realized PnL.
    """

    id: str = Field(..., description="Unique identifier.")
    symbol: str = Field(..., description="Instrument identifier, e.g. SOL-PERP.")
    side: Side
    order_type: OrderType = "market"
    entry_price: float = Field(..., ge=0, description="Quote price at entry, 0 when unknown.")
    exit_price: float = Field(0.0, ge=0, description="Quote price at exit, 0 while open.")
    size: float = Field(..., gt=0, description="Notional size in quote currency.")
    leverage: float = Field(1.0, ge=1)
    pnl: float = Field(0.0, description="Realized PnL net of fees.")
    pnl_percent: float = Field(0.0, description="PnL as a percentage of size.")
    fees: float = Field(0.0, ge=0)
    entry_time: datetime
    exit_time: datetime
    duration: int = Field(0, ge=0, description="Minutes between entry and exit.")
    status: TradeStatus
    note: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_exit_time(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for key in ("exit_time", "exitTime"):
                if key in data and data[key] is None:
                    data = {k: v for k, v in data.items() if k != key}
            if "exit_time" not in data and "exitTime" not in data:
                entry = data.get("entry_time", data.get("entryTime"))
                data = {**data, "exit_time": entry}
        return data

    @field_validator("entry_time", "exit_time")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def is_closed(self) -> bool:
        return self.status != "open"


class PortfolioStats(_Record):
    """Aggregate snapshot over a set of trades. All fields are 0 for no trades."""

    total_pnl: float = 0.0
    total_pnl_percent: float = 0.0
    win_rate: float = 0.0
    total_trades: int = 0
    total_volume: int = 0
    total_fees: float = 0.0
    avg_duration: int = 0
    long_ratio: float = 0.0
    short_ratio: float = 0.0
    largest_gain: float = 0.0
    largest_loss: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    consecutive_wins: int = 0
    consecutive_losses: int = 0


class DailyPnl(_Record):
    date: str
    pnl: float
    cum_pnl: float
    drawdown: float
    trades: int
    volume: int


class FeeBreakdown(_Record):
    type: str
    amount: float
    percentage: int


class SymbolPerformance(_Record):
    symbol: str
    trades: int
    win_rate: float
    total_pnl: float
    avg_pnl: float
    volume: int


class SessionPerformance(_Record):
    session: str
    trades: int
    win_rate: float
    pnl: float


class OrderTypePerformance(_Record):
    type: OrderType
    trades: int
    win_rate: float
    pnl: float
    avg_pnl: float


class DashboardReport(_Record):
    """Every derived view of one trade set, as rendered on the dashboard."""

    stats: PortfolioStats
    daily_pnl: List[DailyPnl]
    fees: List[FeeBreakdown]
    symbols: List[SymbolPerformance]
    sessions: List[SessionPerformance]
    order_types: List[OrderTypePerformance]
