from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

# -------- Enums --------


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


# --- Market data ---


@dataclass(frozen=True, slots=True)
class Trade:
    """Single normalized trade from the token trade stream. Immutable."""

    timestamp_ms: int  # Trade time (Unix ms)
    price: float
    size: float
    side: Side
    tx_id: str

    @property
    def timestamp_s(self) -> int:
        """Trade time in whole epoch seconds."""
        return self.timestamp_ms // 1000


@dataclass(slots=True)
class Candle:
    """
    OHLC summary for one fixed-width time bucket.

    Mutated in place by the CandleAggregator while trades arrive for its bucket.
    """

    bucket_start: int  # Epoch seconds, aligned to the bucket width
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    trades: int = 0

    def to_chart(self) -> dict[str, Any]:
        """Candle in the shape consumed by charting widgets."""
        return {
            "time": self.bucket_start,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }


# --- Synthetic depth ---


@dataclass(frozen=True, slots=True)
class DepthLevel:
    price: float
    quantity: float


@dataclass(frozen=True, slots=True)
class DepthLadder:
    """
    Synthetic bid/ask ladder around a center price.

    Generated for display only; it does NOT reflect a real order book.
    Bids run from the center downwards, asks from the center upwards.
    """

    center: float
    bids: tuple[DepthLevel, ...] = ()
    asks: tuple[DepthLevel, ...] = ()

    @classmethod
    def empty(cls) -> DepthLadder:
        return cls(center=0.0)

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0].price if self.asks else None
