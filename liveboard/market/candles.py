"""
Incremental OHLC candle aggregation from individual trades.

Each trade lands in the bucket `floor(ts_s / width) * width`. The first trade
of a bucket opens the candle; later trades move high/low/close. Candles are
never deleted and the series is kept ordered by bucket start.

Late trades are folded into their own historical bucket (created fresh if it
does not exist). There is no other reordering or backfill.
"""

from __future__ import annotations

from bisect import insort
from typing import Any, Optional

from liveboard.types.types import Candle, Trade

BUCKET_SECONDS = 60


def bucket_start(timestamp_s: int, width_s: int = BUCKET_SECONDS) -> int:
    """Start of the bucket containing `timestamp_s` (epoch seconds)."""
    return (timestamp_s // width_s) * width_s


class CandleAggregator:
    """
    Owns the bucket -> Candle mapping and is its only writer.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use.
    """

    __slots__ = ("_bucket_seconds", "_candles", "_buckets", "_latest_bucket")

    def __init__(self, bucket_seconds: int = BUCKET_SECONDS) -> None:
        if bucket_seconds <= 0:
            raise ValueError(f"bucket_seconds must be positive, got {bucket_seconds}")
        self._bucket_seconds = bucket_seconds
        self._candles: dict[int, Candle] = {}
        self._buckets: list[int] = []  # Ascending bucket starts
        self._latest_bucket: Optional[int] = None

    @property
    def bucket_seconds(self) -> int:
        return self._bucket_seconds

    @property
    def latest(self) -> Optional[Candle]:
        """Candle with the most recent bucket start."""
        if not self._buckets:
            return None
        return self._candles[self._buckets[-1]]

    def bucket_for(self, timestamp_s: int) -> int:
        return bucket_start(timestamp_s, self._bucket_seconds)

    def ingest(self, trade: Trade) -> Candle:
        """
        Fold a trade into its bucket.

        Returns the candle that was created or updated so callers can push an
        incremental update without re-reading the series.
        """
        bucket = self.bucket_for(trade.timestamp_s)
        price = trade.price

        candle = self._candles.get(bucket)
        if candle is None:
            candle = Candle(
                bucket_start=bucket,
                open=price,
                high=price,
                low=price,
                close=price,
                volume=trade.size,
                trades=1,
            )
            self._candles[bucket] = candle
            if not self._buckets or bucket > self._buckets[-1]:
                self._buckets.append(bucket)
            else:
                insort(self._buckets, bucket)
            return candle

        candle.high = max(candle.high, price)
        candle.low = min(candle.low, price)
        candle.close = price
        candle.volume += trade.size
        candle.trades += 1
        return candle

    def get(self, bucket: int) -> Optional[Candle]:
        return self._candles.get(bucket)

    def series(self) -> tuple[Candle, ...]:
        """All candles ordered by bucket start ascending."""
        return tuple(self._candles[b] for b in self._buckets)

    def chart_series(self) -> list[dict[str, Any]]:
        """Series in the charting shape ({time, open, high, low, close})."""
        return [self._candles[b].to_chart() for b in self._buckets]

    def __len__(self) -> int:
        return len(self._buckets)
