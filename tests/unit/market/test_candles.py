"""
Unit tests for 1-minute candle aggregation.
"""

import pytest

from liveboard.market.candles import CandleAggregator, bucket_start
from liveboard.types.types import Side, Trade


def _trade(ts_s: float, price: float, size: float = 1.0) -> Trade:
    return Trade(
        timestamp_ms=int(ts_s * 1000), price=price, size=size, side=Side.BUY, tx_id=""
    )


class TestBucketStart:
    """Tests for bucket alignment."""

    @pytest.mark.parametrize(
        "ts, expected",
        [(600, 600), (605, 600), (659, 600), (660, 660), (0, 0), (59, 0)],
    )
    def test_minute_alignment(self, ts: int, expected: int) -> None:
        assert bucket_start(ts) == expected

    def test_custom_width(self) -> None:
        assert bucket_start(605, 300) == 600
        assert bucket_start(905, 300) == 900


class TestCandleAggregator:
    """Tests for CandleAggregator.ingest."""

    @pytest.fixture
    def aggregator(self) -> CandleAggregator:
        return CandleAggregator()

    def test_first_trade_opens_candle(self, aggregator: CandleAggregator) -> None:
        candle = aggregator.ingest(_trade(605, 1.0, size=3.0))

        assert candle.bucket_start == 600
        assert (candle.open, candle.high, candle.low, candle.close) == (1.0, 1.0, 1.0, 1.0)
        assert candle.volume == 3.0
        assert candle.trades == 1

    def test_ohlc_within_bucket(self, aggregator: CandleAggregator) -> None:
        """1.000, 1.050, 0.980 in one minute give O1.000 H1.050 L0.980 C0.980."""
        aggregator.ingest(_trade(605, 1.000))
        aggregator.ingest(_trade(630, 1.050))
        candle = aggregator.ingest(_trade(655, 0.980))

        assert len(aggregator) == 1
        assert candle.open == 1.000
        assert candle.high == 1.050
        assert candle.low == 0.980
        assert candle.close == 0.980
        assert candle.trades == 3

    def test_bucket_boundaries(self, aggregator: CandleAggregator) -> None:
        """10:00:05 and 10:00:55 share a bucket; 10:01:05 opens the next."""
        aggregator.ingest(_trade(36_005, 1.0))
        aggregator.ingest(_trade(36_055, 1.1))
        aggregator.ingest(_trade(36_065, 1.2))

        series = aggregator.series()
        assert [c.bucket_start for c in series] == [36_000, 36_060]
        assert series[0].close == 1.1
        assert series[1].open == 1.2

    def test_late_trade_updates_historical_bucket(self, aggregator: CandleAggregator) -> None:
        """A late trade lands in its own bucket and does not touch the latest close."""
        aggregator.ingest(_trade(605, 1.0))
        aggregator.ingest(_trade(665, 2.0))

        late = aggregator.ingest(_trade(650, 0.5))

        assert late.bucket_start == 600
        assert late.low == 0.5
        assert late.close == 0.5
        assert aggregator.latest.bucket_start == 660
        assert aggregator.latest.close == 2.0

    def test_late_trade_creates_missing_bucket_in_order(self, aggregator: CandleAggregator) -> None:
        """A trade for an older, empty bucket is inserted in ascending order."""
        aggregator.ingest(_trade(605, 1.0))
        aggregator.ingest(_trade(725, 1.2))

        aggregator.ingest(_trade(670, 1.1))

        assert [c.bucket_start for c in aggregator.series()] == [600, 660, 720]
        assert aggregator.latest.bucket_start == 720

    def test_ohlc_invariant(self, aggregator: CandleAggregator) -> None:
        """low <= open, close <= high for every candle."""
        prices = [1.0, 1.3, 0.7, 1.1, 0.9, 1.25, 0.8, 1.05]
        for i, price in enumerate(prices):
            aggregator.ingest(_trade(600 + i * 20, price))

        for candle in aggregator.series():
            assert candle.low <= min(candle.open, candle.close)
            assert candle.high >= max(candle.open, candle.close)

    def test_get_and_latest(self, aggregator: CandleAggregator) -> None:
        assert aggregator.latest is None
        aggregator.ingest(_trade(605, 1.0))
        assert aggregator.get(600) is aggregator.latest
        assert aggregator.get(660) is None

    def test_chart_series(self, aggregator: CandleAggregator) -> None:
        """Chart shape is {time, open, high, low, close}."""
        aggregator.ingest(_trade(605, 1.0))
        aggregator.ingest(_trade(610, 1.5))

        assert aggregator.chart_series() == [
            {"time": 600, "open": 1.0, "high": 1.5, "low": 1.0, "close": 1.5}
        ]

    def test_custom_bucket_width(self) -> None:
        aggregator = CandleAggregator(bucket_seconds=300)
        aggregator.ingest(_trade(605, 1.0))
        aggregator.ingest(_trade(899, 1.0))
        assert len(aggregator) == 1

    def test_invalid_width(self) -> None:
        with pytest.raises(ValueError):
            CandleAggregator(bucket_seconds=0)
