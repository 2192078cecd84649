"""
Unit tests for the trade frame decoder.
"""

import orjson
import pytest

from liveboard.feed.decoder import TradeDecoder, _safe_float, _safe_int
from liveboard.feed.errors import DecodeError
from liveboard.types.types import Side


def _frame(**data) -> str:
    return orjson.dumps({"channel": "tokenTrade", "data": data}).decode()


class TestSafeConversions:
    """Tests for the numeric helpers."""

    def test_safe_float_accepts_numeric_string(self) -> None:
        """Numeric strings are converted."""
        assert _safe_float("0.0000312", "price") == pytest.approx(0.0000312)

    def test_safe_float_rejects_text(self) -> None:
        """Non-numeric text raises DecodeError with the field name."""
        with pytest.raises(DecodeError) as exc_info:
            _safe_float("abc", "price")
        assert exc_info.value.reason == "non_numeric"
        assert exc_info.value.field == "price"

    @pytest.mark.parametrize("value", [True, None, [1.0], float("nan"), float("inf")])
    def test_safe_float_rejects_non_numbers(self, value) -> None:
        """Booleans, containers and non-finite values are rejected."""
        with pytest.raises(DecodeError):
            _safe_float(value, "price")

    def test_safe_int_rejects_text(self) -> None:
        """Unparseable timestamps carry the bad_timestamp reason."""
        with pytest.raises(DecodeError) as exc_info:
            _safe_int("yesterday", "ts")
        assert exc_info.value.reason == "bad_timestamp"


class TestTradeDecoder:
    """Tests for TradeDecoder.decode."""

    @pytest.fixture
    def decoder(self) -> TradeDecoder:
        """Decoder with a fixed clock."""
        return TradeDecoder(clock_ms=lambda: 1_700_000_000_000)

    def test_full_frame(self, decoder: TradeDecoder) -> None:
        """A complete frame becomes a normalized Trade."""
        trade = decoder.decode(
            _frame(ts=1_700_000_060_500, price="1.25", size=300, side="BUY", tx="5sX9Qa")
        )

        assert trade.timestamp_ms == 1_700_000_060_500
        assert trade.timestamp_s == 1_700_000_060
        assert trade.price == 1.25
        assert trade.size == 300.0
        assert trade.side == Side.BUY
        assert trade.tx_id == "5sX9Qa"

    def test_bytes_frame(self, decoder: TradeDecoder) -> None:
        """Binary frames are decoded the same way as text frames."""
        trade = decoder.decode(_frame(price=2.0, size=1, side="sell", tx="t").encode())
        assert trade.side == Side.SELL
        assert trade.price == 2.0

    def test_missing_ts_uses_clock(self, decoder: TradeDecoder) -> None:
        """A frame without ts is stamped with the decoder clock."""
        trade = decoder.decode(_frame(price=1.0, size=1, side="buy", tx="t"))
        assert trade.timestamp_ms == 1_700_000_000_000

    @pytest.mark.parametrize("ts", [None, 0, 0.0, ""])
    def test_empty_ts_uses_clock(self, decoder: TradeDecoder, ts) -> None:
        """Null, zero and empty-string ts are treated as absent, never as epoch 0."""
        trade = decoder.decode(_frame(ts=ts, price=1.0, size=1, side="buy", tx="t"))
        assert trade.timestamp_ms == 1_700_000_000_000

    def test_optional_fields_default(self, decoder: TradeDecoder) -> None:
        """Missing size and tx default to 0.0 and the empty string."""
        trade = decoder.decode(_frame(price=1.0, side="buy"))
        assert trade.size == 0.0
        assert trade.tx_id == ""

    @pytest.mark.parametrize(
        "raw, reason",
        [
            ("not json", "not_json"),
            ("[1, 2]", "not_object"),
            ('{"channel": "other", "data": {"price": 1}}', "wrong_channel"),
            ('{"data": {"price": 1}}', "wrong_channel"),
            ('{"channel": "tokenTrade", "data": null}', "missing_data"),
            ('{"channel": "tokenTrade"}', "missing_data"),
            ('{"channel": "tokenTrade", "data": "x"}', "missing_data"),
        ],
    )
    def test_rejects_non_trade_frames(self, decoder: TradeDecoder, raw: str, reason: str) -> None:
        """Frames that are not trade events are rejected with a reason."""
        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(raw)
        assert exc_info.value.reason == reason

    def test_non_numeric_price(self, decoder: TradeDecoder) -> None:
        """A non-numeric price is a DecodeError, never NaN."""
        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(_frame(price="abc", size=1, side="buy", tx="t"))
        assert exc_info.value.reason == "non_numeric"
        assert exc_info.value.field == "price"

    @pytest.mark.parametrize(
        "data, reason",
        [
            ({"size": 1, "side": "buy"}, "missing_price"),
            ({"price": 0, "side": "buy"}, "non_positive_price"),
            ({"price": -1.5, "side": "buy"}, "non_positive_price"),
            ({"price": 1.0, "size": -2, "side": "buy"}, "negative_size"),
            ({"price": 1.0, "side": "hold"}, "bad_side"),
            ({"price": 1.0}, "bad_side"),
            ({"price": 1.0, "side": "buy", "ts": "noon"}, "bad_timestamp"),
        ],
    )
    def test_rejects_invalid_fields(self, decoder: TradeDecoder, data: dict, reason: str) -> None:
        """Field-level validation failures."""
        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(_frame(**data))
        assert exc_info.value.reason == reason

    def test_stats(self, decoder: TradeDecoder) -> None:
        """Accepted and rejected frames are counted by reason."""
        decoder.decode(_frame(price=1.0, side="buy"))
        for raw in ("nope", '{"channel": "other"}', "nope"):
            with pytest.raises(DecodeError):
                decoder.decode(raw)

        stats = decoder.stats
        assert stats.frames_received == 4
        assert stats.trades_decoded == 1
        assert stats.frames_rejected == 3
        assert stats.by_reason == {"not_json": 2, "wrong_channel": 1}

        decoder.reset_stats()
        assert decoder.stats.frames_received == 0

    def test_error_message_includes_details(self, decoder: TradeDecoder) -> None:
        """str(DecodeError) carries reason and field for log lines."""
        with pytest.raises(DecodeError) as exc_info:
            decoder.decode(_frame(price="abc", side="buy"))
        message = str(exc_info.value)
        assert "non_numeric" in message
        assert "price" in message
