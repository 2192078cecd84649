"""
Trade message decoder for the token trade stream.

Parses one raw websocket frame into a normalized Trade:

    {
        "channel": "tokenTrade",
        "data": {
            "ts": 1700000000000,   // optional, Unix ms
            "price": "0.0000312",  // number or numeric string
            "size": 1520.5,
            "side": "buy",
            "tx": "5sX...9Qa"
        }
    }

Anything that does not match raises DecodeError. The decoder never retries
and has no side effects besides its statistics.
"""

from __future__ import annotations

import math
import time
from typing import Any, Callable, Optional

import orjson

from liveboard.feed.config import TRADE_CHANNEL
from liveboard.feed.errors import DecodeError
from liveboard.feed.types import DecoderStats
from liveboard.types.types import Side, Trade


def _now_ms() -> int:
    return int(time.time() * 1000)


def _safe_float(value: Any, field_name: str) -> float:
    """Convert a value to a finite float."""
    if isinstance(value, bool):
        raise DecodeError(
            f"Invalid float value for {field_name}: {value}",
            reason="non_numeric",
            field=field_name,
        )
    try:
        result = value if isinstance(value, float) else float(value)
    except (ValueError, TypeError) as e:
        raise DecodeError(
            f"Invalid float value for {field_name}: {value}",
            reason="non_numeric",
            field=field_name,
        ) from e
    if not math.isfinite(result):
        raise DecodeError(
            f"Non-finite value for {field_name}: {value}",
            reason="non_numeric",
            field=field_name,
        )
    return result


def _safe_int(value: Any, field_name: str) -> int:
    """Convert a value to int."""
    if isinstance(value, bool):
        raise DecodeError(
            f"Invalid integer value for {field_name}: {value}",
            reason="bad_timestamp",
            field=field_name,
        )
    try:
        return int(value)
    except (ValueError, TypeError, OverflowError) as e:
        raise DecodeError(
            f"Invalid integer value for {field_name}: {value}",
            reason="bad_timestamp",
            field=field_name,
        ) from e


class TradeDecoder:
    """
    Validates and normalizes raw feed frames into Trade records.

    Args:
        clock_ms: Source of the current Unix ms, used when a frame has no `ts`
    """

    def __init__(self, clock_ms: Optional[Callable[[], int]] = None) -> None:
        self._clock_ms = clock_ms or _now_ms
        self._stats = DecoderStats()

    @property
    def stats(self) -> DecoderStats:
        return self._stats

    def reset_stats(self) -> None:
        self._stats = DecoderStats()

    def decode(self, raw: str | bytes) -> Trade:
        """
        Decode one raw frame.

        Raises:
            DecodeError: If the frame is not a trade event or carries invalid fields
        """
        self._stats.frames_received += 1
        try:
            trade = self._decode(raw)
        except DecodeError as e:
            self._stats.frames_rejected += 1
            self._stats.by_reason[e.reason] = self._stats.by_reason.get(e.reason, 0) + 1
            raise
        self._stats.trades_decoded += 1
        return trade

    def _decode(self, raw: str | bytes) -> Trade:
        try:
            msg = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise DecodeError(
                f"Frame is not valid JSON: {e}",
                reason="not_json",
                raw_data=raw if isinstance(raw, str) else None,
            ) from e

        if not isinstance(msg, dict):
            raise DecodeError("Frame is not a JSON object", reason="not_object")

        if msg.get("channel") != TRADE_CHANNEL:
            raise DecodeError(
                f"Unexpected channel: {msg.get('channel')!r}",
                reason="wrong_channel",
                field="channel",
            )

        data = msg.get("data")
        if data is None:
            raise DecodeError("Trade frame without data", reason="missing_data", field="data")
        if not isinstance(data, dict):
            raise DecodeError("Trade data is not an object", reason="missing_data", field="data")

        return self._parse_trade(data)

    def _parse_trade(self, data: dict[str, Any]) -> Trade:
        ts = data.get("ts")
        # 0 and "" count as absent, same as a missing ts
        if ts is None or ts == 0 or ts == "":
            timestamp_ms = self._clock_ms()
        else:
            timestamp_ms = _safe_int(ts, "ts")

        if "price" not in data:
            raise DecodeError("Trade without price", reason="missing_price", field="price")
        price = _safe_float(data["price"], "price")
        if price <= 0:
            raise DecodeError(
                f"Price must be positive: {price}",
                reason="non_positive_price",
                field="price",
            )

        size_raw = data.get("size")
        size = 0.0 if size_raw is None else _safe_float(size_raw, "size")
        if size < 0:
            raise DecodeError(f"Size must be >= 0: {size}", reason="negative_size", field="size")

        side_raw = data.get("side")
        try:
            side = Side(str(side_raw).lower())
        except ValueError as e:
            raise DecodeError(f"Unknown side: {side_raw!r}", reason="bad_side", field="side") from e

        tx = data.get("tx")

        return Trade(
            timestamp_ms=timestamp_ms,
            price=price,
            size=size,
            side=side,
            tx_id="" if tx is None else str(tx),
        )
