"""
Shared types, enums, and data structures for the live feed module.

This module contains types that are used across multiple components
of the live feed. Market records (Trade, Candle, DepthLadder) live in
liveboard.types.types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from liveboard.types.types import Candle, DepthLadder, Trade


class ConnectionState(str, Enum):
    """State machine for the feed connection."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionState.CLOSED, ConnectionState.ERRORED)


@dataclass(frozen=True, slots=True)
class BoardSnapshot:
    """Read-only view of the derived board state delivered to subscribers."""

    connection_state: ConnectionState
    last_price: Optional[float]
    tape: tuple[Trade, ...]  # Newest first
    candles: tuple[Candle, ...]  # Bucket ascending
    depth: DepthLadder
    candle_update: Optional[dict[str, Any]] = None  # Chart dict of the last touched candle

    @property
    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED


@dataclass
class DecoderStats:
    """Statistics for the trade decoder."""

    frames_received: int = 0
    trades_decoded: int = 0
    frames_rejected: int = 0
    by_reason: dict[str, int] = field(default_factory=dict)


@dataclass
class ConnectionMetrics:
    """Counters for the feed connection."""

    frames_received: int = 0
    bytes_received: int = 0
    connects: int = 0
    reconnect_attempts: int = 0
    errors: int = 0
    last_error: Optional[str] = None
