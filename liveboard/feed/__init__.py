"""
Live Token Trade Feed Module.

This module ingests a push-based websocket feed of token trades, derives
one-minute candles, a bounded trade tape and a synthetic depth ladder, and
republishes the derived state to presentation-layer subscribers.

Components:
- LiveBoard: Top-level orchestration and public API
- ConnectionManager: Websocket lifecycle, subscribe request, optional reconnect
- TradeDecoder: Frame validation and normalization
- StatePublisher: Synchronous snapshot fan-out to subscribers

Usage:
    from liveboard.feed import LiveBoard

    board = LiveBoard()
    board.subscribe(render)
    await board.start("wss://pumpportal.fun/api/data", mint)
"""

from liveboard.feed.config import BoardConfig, FeedConfig, ReconnectPolicy
from liveboard.feed.connection import AiohttpTransport, ConnectionManager, Transport
from liveboard.feed.decoder import TradeDecoder
from liveboard.feed.errors import (
    ConfigurationError,
    DecodeError,
    LiveFeedError,
    TransportError,
)
from liveboard.feed.manager import LiveBoard
from liveboard.feed.publisher import StatePublisher, Subscription
from liveboard.feed.types import BoardSnapshot, ConnectionState

__all__ = [
    # Main entry point
    "LiveBoard",
    "BoardConfig",
    "FeedConfig",
    "ReconnectPolicy",
    # Components
    "ConnectionManager",
    "Transport",
    "AiohttpTransport",
    "TradeDecoder",
    "StatePublisher",
    "Subscription",
    # Types
    "BoardSnapshot",
    "ConnectionState",
    # Errors
    "LiveFeedError",
    "DecodeError",
    "TransportError",
    "ConfigurationError",
]
