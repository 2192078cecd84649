"""
Live Board - top-level orchestration.

Coordinates the live board components:
- ConnectionManager for the websocket lifecycle
- TradeDecoder for frame validation/normalization
- TradeTape, CandleAggregator and DepthProjector for derived state
- StatePublisher for presentation-layer subscribers
- Telemetry (optional) for structured lifecycle and error events
"""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

from liveboard.feed.config import BoardConfig
from liveboard.feed.connection import ConnectionManager, Frame, TransportFactory
from liveboard.feed.decoder import TradeDecoder
from liveboard.feed.errors import DecodeError
from liveboard.feed.publisher import Listener, StatePublisher, Subscription
from liveboard.feed.types import BoardSnapshot, ConnectionState
from liveboard.market.candles import CandleAggregator
from liveboard.market.depth import DepthProjector
from liveboard.market.tape import TradeTape
from liveboard.ports.telemetry import Telemetry
from liveboard.types.types import Candle, DepthLadder, Trade

logger = logging.getLogger(__name__)


class LiveBoard:
    """
    Public entry point for the presentation layer.

    Every inbound frame is handled in one synchronous pass:
    decode -> tape -> candle -> depth -> publish. Decode failures drop the
    frame and are logged; the connection is not affected. Connection errors
    degrade connection_state but leave tape and candles queryable.

    Usage:
        board = LiveBoard()
        unsubscribe = board.subscribe(lambda snap: render(snap))

        await board.start("wss://pumpportal.fun/api/data", mint)
        # ... board running ...
        await board.stop()
    """

    def __init__(
        self,
        config: Optional[BoardConfig] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
        decoder: Optional[TradeDecoder] = None,
        rng: Optional[random.Random] = None,
        telemetry: Optional[Telemetry] = None,
        name: str = "live_board",
    ) -> None:
        """
        Initialize the board.

        Args:
            config: Board configuration
            transport_factory: Override for the websocket transport (tests, proxies)
            decoder: Override for the frame decoder (e.g. with a fixed clock)
            rng: Random source for the synthetic depth ladder
            telemetry: Optional structured event sink
            name: Name for logging purposes
        """
        self._config = config or BoardConfig()
        self._name = name
        self._telemetry = telemetry

        if rng is None:
            rng = random.Random(self._config.depth_seed)

        # Components
        self._decoder = decoder or TradeDecoder()
        self._tape = TradeTape(self._config.tape_capacity)
        self._candles = CandleAggregator(self._config.bucket_seconds)
        self._depth_projector = DepthProjector(rng, self._config.depth_levels)
        self._publisher = StatePublisher(name=f"{name}_publisher")
        self._connection = ConnectionManager(
            on_frame=self._on_frame,
            on_state_change=self._on_connection_state_change,
            config=self._config.feed,
            reconnect=self._config.reconnect,
            transport_factory=transport_factory,
            name=f"{name}_ws",
        )

        # Derived state not owned by a component
        self._last_price: Optional[float] = None
        self._depth = DepthLadder.empty()
        self._last_candle: Optional[Candle] = None  # Candle touched by the latest trade

        # Statistics
        self._frames_dropped = 0
        self._snapshots_published = 0

    # --- Lifecycle ---

    async def start(
        self,
        endpoint: Optional[str] = None,
        subscription_key: Optional[str] = None,
    ) -> None:
        """
        Start the feed. Falls back to the configured endpoint/key when omitted.

        Raises:
            ConfigurationError: If endpoint or subscription key is missing/invalid
        """
        endpoint = endpoint if endpoint is not None else self._config.feed.endpoint
        if subscription_key is None:
            subscription_key = self._config.feed.subscription_key

        await self._connection.start(endpoint, subscription_key)
        logger.info(f"[{self._name}] Started live board for {subscription_key}")
        self._emit("board_started", endpoint=endpoint, subscription_key=subscription_key)

    async def stop(self) -> None:
        """Stop the feed. Idempotent; derived state stays readable."""
        await self._connection.stop()

    async def wait_closed(self) -> None:
        """Wait for the connection to end (peer close, error or stop())."""
        await self._connection.wait_closed()

    # --- Subscriptions ---

    def subscribe(self, listener: Listener) -> Subscription:
        """Register a listener; the returned handle unsubscribes when called."""
        return self._publisher.subscribe(listener)

    # --- Read accessors ---

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection.state

    @property
    def is_connected(self) -> bool:
        return self._connection.is_connected

    @property
    def last_price(self) -> Optional[float]:
        return self._last_price

    @property
    def tape(self) -> tuple[Trade, ...]:
        return self._tape.view()

    @property
    def candles(self) -> tuple[Candle, ...]:
        return self._candles.series()

    @property
    def depth(self) -> DepthLadder:
        return self._depth

    @property
    def config(self) -> BoardConfig:
        return self._config

    def snapshot(self) -> BoardSnapshot:
        """Current state without notifying subscribers."""
        return BoardSnapshot(
            connection_state=self._connection.state,
            last_price=self._last_price,
            tape=self._tape.view(),
            candles=self._candles.series(),
            depth=self._depth,
            candle_update=self._candle_update(),
        )

    # --- Frame pipeline ---

    def _on_frame(self, raw: Frame) -> None:
        """Handle one inbound frame. Synchronous, so atomic w.r.t. other frames."""
        try:
            trade = self._decoder.decode(raw)
        except DecodeError as e:
            self._frames_dropped += 1
            logger.warning(f"[{self._name}] Dropped frame: {e}")
            self._emit("frame_dropped", reason=e.reason, error=str(e))
            return

        self.apply_trade(trade)

    def apply_trade(self, trade: Trade) -> Candle:
        """Fold a decoded trade into tape, candles and depth, then publish."""
        self._last_price = trade.price
        self._tape.push(trade)
        candle = self._candles.ingest(trade)
        self._last_candle = candle
        self._depth = self._depth_projector.project(trade.price)

        self._publish()
        return candle

    def _candle_update(self) -> Optional[dict[str, Any]]:
        return self._last_candle.to_chart() if self._last_candle is not None else None

    def _publish(self) -> None:
        self._publisher.publish(
            connection_state=self._connection.state,
            last_price=self._last_price,
            tape=self._tape.view(),
            candles=self._candles.series(),
            depth=self._depth,
            candle_update=self._candle_update(),
        )
        self._snapshots_published += 1

    # --- Connection callbacks ---

    def _on_connection_state_change(self, state: ConnectionState) -> None:
        if state == ConnectionState.ERRORED:
            metrics = self._connection.metrics
            logger.error(f"[{self._name}] Connection errored: {metrics.last_error}")
            self._emit("connection_errored", error=metrics.last_error)
        else:
            logger.info(f"[{self._name}] Connection state: {state.value}")
            self._emit("connection_state", state=state.value)

        self._publish()

    # --- Telemetry ---

    def _emit(self, event: str, **fields: Any) -> None:
        if self._telemetry is None:
            return
        try:
            self._telemetry.log(event, component=self._name, **fields)
        except Exception as e:
            logger.warning(f"[{self._name}] Telemetry error: {e}")

    # --- Public methods ---

    def get_stats(self) -> dict[str, Any]:
        """Get statistics summary."""
        decoder_stats = self._decoder.stats
        metrics = self._connection.metrics
        return {
            "state": self._connection.state.value,
            "last_price": self._last_price,
            "trades_stored": len(self._tape),
            "candles": len(self._candles),
            "frames_dropped": self._frames_dropped,
            "snapshots_published": self._snapshots_published,
            "subscribers": self._publisher.subscriber_count,
            "decoder": {
                "received": decoder_stats.frames_received,
                "decoded": decoder_stats.trades_decoded,
                "rejected": decoder_stats.frames_rejected,
                "by_reason": dict(decoder_stats.by_reason),
            },
            "connection": {
                "connects": metrics.connects,
                "frames_received": metrics.frames_received,
                "bytes_received": metrics.bytes_received,
                "reconnect_attempts": metrics.reconnect_attempts,
                "errors": metrics.errors,
                "last_error": metrics.last_error,
            },
        }
