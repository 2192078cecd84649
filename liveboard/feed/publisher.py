"""
State publisher for the live board.

Builds a BoardSnapshot from references owned by other components and hands
it to every subscriber, synchronously and in subscription order. The
publisher keeps nothing but its subscriber list.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from liveboard.feed.types import BoardSnapshot, ConnectionState
from liveboard.types.types import Candle, DepthLadder, Trade

logger = logging.getLogger(__name__)

Listener = Callable[[BoardSnapshot], None]


class Subscription:
    """Handle returned by subscribe(). Calling it (or unsubscribe()) detaches the listener."""

    __slots__ = ("_publisher", "_listener", "_active")

    def __init__(self, publisher: StatePublisher, listener: Listener) -> None:
        self._publisher = publisher
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._publisher._remove(self)

    def __call__(self) -> None:
        self.unsubscribe()


class StatePublisher:
    """
    Fan-out of board snapshots to presentation-layer listeners.

    Subscribing or unsubscribing from inside a callback is allowed; the change
    applies from the next notification on, the current delivery runs over the
    subscriber list as it was when it started.
    """

    def __init__(self, name: str = "publisher") -> None:
        self._name = name
        self._subscriptions: list[Subscription] = []
        self._notifications = 0
        self._listener_errors = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @property
    def notifications(self) -> int:
        return self._notifications

    @property
    def listener_errors(self) -> int:
        return self._listener_errors

    def subscribe(self, listener: Listener) -> Subscription:
        if not callable(listener):
            raise TypeError(f"listener must be callable, got {type(listener).__name__}")
        subscription = Subscription(self, listener)
        # Copy-on-write so an in-flight delivery keeps its own list
        self._subscriptions = [*self._subscriptions, subscription]
        logger.debug(f"[{self._name}] Subscriber added ({len(self._subscriptions)} total)")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        self._subscriptions = [s for s in self._subscriptions if s is not subscription]
        logger.debug(f"[{self._name}] Subscriber removed ({len(self._subscriptions)} total)")

    def publish(
        self,
        *,
        connection_state: ConnectionState,
        last_price: Optional[float],
        tape: tuple[Trade, ...],
        candles: tuple[Candle, ...],
        depth: DepthLadder,
        candle_update: Optional[dict[str, Any]] = None,
    ) -> BoardSnapshot:
        """Build a snapshot and deliver it to the current subscribers."""
        snapshot = BoardSnapshot(
            connection_state=connection_state,
            last_price=last_price,
            tape=tape,
            candles=candles,
            depth=depth,
            candle_update=candle_update,
        )
        self.deliver(snapshot)
        return snapshot

    def deliver(self, snapshot: BoardSnapshot) -> None:
        self._notifications += 1
        for subscription in self._subscriptions:
            try:
                subscription._listener(snapshot)
            except Exception as e:
                self._listener_errors += 1
                logger.error(f"[{self._name}] Listener error: {e}", exc_info=True)

    def clear(self) -> None:
        for subscription in self._subscriptions:
            subscription._active = False
        self._subscriptions = []
