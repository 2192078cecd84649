"""
Bounded trade tape.

Most-recent-first sequence of normalized trades. Reads are always newest
first; the UI renders the tape top-down in that order.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, Optional

from liveboard.types.types import Trade

TAPE_CAPACITY = 250


class TradeTape:
    """
    Bounded, reverse-chronological trade log.

    Thread-safety: NOT thread-safe. Mutated only from the feed's frame handler.
    """

    __slots__ = ("_capacity", "_trades")

    def __init__(self, capacity: int = TAPE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        # deque(maxlen) drops from the right (oldest) on appendleft
        self._trades: Deque[Trade] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def latest(self) -> Optional[Trade]:
        return self._trades[0] if self._trades else None

    def push(self, trade: Trade) -> None:
        """Prepend a trade, evicting the oldest entries past capacity."""
        self._trades.appendleft(trade)

    def view(self) -> tuple[Trade, ...]:
        """Snapshot of the tape, newest first."""
        return tuple(self._trades)

    def clear(self) -> None:
        self._trades.clear()

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self) -> Iterator[Trade]:
        return iter(tuple(self._trades))
