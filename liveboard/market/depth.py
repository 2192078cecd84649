"""
Synthetic depth ladder.

NOT an order book. The ladder is a decorative approximation generated around
the last traded price so the board has something to render next to the tape.
Quantities are random and decay with distance from the center; callers must
never treat this output as real liquidity.

Step size: max(center * 0.002, 0.0001)
Level i (1-based): ask = center + i * step, bid = center - i * step,
                   both rounded to 6 decimals.
"""

from __future__ import annotations

import random
from typing import Optional

from liveboard.types.types import DepthLadder, DepthLevel

DEPTH_LEVELS = 14
STEP_FRACTION = 0.002
MIN_STEP = 0.0001
PRICE_DECIMALS = 6


def depth_step(center_price: float) -> float:
    return max(center_price * STEP_FRACTION, MIN_STEP)


def _level_quantity(rng: random.Random, level: int) -> float:
    # 1..11 units scaled by 100 / level, kept to 2 decimals
    return round((1 + rng.random() * 10) * (100 / level)) / 100


def project_depth(
    center_price: float,
    rng: random.Random,
    levels: int = DEPTH_LEVELS,
) -> DepthLadder:
    """
    Build a synthetic ladder around `center_price`.

    Pure given `center_price` and the state of `rng`; pass a seeded
    random.Random for reproducible output.

    Raises:
        ValueError: If center_price is not positive or levels < 1
    """
    if center_price <= 0:
        raise ValueError(f"center_price must be positive, got {center_price}")
    if levels < 1:
        raise ValueError(f"levels must be >= 1, got {levels}")

    step = depth_step(center_price)

    bids = tuple(
        DepthLevel(
            price=round(center_price - i * step, PRICE_DECIMALS),
            quantity=_level_quantity(rng, i),
        )
        for i in range(1, levels + 1)
    )
    asks = tuple(
        DepthLevel(
            price=round(center_price + i * step, PRICE_DECIMALS),
            quantity=_level_quantity(rng, i),
        )
        for i in range(1, levels + 1)
    )
    return DepthLadder(center=center_price, bids=bids, asks=asks)


class DepthProjector:
    """
    Holds the random source for project_depth().

    Output is synthetic visual data, never an authoritative book.
    """

    def __init__(self, rng: Optional[random.Random] = None, levels: int = DEPTH_LEVELS) -> None:
        if levels < 1:
            raise ValueError(f"levels must be >= 1, got {levels}")
        self._rng = rng or random.Random()
        self._levels = levels

    @property
    def levels(self) -> int:
        return self._levels

    def project(self, center_price: float) -> DepthLadder:
        return project_depth(center_price, self._rng, self._levels)
