"""
Configuration types for the live board.

Provides immutable, validated configuration dataclasses for the feed
connection, the optional reconnect policy and the derived-state buffers.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional

from liveboard.feed.errors import ConfigurationError
from liveboard.market.candles import BUCKET_SECONDS
from liveboard.market.depth import DEPTH_LEVELS
from liveboard.market.tape import TAPE_CAPACITY

# PumpPortal public data websocket
DEFAULT_ENDPOINT = "wss://pumpportal.fun/api/data"

SUBSCRIBE_METHOD = "subscribeTokenTrade"
TRADE_CHANNEL = "tokenTrade"


def validate_start_args(endpoint: Optional[str], subscription_key: Optional[str]) -> None:
    """Fail fast on a missing endpoint or subscription key."""
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise ConfigurationError(
            "endpoint must be a non-empty string",
            field="endpoint",
            value=endpoint,
        )
    if not endpoint.startswith(("ws://", "wss://")):
        raise ConfigurationError(
            "endpoint must be a ws:// or wss:// URL",
            field="endpoint",
            value=endpoint,
        )
    if not isinstance(subscription_key, str) or not subscription_key.strip():
        raise ConfigurationError(
            "subscription_key must be a non-empty string",
            field="subscription_key",
            value=subscription_key,
        )


@dataclass(frozen=True)
class FeedConfig:
    """Configuration for the websocket connection."""

    endpoint: str = DEFAULT_ENDPOINT
    subscription_key: Optional[str] = None

    # Connection behavior
    connect_timeout_s: float = 30.0
    heartbeat_s: Optional[float] = 30.0  # aiohttp ping interval, None disables

    def __post_init__(self) -> None:
        if self.connect_timeout_s <= 0:
            raise ConfigurationError(
                "connect_timeout_s must be positive",
                field="connect_timeout_s",
                value=self.connect_timeout_s,
            )
        if self.heartbeat_s is not None and self.heartbeat_s <= 0:
            raise ConfigurationError(
                "heartbeat_s must be positive",
                field="heartbeat_s",
                value=self.heartbeat_s,
            )


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Optional reconnect policy with bounded exponential backoff.

    Disabled by default: a closed or errored connection stays down until
    start() is called again.
    """

    enabled: bool = False
    max_attempts: int = 10
    base_delay_s: float = 1.0
    max_delay_s: float = 60.0
    jitter: float = 0.3  # ±30% jitter

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ConfigurationError(
                "max_attempts must be non-negative",
                field="max_attempts",
                value=self.max_attempts,
            )
        if self.base_delay_s <= 0:
            raise ConfigurationError(
                "base_delay_s must be positive",
                field="base_delay_s",
                value=self.base_delay_s,
            )
        if self.max_delay_s < self.base_delay_s:
            raise ConfigurationError(
                "max_delay_s must be >= base_delay_s",
                field="max_delay_s",
                value=self.max_delay_s,
            )
        if not (0 <= self.jitter <= 1):
            raise ConfigurationError(
                "jitter must be between 0 and 1",
                field="jitter",
                value=self.jitter,
            )

    def allows(self, attempt: int) -> bool:
        """Whether reconnect attempt number `attempt` (1-based) may run."""
        return self.enabled and attempt <= self.max_attempts

    def delay_for(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        """Exponential backoff delay with jitter for a 1-based attempt."""
        delay = self.base_delay_s * (2 ** (attempt - 1))
        delay = min(delay, self.max_delay_s)

        jitter_range = delay * self.jitter
        uniform = rng.uniform if rng is not None else random.uniform
        delay += uniform(-jitter_range, jitter_range)

        return float(max(0.1, delay))  # Minimum 100ms


@dataclass(frozen=True)
class BoardConfig:
    """
    Immutable top-level configuration for a live board.

    Example:
        config = BoardConfig(
            feed=FeedConfig(subscription_key="3w8qd4jr..."),
            reconnect=ReconnectPolicy(enabled=True),
        )
    """

    feed: FeedConfig = field(default_factory=FeedConfig)
    reconnect: ReconnectPolicy = field(default_factory=ReconnectPolicy)

    tape_capacity: int = TAPE_CAPACITY
    bucket_seconds: int = BUCKET_SECONDS
    depth_levels: int = DEPTH_LEVELS
    depth_seed: Optional[int] = None  # Fixed seed makes the ladder reproducible

    def __post_init__(self) -> None:
        if self.tape_capacity <= 0:
            raise ConfigurationError(
                "tape_capacity must be positive",
                field="tape_capacity",
                value=self.tape_capacity,
            )
        if self.bucket_seconds <= 0:
            raise ConfigurationError(
                "bucket_seconds must be positive",
                field="bucket_seconds",
                value=self.bucket_seconds,
            )
        if self.depth_levels <= 0:
            raise ConfigurationError(
                "depth_levels must be positive",
                field="depth_levels",
                value=self.depth_levels,
            )
