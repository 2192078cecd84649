from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from liveboard.feed.config import DEFAULT_ENDPOINT
from liveboard.market.candles import BUCKET_SECONDS
from liveboard.market.depth import DEPTH_LEVELS
from liveboard.market.tape import TAPE_CAPACITY


class FeedSection(BaseModel):
    model_config = ConfigDict(extra="forbid")
    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="Websocket URL of the trade feed")
    subscription_key: Optional[str] = Field(default=None, description="Token mint to subscribe to")
    connect_timeout_s: float = Field(default=30.0, gt=0, description="Handshake timeout")
    heartbeat_s: Optional[float] = Field(default=30.0, gt=0, description="Ping interval")


class ReconnectSection(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = Field(default=False, description="Reconnect after close/error")
    max_attempts: int = Field(default=10, ge=0)
    base_delay_s: float = Field(default=1.0, gt=0)
    max_delay_s: float = Field(default=60.0, gt=0)
    jitter: float = Field(default=0.3, ge=0, le=1)


class BoardSection(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tape_capacity: int = Field(default=TAPE_CAPACITY, gt=0, description="Trades kept on the tape")
    bucket_seconds: int = Field(default=BUCKET_SECONDS, gt=0, description="Candle width")
    depth_levels: int = Field(default=DEPTH_LEVELS, gt=0, description="Synthetic levels per side")
    depth_seed: Optional[int] = Field(default=None, description="Seed for the synthetic ladder")


class LoggingSection(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Root log level"
    )
    telemetry_path: Optional[str] = Field(default=None, description="JSONL telemetry sink")


class BoardFile(BaseModel):
    """Schema of a board TOML file. Every section is optional."""

    model_config = ConfigDict(extra="forbid")
    feed: FeedSection = Field(default_factory=FeedSection)
    reconnect: ReconnectSection = Field(default_factory=ReconnectSection)
    board: BoardSection = Field(default_factory=BoardSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)
