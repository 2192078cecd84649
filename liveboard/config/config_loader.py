"""
Purpose:
    - Load a board config file (TOML)
    - Layer CLI overrides on top of the file
    - Validate against the BoardFile schema and build the runtime dataclasses

Example file:

    [feed]
    endpoint = "wss://pumpportal.fun/api/data"
    subscription_key = "3w8qd4jrStowiK8LUzAsHhu9L5JbpiyVcMtjSgs1kJg4"

    [reconnect]
    enabled = true
    max_attempts = 5

    [logging]
    level = "DEBUG"
"""

import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from liveboard.config.models import BoardFile
from liveboard.feed.config import BoardConfig, FeedConfig, ReconnectPolicy
from liveboard.feed.errors import ConfigurationError


def deep_merge(a: Mapping[str, Any], b: Mapping[str, Any]) -> Mapping[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def validation_error_parser(error: ValidationError) -> list[dict[str, str]]:
    parsed_error = [
        {
            "component": "config.schema",
            "path": ".".join(map(str, err["loc"])),
            "message": err["msg"],
            "error_type": err["type"],
        }
        for err in error.errors()
    ]
    return parsed_error


class ConfigLoader:
    """
    Config-loader; loading toml file.
    """

    def __init__(self, base_dir: str = ".") -> None:
        self._base_dir = base_dir

    def load(self, file_name: str) -> dict[str, Any]:
        path = Path(file_name)
        if not path.is_absolute():
            path = Path(self._base_dir) / file_name

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with path.open("rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(
                f"Invalid TOML in {path}: {e}",
                component="ConfigLoader",
            ) from e

    def parse(
        self,
        data: Mapping[str, Any],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> BoardFile:
        """Validate raw sections (plus overrides) against the schema."""
        merged = deep_merge(data, overrides) if overrides else dict(data)
        try:
            return BoardFile(**merged)
        except ValidationError as e:
            errors = validation_error_parser(e)
            first = errors[0] if errors else {"path": "", "message": str(e)}
            raise ConfigurationError(
                f"Invalid config at {first['path']}: {first['message']}",
                field=first["path"] or None,
                component="ConfigLoader",
                details={"errors": errors},
            ) from e

    def load_board_file(
        self,
        file_name: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> BoardFile:
        data = self.load(file_name) if file_name else {}
        return self.parse(data, overrides)

    def load_board_config(
        self,
        file_name: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> BoardConfig:
        return self.to_board_config(self.load_board_file(file_name, overrides))

    @staticmethod
    def to_board_config(board_file: BoardFile) -> BoardConfig:
        """Build the runtime dataclasses (which re-validate cross-field rules)."""
        feed = board_file.feed
        reconnect = board_file.reconnect
        board = board_file.board

        return BoardConfig(
            feed=FeedConfig(
                endpoint=feed.endpoint,
                subscription_key=feed.subscription_key,
                connect_timeout_s=feed.connect_timeout_s,
                heartbeat_s=feed.heartbeat_s,
            ),
            reconnect=ReconnectPolicy(
                enabled=reconnect.enabled,
                max_attempts=reconnect.max_attempts,
                base_delay_s=reconnect.base_delay_s,
                max_delay_s=reconnect.max_delay_s,
                jitter=reconnect.jitter,
            ),
            tape_capacity=board.tape_capacity,
            bucket_seconds=board.bucket_seconds,
            depth_levels=board.depth_levels,
            depth_seed=board.depth_seed,
        )
