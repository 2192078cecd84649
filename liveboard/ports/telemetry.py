"""Telemetry Port Interface.

Contract: Log structured events (event name plus keyword fields). Used as the
observability sink for dropped frames and connection lifecycle events.
"""
from __future__ import annotations
from typing import Protocol, Any

class Telemetry(Protocol):
    def log(self, event: str, **fields: Any) -> None: ...
