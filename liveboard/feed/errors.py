"""
Custom exceptions for the live board feed.

Exception hierarchy:
- LiveFeedError (base)
  - DecodeError: Malformed or unexpected feed frame (recovered per frame)
  - TransportError: Websocket connection failure (surfaced as ERRORED state)
  - ConfigurationError: Invalid endpoint, subscription key or config value
"""

from __future__ import annotations

from typing import Any, Optional


class LiveFeedError(Exception):
    """Base exception for all live feed errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class DecodeError(LiveFeedError):
    """Raised when a raw frame cannot be decoded into a Trade."""

    def __init__(
        self,
        message: str,
        *,
        reason: str = "invalid",
        raw_data: Optional[str] = None,
        field: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.reason = reason
        self.raw_data = raw_data
        self.field = field
        details = details or {}
        details["reason"] = reason
        if field:
            details["field"] = field
        # raw_data stays out of details to keep log lines short
        super().__init__(message, component=component, details=details)


class TransportError(LiveFeedError):
    """Raised when the websocket transport fails to open or breaks."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        reconnect_attempt: int = 0,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.url = url
        self.reconnect_attempt = reconnect_attempt
        details = details or {}
        if url:
            details["url"] = url
        details["reconnect_attempt"] = reconnect_attempt
        super().__init__(message, component=component, details=details)


class ConfigurationError(LiveFeedError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, component=component, details=details)
