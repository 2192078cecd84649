"""
Websocket connection manager for the token trade feed.

Handles the feed connection lifecycle:
- Opening the websocket (aiohttp) and sending the subscribe request
- Delivering raw frames to a synchronous frame handler
- Close/error detection and state tracking
- Optional reconnection with exponential backoff and jitter

State machine:
    [IDLE] --start()--> [CONNECTING] --open+subscribe--> [CONNECTED]
                             |                               |
                         [ERRORED] <------ error ------------+------ close ------> [CLOSED]

CLOSED/ERRORED go back to CONNECTING only when the ReconnectPolicy allows it.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, Protocol

import aiohttp
import orjson

from liveboard.feed.config import (
    SUBSCRIBE_METHOD,
    FeedConfig,
    ReconnectPolicy,
    validate_start_args,
)
from liveboard.feed.errors import TransportError
from liveboard.feed.types import ConnectionMetrics, ConnectionState

logger = logging.getLogger(__name__)

Frame = str | bytes


class Transport(Protocol):
    """Minimal websocket surface used by the ConnectionManager."""

    async def send_str(self, data: str) -> None: ...

    async def receive(self) -> Optional[Frame]:
        """Next data frame, or None once the peer has closed the socket."""
        ...

    async def close(self) -> None: ...


TransportFactory = Callable[[str], Awaitable[Transport]]


class AiohttpTransport:
    """Transport backed by an aiohttp ClientSession websocket."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        ws: aiohttp.ClientWebSocketResponse,
        url: str,
    ) -> None:
        self._session = session
        self._ws = ws
        self._url = url
        self._closed = False

    @classmethod
    async def open(cls, url: str, config: Optional[FeedConfig] = None) -> AiohttpTransport:
        """
        Open a websocket to `url`.

        Raises:
            TransportError: If the handshake fails or times out
        """
        config = config or FeedConfig()
        timeout = aiohttp.ClientTimeout(total=config.connect_timeout_s)
        session = aiohttp.ClientSession(timeout=timeout)
        try:
            ws = await session.ws_connect(url, heartbeat=config.heartbeat_s)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            await session.close()
            raise TransportError(
                f"Failed to open websocket: {e}",
                url=url,
                component="AiohttpTransport",
            ) from e
        except asyncio.CancelledError:
            await session.close()
            raise
        return cls(session, ws, url)

    async def send_str(self, data: str) -> None:
        try:
            await self._ws.send_str(data)
        except (aiohttp.ClientError, ConnectionResetError, RuntimeError) as e:
            raise TransportError(
                f"Failed to send: {e}",
                url=self._url,
                component="AiohttpTransport",
            ) from e

    async def receive(self) -> Optional[Frame]:
        while True:
            try:
                msg = await self._ws.receive()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransportError(
                    f"Receive failed: {e}",
                    url=self._url,
                    component="AiohttpTransport",
                ) from e

            if msg.type == aiohttp.WSMsgType.TEXT:
                return msg.data
            if msg.type == aiohttp.WSMsgType.BINARY:
                return msg.data
            if msg.type in (
                aiohttp.WSMsgType.CLOSE,
                aiohttp.WSMsgType.CLOSING,
                aiohttp.WSMsgType.CLOSED,
            ):
                return None
            if msg.type == aiohttp.WSMsgType.ERROR:
                raise TransportError(
                    f"WebSocket error: {self._ws.exception()}",
                    url=self._url,
                    component="AiohttpTransport",
                )
            # PING/PONG are answered by aiohttp (autoping)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if not self._ws.closed:
                await self._ws.close()
        finally:
            if not self._session.closed:
                await self._session.close()


class ConnectionManager:
    """
    Owns the single live transport of a feed and its state machine.

    The ConnectionManager does NOT parse messages - it hands raw frames to the
    registered on_frame callback. The callback is synchronous, so a frame is
    fully processed before the next one is awaited.

    Usage:
        def on_frame(raw: str | bytes) -> None:
            ...

        manager = ConnectionManager(on_frame=on_frame)
        await manager.start("wss://pumpportal.fun/api/data", "<mint>")
        # ... later ...
        await manager.stop()
    """

    def __init__(
        self,
        on_frame: Callable[[Frame], None],
        on_state_change: Optional[Callable[[ConnectionState], None]] = None,
        config: Optional[FeedConfig] = None,
        reconnect: Optional[ReconnectPolicy] = None,
        transport_factory: Optional[TransportFactory] = None,
        rng: Optional[random.Random] = None,
        name: str = "connection",
    ) -> None:
        """
        Initialize the connection manager.

        Args:
            on_frame: Callback for every inbound data frame
            on_state_change: Optional callback for state transitions
            config: Connection configuration (timeouts, heartbeat)
            reconnect: Reconnect policy; disabled when omitted
            transport_factory: Coroutine opening a Transport for a URL (aiohttp by default)
            rng: Random source for backoff jitter
            name: Name for logging purposes
        """
        self._on_frame = on_frame
        self._on_state_change = on_state_change
        self._config = config or FeedConfig()
        self._reconnect = reconnect or ReconnectPolicy()
        self._transport_factory = transport_factory or self._open_aiohttp
        self._rng = rng or random.Random()
        self._name = name

        # State
        self._state = ConnectionState.IDLE
        self._endpoint: Optional[str] = None
        self._subscription_key: Optional[str] = None
        self._transport: Optional[Transport] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._stopping = False

        self._metrics = ConnectionMetrics()

    async def _open_aiohttp(self, url: str) -> Transport:
        return await AiohttpTransport.open(url, self._config)

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def endpoint(self) -> Optional[str]:
        return self._endpoint

    @property
    def subscription_key(self) -> Optional[str]:
        return self._subscription_key

    @property
    def metrics(self) -> ConnectionMetrics:
        return self._metrics

    def _set_state(self, new_state: ConnectionState) -> None:
        """Update state and notify listener."""
        old_state = self._state
        self._state = new_state

        if old_state != new_state:
            logger.debug(f"[{self._name}] State: {old_state.value} -> {new_state.value}")
            if self._on_state_change:
                try:
                    self._on_state_change(new_state)
                except Exception as e:
                    logger.warning(f"[{self._name}] State change callback error: {e}")

    async def start(self, endpoint: Optional[str], subscription_key: Optional[str]) -> None:
        """
        Start streaming trades for `subscription_key` from `endpoint`.

        Any live transport is released first, so at most one connection exists
        per manager. The connection itself runs in a background task.

        Raises:
            ConfigurationError: If endpoint or subscription_key is missing/invalid
        """
        validate_start_args(endpoint, subscription_key)

        await self.stop()

        self._endpoint = endpoint
        self._subscription_key = subscription_key
        self._stopping = False

        self._set_state(ConnectionState.CONNECTING)
        self._task = asyncio.create_task(self._run(), name=f"{self._name}_run")

    async def stop(self) -> None:
        """
        Close the connection. Safe at any time, including mid-connect, and
        idempotent. Leaves the manager CLOSED (or IDLE if it never started).
        """
        self._stopping = True

        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._release_transport()

        if self._state != ConnectionState.IDLE:
            if self._state != ConnectionState.CLOSED:
                logger.info(f"[{self._name}] Connection stopped")
            self._set_state(ConnectionState.CLOSED)

    async def wait_closed(self) -> None:
        """Wait until the background connection task has finished."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _release_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as e:
            logger.warning(f"[{self._name}] Error closing transport: {e}")

    async def _run(self) -> None:
        """Connect, receive until close/error, then reconnect if allowed."""
        attempt = 0

        while True:
            try:
                await self._open_and_subscribe()
                attempt = 0
                await self._receive_loop()
                outcome = ConnectionState.CLOSED
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._metrics.errors += 1
                self._metrics.last_error = str(e)
                logger.error(f"[{self._name}] Transport error: {e}")
                outcome = ConnectionState.ERRORED

            if self._stopping:
                # stop() owns the final transition
                return

            await self._release_transport()
            self._set_state(outcome)

            attempt += 1
            if self._stopping or not self._reconnect.allows(attempt):
                return

            delay = self._reconnect.delay_for(attempt, self._rng)
            self._metrics.reconnect_attempts += 1
            logger.warning(
                f"[{self._name}] Connection {outcome.value} (attempt {attempt}), "
                f"reconnecting in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
            self._set_state(ConnectionState.CONNECTING)

    async def _open_and_subscribe(self) -> None:
        if self._endpoint is None or self._subscription_key is None:
            raise TransportError(
                "Connection opened before start() set endpoint and subscription key",
                url=self._endpoint,
                component="ConnectionManager",
            )

        logger.info(f"[{self._name}] Connecting to {self._endpoint}")
        self._transport = await self._transport_factory(self._endpoint)
        self._metrics.connects += 1

        request = {"method": SUBSCRIBE_METHOD, "keys": [self._subscription_key]}
        await self._transport.send_str(orjson.dumps(request).decode())

        self._set_state(ConnectionState.CONNECTED)
        logger.info(f"[{self._name}] Subscribed to {self._subscription_key}")

    async def _receive_loop(self) -> None:
        transport = self._transport
        if transport is None:
            return

        while True:
            frame = await transport.receive()
            if frame is None:
                logger.info(f"[{self._name}] Server closed connection")
                return

            self._metrics.frames_received += 1
            self._metrics.bytes_received += len(frame)

            try:
                self._on_frame(frame)
            except Exception as e:
                # A broken frame handler must not take the connection down
                self._metrics.errors += 1
                logger.error(f"[{self._name}] Frame handler error: {e}", exc_info=True)
