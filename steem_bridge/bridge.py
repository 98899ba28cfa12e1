"""Blocking request/response bridge over the asynchronous WebSocket transport.

The WebSocket connection and its receive loop live on a private asyncio event
loop running in a daemon thread. Callers stay fully synchronous: each call
sends one frame and blocks until the receive loop hands over the next frame
or the response timeout elapses.

Usage:
    bridge = SessionBridge("wss://steemd.steemit.com", response_timeout=5.0)
    bridge.connect()
    raw = bridge.send_and_await(descriptor)
    bridge.close()
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import itertools
import logging
import threading
from collections import deque
from collections.abc import Coroutine
from typing import Any, TypeVar

from .correlator import ResponseCorrelator
from .errors import SteemClientError, SteemConnectionError, SteemTimeout
from .protocol import RequestDescriptor, encode_request, response_id
from .ws_client import SteemWsClient, SteemWsMessageType

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")

_SHUTDOWN_TIMEOUT = 5.0

# Ids of timed-out calls whose replies may still arrive.
_EXPIRED_ID_LIMIT = 64


class SessionBridge:
    """Owns the node session and exposes ``send_and_await``."""

    def __init__(
        self,
        endpoint_uri: str,
        *,
        response_timeout: float = 5.0,
        connect_timeout: float = 15.0,
        ping_interval: int | None = 20,
    ) -> None:
        """Initialize bridge.

        Args:
            endpoint_uri: Node WebSocket URI
            response_timeout: Seconds to wait for each response
            connect_timeout: Seconds to wait for the WebSocket handshake
            ping_interval: Keepalive ping interval (seconds), None disables
        """
        self.endpoint_uri = endpoint_uri
        self.response_timeout = response_timeout
        self._connect_timeout = connect_timeout
        self._ping_interval = ping_interval

        self._ws: SteemWsClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._connected = False

        self._correlator = ResponseCorrelator()
        # One call on the wire at a time; there is a single PendingCall slot.
        self._call_lock = threading.Lock()
        self._id_lock = threading.Lock()
        self._request_ids = itertools.count(1)
        self._expired_ids: deque[int] = deque(maxlen=_EXPIRED_ID_LIMIT)

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        """Open the WebSocket session.

        Raises:
            SteemTimeout: If the handshake did not complete in time
            SteemHandshakeError: If the node rejected the upgrade
            SteemConnectionError: If the node is unreachable
        """
        if self._connected:
            return
        if self._loop is not None:
            # Left over from a session the node dropped.
            self.close()

        _LOGGER.info("[%s] Connecting", self.endpoint_uri)
        self._start_loop()
        try:
            self._run(self._open(), timeout=self._connect_timeout + 1.0)
        except SteemClientError as err:
            _LOGGER.error("[%s] Connection failed: %s", self.endpoint_uri, err)
            self._stop_loop()
            raise
        _LOGGER.info("[%s] WebSocket connected", self.endpoint_uri)

    def close(self) -> None:
        """Close the session and stop the transport thread."""
        if self._loop is None:
            return

        _LOGGER.info("[%s] Closing session", self.endpoint_uri)
        self._connected = False
        try:
            self._run(self._shutdown(), timeout=_SHUTDOWN_TIMEOUT)
        except SteemClientError as err:
            _LOGGER.warning("[%s] Session close failed: %s", self.endpoint_uri, err)
        finally:
            self._correlator.abort("Session closed")
            self._stop_loop()

    def __enter__(self) -> SessionBridge:
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Public API: Calls
    # -------------------------------------------------------------------------

    def next_request_id(self) -> int:
        """Return the id for the next request."""
        with self._id_lock:
            return next(self._request_ids)

    def send_and_await(self, descriptor: RequestDescriptor) -> str:
        """Send one request and block until the next frame or the timeout.

        Returns:
            The raw response text, undecoded

        Raises:
            SteemConnectionError: If the session is not open or the send failed
            SteemTimeout: If no frame arrived within ``response_timeout``
        """
        text = encode_request(descriptor)

        with self._call_lock:
            if not self._connected or self._ws is None:
                raise SteemConnectionError("WebSocket is not connected")

            self._correlator.register(descriptor.request_id)
            _LOGGER.debug("[%s] >>> %s", self.endpoint_uri, text)
            try:
                self._run(self._ws.send_text(text), timeout=self.response_timeout)
            except SteemClientError:
                self._correlator.discard()
                raise

            # An abandoned call is not cancelled on the node; its reply is
            # skipped if it turns up while a later call is waiting.
            try:
                raw = self._correlator.await_response(
                    self.response_timeout, is_stale=self._is_expired_reply
                )
            except SteemTimeout:
                self._expired_ids.append(descriptor.request_id)
                raise
            _LOGGER.debug("[%s] <<< %.500s", self.endpoint_uri, raw)
            return raw

    def _is_expired_reply(self, text: str) -> bool:
        request_id = response_id(text)
        if request_id in self._expired_ids:
            self._expired_ids.remove(request_id)
            _LOGGER.debug(
                "[%s] Dropping late reply to request %s", self.endpoint_uri, request_id
            )
            return True
        return False

    # -------------------------------------------------------------------------
    # Internal: Transport Thread
    # -------------------------------------------------------------------------

    def _start_loop(self) -> None:
        loop = asyncio.new_event_loop()
        thread = threading.Thread(
            target=self._run_loop,
            args=(loop,),
            name=f"steem-bridge[{self.endpoint_uri}]",
            daemon=True,
        )
        self._loop = loop
        self._thread = thread
        thread.start()

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def _stop_loop(self) -> None:
        loop, thread = self._loop, self._thread
        self._loop = None
        self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=_SHUTDOWN_TIMEOUT)

    def _run(self, coro: Coroutine[Any, Any, _T], *, timeout: float) -> _T:
        """Run a coroutine on the transport loop and wait for its result."""
        if self._loop is None:
            coro.close()
            raise SteemConnectionError("Transport loop is not running")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as err:
            future.cancel()
            raise SteemConnectionError("Transport operation timed out") from err

    async def _open(self) -> None:
        ws = SteemWsClient()
        await ws.connect(
            self.endpoint_uri,
            ping_interval=self._ping_interval,
            timeout=self._connect_timeout,
        )
        self._ws = ws
        self._connected = True
        self._receive_task = asyncio.create_task(self._receive())

    async def _shutdown(self) -> None:
        if self._receive_task is not None:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def _receive(self) -> None:
        """Forward every text frame to the correlator."""
        if self._ws is None:
            return

        async for msg in self._ws:
            if msg.type is SteemWsMessageType.TEXT and msg.data is not None:
                self._on_frame(msg.data)
            elif msg.type is SteemWsMessageType.CLOSED:
                _LOGGER.info("[%s] WebSocket closed by node", self.endpoint_uri)
                self._on_connection_lost("WebSocket closed by node")
                break
            elif msg.type is SteemWsMessageType.ERROR:
                _LOGGER.error("[%s] WebSocket error", self.endpoint_uri)
                self._on_connection_lost("WebSocket error")
                break

    def _on_frame(self, text: str) -> None:
        # Runs on the transport thread; store and release only.
        self._correlator.deliver(text)

    def _on_connection_lost(self, reason: str) -> None:
        self._connected = False
        self._correlator.abort(reason)
