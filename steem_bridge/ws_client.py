"""WebSocket client wrapper for Steem nodes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import (
    ConnectionClosed,
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from .errors import SteemConnectionError, SteemHandshakeError, SteemTimeout

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

# Node replies such as full blocks exceed the library's default frame limit.
_MAX_FRAME_SIZE = None
_CLOSE_TIMEOUT = 5


class SteemWsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class SteemWsMessage:
    """Normalized WebSocket message payload."""

    type: SteemWsMessageType
    data: str | None = None


class SteemWsClient:
    """Wrapper around websockets library for a Steem node."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def connect(
        self,
        uri: str,
        *,
        ping_interval: int | None = 20,
        timeout: float = 15.0,
    ) -> None:
        """Open the WebSocket session with the node.

        Args:
            uri: Endpoint URI, e.g. ``wss://steemd.steemit.com``
            ping_interval: Keepalive ping interval, None disables pings
            timeout: Seconds allowed for the opening handshake

        Raises:
            SteemTimeout: If the handshake did not complete in time
            SteemHandshakeError: If the URI is invalid or the upgrade was refused
            SteemConnectionError: If the node is unreachable
        """
        try:
            self._ws = await asyncio.wait_for(
                ws_connect(
                    uri,
                    ping_interval=ping_interval,
                    close_timeout=_CLOSE_TIMEOUT,
                    max_size=_MAX_FRAME_SIZE,
                ),
                timeout=timeout,
            )
        except TimeoutError as err:
            raise SteemTimeout(f"Handshake with {uri} timed out") from err
        except (InvalidHandshake, InvalidURI) as err:
            raise SteemHandshakeError(f"Node at {uri} refused the upgrade") from err
        except (OSError, WebSocketException) as err:
            raise SteemConnectionError(f"Cannot reach node at {uri}") from err

    async def close(self) -> None:
        """Close the websocket connection."""
        if self._ws is not None:
            ws, self._ws = self._ws, None
            await ws.close()

    async def send_text(self, text: str) -> None:
        """Send a text frame.

        Raises:
            SteemConnectionError: If not connected or the connection dropped
        """
        if self._ws is None:
            raise SteemConnectionError("WebSocket is not connected")
        try:
            await self._ws.send(text)
        except (OSError, WebSocketException) as err:
            raise SteemConnectionError("Sending the request failed") from err

    def __aiter__(self) -> AsyncIterator[SteemWsMessage]:
        if self._ws is None:
            raise SteemConnectionError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[SteemWsMessage]:
        if self._ws is None:
            raise SteemConnectionError("WebSocket is not connected")

        try:
            async for msg in self._ws:
                normalized = self._normalize_message(msg)
                if normalized is None:
                    continue
                yield normalized
        except ConnectionClosed:
            yield SteemWsMessage(type=SteemWsMessageType.CLOSED)
        except (OSError, WebSocketException):
            yield SteemWsMessage(type=SteemWsMessageType.ERROR)
        else:
            # Normal iteration completion means the peer closed gracefully.
            yield SteemWsMessage(type=SteemWsMessageType.CLOSED)

    @staticmethod
    def _normalize_message(msg: Any) -> SteemWsMessage | None:
        """Normalize raw frames; binary frames are not part of the protocol."""
        if isinstance(msg, bytes):
            return None
        if isinstance(msg, str):
            return SteemWsMessage(SteemWsMessageType.TEXT, msg)
        return SteemWsMessage(SteemWsMessageType.TEXT, str(msg))

