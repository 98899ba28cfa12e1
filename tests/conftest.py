"""Pytest configuration and fixtures for steem_bridge tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import patch

import pytest
from websockets.exceptions import ConnectionClosed

from steem_bridge.bridge import SessionBridge

NODE_URI = "ws://node.test:8090"

Responder = Callable[[dict[str, Any]], Any]

_CLOSE = object()


def silent(request: dict[str, Any]) -> None:
    """Responder that never answers."""
    return None


class FakeNodeConnection:
    """Stand-in for a websockets ClientConnection.

    Every sent frame is passed to ``responder``; a dict or str return value is
    queued as the reply frame, a list queues several frames in order and None
    sends nothing.
    """

    def __init__(self, responder: Responder | None = None) -> None:
        self.responder: Responder = responder or silent
        self.sent: list[str] = []
        self.closed = False
        self._frames: asyncio.Queue[Any] = asyncio.Queue()

    @property
    def requests(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]

    async def send(self, text: str) -> None:
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(text)
        reply = self.responder(json.loads(text))
        for frame in reply if isinstance(reply, list) else [reply]:
            if frame is _CLOSE:
                self._frames.put_nowait(_CLOSE)
            elif frame is not None:
                self._frames.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def __aiter__(self) -> FakeNodeConnection:
        return self

    async def __anext__(self) -> str:
        item = await self._frames.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        return item

    async def close(self) -> None:
        self.closed = True
        self._frames.put_nowait(_CLOSE)


def close_connection(request: dict[str, Any]) -> object:
    """Responder that drops the connection instead of answering."""
    return _CLOSE


def node_responder(
    results: dict[str, Any] | None = None,
    *,
    errors: dict[str, dict[str, Any]] | None = None,
    apis: dict[str, int] | None = None,
    login: bool = True,
) -> Responder:
    """Build a responder that answers like a node.

    Args:
        results: Result per remote method name
        errors: Error object per remote method name
        apis: Published sub-API names and their ids
        login: Result of the login call
    """
    results = results or {}
    errors = errors or {}
    apis = apis if apis is not None else {}

    def respond(request: dict[str, Any]) -> dict[str, Any] | None:
        _, method, params = request["params"]
        if method in errors:
            return {"id": request["id"], "error": errors[method]}
        if method in results:
            return {"id": request["id"], "result": results[method]}
        if method == "login":
            return {"id": request["id"], "result": login}
        if method == "get_api_by_name":
            return {"id": request["id"], "result": apis.get(params[0])}
        return None

    return respond


@pytest.fixture
def node() -> FakeNodeConnection:
    """A fake node connection that stays silent until given a responder."""
    return FakeNodeConnection()


@pytest.fixture
def fake_connect(node: FakeNodeConnection) -> Iterator[None]:
    """Route the WebSocket handshake to the fake node."""

    async def connect(uri: str, **kwargs: Any) -> FakeNodeConnection:
        return node

    with patch("steem_bridge.ws_client.ws_connect", new=connect):
        yield


@pytest.fixture
def bridge(fake_connect: None) -> Iterator[SessionBridge]:
    """A connected bridge talking to the fake node."""
    bridge = SessionBridge(NODE_URI, response_timeout=1.0)
    bridge.connect()
    yield bridge
    bridge.close()
