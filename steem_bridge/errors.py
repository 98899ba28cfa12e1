"""Client error types for Steem node interactions."""

from __future__ import annotations

from typing import Any


class SteemClientError(Exception):
    """Base error for Steem client failures."""


class SteemTimeout(SteemClientError):
    """The node did not answer within the configured response timeout."""


class SteemConnectionError(SteemClientError):
    """Network connection to the node failed or is out of sync."""


class SteemHandshakeError(SteemConnectionError):
    """WebSocket handshake failed."""


class SteemTransformationError(SteemClientError):
    """A response could not be converted into the expected shape."""

    def __init__(self, message: str, *, value: Any = None, target: str = "") -> None:
        super().__init__(message)
        self.value = value
        self.target = target


class SteemResponseError(SteemClientError):
    """The node answered with an error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.data = data
