"""Single-slot correlation between a sent request and the inbound frames.

Only one call is ever outstanding, so its response is the next frame the
transport delivers. Frames are queued on the slot in arrival order; the
caller can skip frames it recognizes as late replies to earlier calls and
keep waiting for its own until the deadline. The slot remembers the
outstanding request id so the envelope decoder can verify the pairing.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from .errors import SteemClientError, SteemConnectionError, SteemTimeout

_LOGGER = logging.getLogger(__name__)


class PendingCall:
    """Correlation state for one in-flight request."""

    __slots__ = ("request_id", "frames", "failure", "_ready")

    def __init__(self, request_id: int) -> None:
        self.request_id = request_id
        self.frames: deque[str] = deque()
        self.failure: str | None = None
        self._ready = threading.Event()

    @property
    def is_failed(self) -> bool:
        return self.failure is not None

    def wait(self, timeout: float) -> bool:
        return self._ready.wait(timeout)


class ResponseCorrelator:
    """Hand frames from the transport thread to the blocked caller thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: PendingCall | None = None

    @property
    def pending(self) -> PendingCall | None:
        return self._pending

    def register(self, request_id: int) -> PendingCall:
        """Open the slot for a new request.

        Raises:
            SteemClientError: If another call is still outstanding
        """
        with self._lock:
            if self._pending is not None:
                raise SteemClientError(
                    f"Request {self._pending.request_id} is still outstanding"
                )
            self._pending = PendingCall(request_id)
            return self._pending

    def discard(self) -> None:
        """Drop the slot without waiting, e.g. when the send itself failed."""
        with self._lock:
            self._pending = None

    def deliver(self, message: str) -> bool:
        """Queue a frame and release the waiter.

        Called from the transport thread. Returns False when nobody is waiting
        anymore; such frames are dropped.
        """
        with self._lock:
            pending = self._pending
            if pending is None or pending.is_failed:
                _LOGGER.debug("Discarding unsolicited frame: %.200s", message)
                return False
            pending.frames.append(message)
            pending._ready.set()
            return True

    def abort(self, reason: str) -> bool:
        """Release the waiter with a connection failure."""
        with self._lock:
            pending = self._pending
            if pending is None or pending.is_failed:
                return False
            pending.failure = reason
            pending._ready.set()
            return True

    def await_response(
        self,
        timeout: float,
        *,
        is_stale: Callable[[str], bool] | None = None,
    ) -> str:
        """Block until the outstanding call gets its frame or ``timeout`` elapses.

        Frames for which ``is_stale`` returns True are dropped and the wait
        continues against the same deadline. The slot is cleared in every
        case so the next call starts clean.

        Raises:
            SteemTimeout: If no usable frame arrived in time
            SteemConnectionError: If the connection dropped while waiting
        """
        pending = self._pending
        if pending is None:
            raise SteemClientError("No request is outstanding")

        deadline = time.monotonic() + timeout
        try:
            while True:
                message = self._next_frame(pending, deadline, timeout)
                if is_stale is not None and is_stale(message):
                    _LOGGER.debug("Discarding late frame: %.200s", message)
                    continue
                return message
        finally:
            with self._lock:
                if self._pending is pending:
                    self._pending = None

    def _next_frame(self, pending: PendingCall, deadline: float, timeout: float) -> str:
        while True:
            with self._lock:
                if pending.frames:
                    message = pending.frames.popleft()
                    if not pending.frames and not pending.is_failed:
                        pending._ready.clear()
                    return message
                if pending.failure is not None:
                    raise SteemConnectionError(pending.failure)

            remaining = deadline - time.monotonic()
            if remaining <= 0 or not pending.wait(remaining):
                raise SteemTimeout(
                    f"No response for request {pending.request_id} within {timeout:.3f}s"
                )
