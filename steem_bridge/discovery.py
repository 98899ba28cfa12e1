"""Startup capability discovery.

Runs once while a client is constructed::

    START -> LOGGING_IN -> PROBING_APIS -> READY

Login failures and missing sub-APIs are logged and never fail construction.
A :class:`SteemConnectionError` propagates only when the session itself is
gone; a bad frame on a live session is downgraded like any other failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .errors import SteemClientError, SteemConnectionError
from .protocol import RequestMethods, SteemApis
from .transform import Shape

_LOGGER = logging.getLogger(__name__)

Invoker = Callable[[SteemApis, RequestMethods, Sequence[Any], Shape], list[Any]]


class DiscoveryState(Enum):
    """States of the discovery run."""

    START = "start"
    LOGGING_IN = "logging_in"
    PROBING_APIS = "probing_apis"
    READY = "ready"


@dataclass(frozen=True)
class DiscoveryResult:
    """Outcome of a discovery run.

    Attributes:
        state: Final state, always READY after a completed run.
        logged_in: Whether the login call returned true.
        authenticated: Whether a login with real credentials succeeded.
        capabilities: Sub-API name to node-assigned id, for published APIs only.
        missing: Names of the sub-APIs the node does not publish.
    """

    state: DiscoveryState
    logged_in: bool
    authenticated: bool
    capabilities: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    missing: tuple[str, ...] = ()


class CapabilityDiscovery:
    """Login and sub-API probing state machine."""

    def __init__(
        self,
        invoke: Invoker,
        *,
        username: str = "",
        password: str = "",
        apis: Iterable[SteemApis] = tuple(SteemApis),
        label: str = "",
        is_connected: Callable[[], bool] | None = None,
    ) -> None:
        self._invoke = invoke
        self._is_connected = is_connected
        self._username = username
        self._password = password
        self._apis = tuple(apis)
        self._label = label
        self._state = DiscoveryState.START

    @property
    def state(self) -> DiscoveryState:
        return self._state

    def run(self) -> DiscoveryResult:
        """Run the discovery to completion.

        Raises:
            SteemConnectionError: If the connection fails during discovery
        """
        if self._state is not DiscoveryState.START:
            raise SteemClientError("Capability discovery has already run")

        self._state = DiscoveryState.LOGGING_IN
        authenticated = bool(self._username) and bool(self._password)
        logged_in = self._login(authenticated)

        self._state = DiscoveryState.PROBING_APIS
        capabilities: dict[str, int] = {}
        missing: list[str] = []
        for api in self._apis:
            api_id = self._probe(api)
            if api_id is None:
                missing.append(api.value)
            else:
                capabilities[api.value] = api_id

        self._state = DiscoveryState.READY
        _LOGGER.info(
            "[%s] %d of %d sub-APIs available",
            self._label,
            len(capabilities),
            len(self._apis),
        )
        return DiscoveryResult(
            state=self._state,
            logged_in=logged_in,
            authenticated=authenticated and logged_in,
            capabilities=MappingProxyType(capabilities),
            missing=tuple(missing),
        )

    def _login(self, authenticated: bool) -> bool:
        if authenticated:
            _LOGGER.info(
                "[%s] Logging in as %s before checking the available sub-APIs",
                self._label,
                self._username,
            )
            params = [self._username, self._password]
        else:
            _LOGGER.info(
                "[%s] No credentials provided, checking sub-APIs as anonymous user",
                self._label,
            )
            params = ["", ""]

        try:
            result = self._invoke(
                SteemApis.LOGIN_API, RequestMethods.LOGIN, params, Shape.single(bool)
            )
        except SteemClientError as err:
            if self._connection_lost(err):
                raise
            _LOGGER.warning("[%s] Login call failed: %s", self._label, err)
            return False

        if result[0]:
            if authenticated:
                _LOGGER.info("[%s] Logged in as %s", self._label, self._username)
            return True

        _LOGGER.warning(
            "[%s] Login failed, continuing as anonymous user", self._label
        )
        return False

    def _probe(self, api: SteemApis) -> int | None:
        try:
            result = self._invoke(
                SteemApis.LOGIN_API,
                RequestMethods.GET_API_BY_NAME,
                [api.value],
                Shape.single(int | None),
            )
        except SteemClientError as err:
            if self._connection_lost(err):
                raise
            _LOGGER.warning(
                "[%s] Probing %s failed: %s", self._label, api.value, err
            )
            return None

        if result[0] is None:
            _LOGGER.warning(
                "[%s] The %s is not published by the node", self._label, api.value
            )
        return result[0]

    def _connection_lost(self, err: SteemClientError) -> bool:
        if not isinstance(err, SteemConnectionError):
            return False
        return self._is_connected is None or not self._is_connected()
