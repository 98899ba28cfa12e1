"""Synchronous client for a Steem node.

Usage:
    config = SteemClientConfig(endpoint_uri="wss://steemd.steemit.com")
    with SteemClient(config) as client:
        count = client.invoke(
            SteemApis.DATABASE_API,
            RequestMethods.GET_ACCOUNT_COUNT,
            [],
            Shape.single(int),
        )[0]
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from .bridge import SessionBridge
from .config import SteemClientConfig
from .discovery import CapabilityDiscovery, DiscoveryResult
from .errors import SteemClientError
from .protocol import RequestDescriptor, RequestMethods, SteemApis, decode_response
from .transform import Shape, transform


class SteemClient:
    """Blocking, typed access to a node's JSON-RPC API.

    Construction connects, logs in and probes the sub-APIs. It fails only
    when the connection itself cannot be established.
    """

    def __init__(
        self,
        config: SteemClientConfig | None = None,
        *,
        bridge: SessionBridge | None = None,
        discover: bool = True,
    ) -> None:
        """Initialize client.

        Args:
            config: Client configuration, defaults apply when omitted
            bridge: Pre-built session bridge (mainly for tests)
            discover: Run login and sub-API probing during construction
        """
        self.config = config or SteemClientConfig()
        self._bridge = bridge or SessionBridge(
            self.config.endpoint_uri,
            response_timeout=self.config.response_timeout,
            connect_timeout=self.config.connect_timeout,
            ping_interval=self.config.ping_interval,
        )
        self.discovery: DiscoveryResult | None = None
        self._capabilities: Mapping[str, int] = MappingProxyType({})

        self._bridge.connect()
        if discover:
            try:
                self.discovery = CapabilityDiscovery(
                    self.invoke,
                    username=self.config.username,
                    password=self.config.password,
                    label=self.config.endpoint_uri,
                    is_connected=lambda: self._bridge.is_connected,
                ).run()
            except SteemClientError:
                self._bridge.close()
                raise
            self._capabilities = self.discovery.capabilities

    @property
    def capabilities(self) -> Mapping[str, int]:
        """Published sub-APIs and their node-assigned ids."""
        return self._capabilities

    @property
    def is_connected(self) -> bool:
        return self._bridge.is_connected

    def has_api(self, api: SteemApis) -> bool:
        """Return True when discovery found ``api`` on the node."""
        return api.value in self._capabilities

    def invoke(
        self,
        sub_api: SteemApis,
        method: RequestMethods | str,
        parameters: Sequence[Any] = (),
        shape: Shape | None = None,
    ) -> list[Any]:
        """Call a remote method and return the typed result list.

        Raises:
            SteemConnectionError: If the session is not usable or out of sync
            SteemTimeout: If the node did not answer in time
            SteemResponseError: If the node reported an error
            SteemTransformationError: If the result does not fit ``shape``
        """
        descriptor = RequestDescriptor(
            sub_api=sub_api,
            method=method,
            parameters=tuple(parameters),
            request_id=self._bridge.next_request_id(),
        )
        raw = self._bridge.send_and_await(descriptor)
        envelope = decode_response(raw, expected_id=descriptor.request_id)
        return transform(envelope, shape or Shape.single())

    def close(self) -> None:
        """Close the node session."""
        self._bridge.close()

    def __enter__(self) -> SteemClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
