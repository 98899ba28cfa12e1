"""Tests for SteemClient end to end against a fake node."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import patch

import pytest

from steem_bridge import (
    RequestMethods,
    SessionBridge,
    Shape,
    SteemApis,
    SteemClient,
    SteemClientConfig,
    SteemConnectionError,
    SteemResponseError,
    SteemTimeout,
    SteemTransformationError,
)
from steem_bridge.discovery import DiscoveryState

from .conftest import NODE_URI, FakeNodeConnection, close_connection, node_responder


@pytest.fixture
def config() -> SteemClientConfig:
    return SteemClientConfig(endpoint_uri=NODE_URI, response_timeout=1.0)


class TestInvoke:
    """Tests for SteemClient.invoke()."""

    def test_account_count(self, node: FakeNodeConnection, config, fake_connect):
        """Test a scalar result against a literal node frame."""
        node.responder = lambda request: '{"id":1,"result":42}'

        with SteemClient(config, discover=False) as client:
            result = client.invoke(
                SteemApis.DATABASE_API, RequestMethods.GET_ACCOUNT_COUNT, [], Shape.single(int)
            )

        assert result == [42]

    def test_anonymous_login(self, node: FakeNodeConnection, config, fake_connect):
        """Test an anonymous login returns true without raising."""
        node.responder = lambda request: '{"id":1,"result":true}'

        with SteemClient(config, discover=False) as client:
            result = client.invoke(
                SteemApis.LOGIN_API, RequestMethods.LOGIN, ["", ""], Shape.single(bool)
            )

        assert result == [True]

    def test_slow_reply_does_not_break_next_call(self, node: FakeNodeConnection, fake_connect):
        """Test a call after a timeout gets its own result despite the late reply."""
        config = SteemClientConfig(endpoint_uri=NODE_URI, response_timeout=0.2)

        with SteemClient(config, discover=False) as client:
            with pytest.raises(SteemTimeout):
                client.invoke(SteemApis.DATABASE_API, RequestMethods.GET_ACCOUNT_COUNT)

            node.responder = lambda request: [
                '{"id":1,"result":111}',
                '{"id":2,"result":7}',
            ]
            result = client.invoke(
                SteemApis.DATABASE_API, RequestMethods.GET_ACCOUNT_COUNT, [], Shape.single(int)
            )

        assert result == [7]

    def test_array_result_length(self, node: FakeNodeConnection, config, fake_connect):
        """Test array results yield one value per element."""
        node.responder = node_responder({"lookup_accounts": ["a", "ab", "abc"]})

        with SteemClient(config, discover=False) as client:
            result = client.invoke(
                SteemApis.DATABASE_API,
                RequestMethods.LOOKUP_ACCOUNTS,
                ["a", 3],
                Shape.many(str),
            )

        assert result == ["a", "ab", "abc"]

    def test_remote_error(self, node: FakeNodeConnection, config, fake_connect):
        """Test node errors surface with their code and message."""
        node.responder = node_responder(
            errors={"get_block": {"code": 1, "message": "unknown block", "data": None}}
        )

        with SteemClient(config, discover=False) as client:
            with pytest.raises(SteemResponseError) as exc_info:
                client.invoke(SteemApis.DATABASE_API, RequestMethods.GET_BLOCK, [1])

        assert exc_info.value.code == 1
        assert exc_info.value.message == "unknown block"

    def test_shape_mismatch(self, node: FakeNodeConnection, config, fake_connect):
        node.responder = node_responder({"get_witness_count": {"count": 21}})

        with SteemClient(config, discover=False) as client:
            with pytest.raises(SteemTransformationError, match="int"):
                client.invoke(
                    SteemApis.DATABASE_API,
                    RequestMethods.GET_WITNESS_COUNT,
                    [],
                    Shape.single(int),
                )

    def test_unsolicited_frame(self, node: FakeNodeConnection, config, fake_connect):
        """Test a response for another id is a connection failure."""
        node.responder = lambda request: {"id": request["id"] + 100, "result": 1}

        with SteemClient(config, discover=False) as client:
            with pytest.raises(SteemConnectionError, match="does not match"):
                client.invoke(SteemApis.DATABASE_API, RequestMethods.GET_ACCOUNT_COUNT)

    def test_timeout(self, node: FakeNodeConnection, fake_connect):
        """Test a silent node times out and the client stays connected."""
        config = SteemClientConfig(endpoint_uri=NODE_URI, response_timeout=0.2)

        with SteemClient(config, discover=False) as client:
            with pytest.raises(SteemTimeout):
                client.invoke(SteemApis.DATABASE_API, RequestMethods.GET_ACCOUNT_COUNT)
            assert client.is_connected


class TestConstruction:
    """Tests for capability discovery during construction."""

    def test_discovery_runs(self, node: FakeNodeConnection, config, fake_connect, caplog):
        """Test construction logs in and records published sub-APIs."""
        node.responder = node_responder(apis={"database_api": 0, "login_api": 1})

        with caplog.at_level(logging.WARNING, logger="steem_bridge"):
            with SteemClient(config) as client:
                assert client.discovery is not None
                assert client.discovery.state is DiscoveryState.READY
                assert dict(client.capabilities) == {"database_api": 0, "login_api": 1}
                assert client.has_api(SteemApis.DATABASE_API)
                assert not client.has_api(SteemApis.TAG_API)

        assert "The tag_api is not published" in caplog.text
        first = node.requests[0]
        assert first["params"] == ["login_api", "login", ["", ""]]
        assert len(node.requests) == 1 + len(SteemApis)

    def test_failed_login_is_not_fatal(self, node: FakeNodeConnection, fake_connect):
        """Test wrong credentials still produce a usable client."""
        node.responder = node_responder(login=False, apis={"database_api": 0})
        config = SteemClientConfig(
            endpoint_uri=NODE_URI, username="alice", password="wrong"
        )

        with SteemClient(config) as client:
            assert client.discovery is not None
            assert not client.discovery.logged_in
            assert node.requests[0]["params"][2] == ["alice", "wrong"]

    def test_silent_node_still_constructs(self, node: FakeNodeConnection, fake_connect):
        """Test timeouts during discovery are downgraded."""
        config = SteemClientConfig(endpoint_uri=NODE_URI, response_timeout=0.05)

        with SteemClient(config) as client:
            assert client.discovery is not None
            assert len(client.capabilities) == 0

    def test_connection_failure_is_fatal(self, config):
        """Test an unreachable node fails construction."""

        async def connect(uri: str, **kwargs: Any) -> None:
            raise SteemConnectionError("WebSocket connection failed")

        with patch("steem_bridge.ws_client.ws_connect", new=connect):
            with pytest.raises(SteemConnectionError):
                SteemClient(config)

    def test_connection_lost_during_discovery(self, node: FakeNodeConnection, config, fake_connect):
        """Test a connection dropped during login fails construction."""
        node.responder = close_connection

        with pytest.raises(SteemConnectionError):
            SteemClient(config)

        assert node.closed

    def test_uses_given_bridge(self, node: FakeNodeConnection, config, fake_connect):
        node.responder = node_responder()
        bridge = SessionBridge(NODE_URI, response_timeout=1.0)

        with SteemClient(config, bridge=bridge) as client:
            assert client.is_connected

        assert not bridge.is_connected
