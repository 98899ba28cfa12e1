"""Tests for capability discovery."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import pytest

from steem_bridge.discovery import CapabilityDiscovery, DiscoveryState
from steem_bridge.errors import (
    SteemConnectionError,
    SteemResponseError,
    SteemTimeout,
)
from steem_bridge.protocol import RequestMethods, SteemApis
from steem_bridge.transform import Shape


class FakeInvoker:
    """Records calls and answers login and get_api_by_name."""

    def __init__(
        self,
        *,
        login: Any = True,
        apis: dict[str, Any] | None = None,
    ) -> None:
        self.login = login
        self.apis = apis or {}
        self.calls: list[tuple[SteemApis, RequestMethods, list[Any]]] = []

    def __call__(
        self,
        sub_api: SteemApis,
        method: RequestMethods,
        params: Sequence[Any],
        shape: Shape,
    ) -> list[Any]:
        self.calls.append((sub_api, method, list(params)))
        if method is RequestMethods.LOGIN:
            answer = self.login
        else:
            answer = self.apis.get(params[0])
        if isinstance(answer, Exception):
            raise answer
        return [answer]


class TestLogin:
    """Tests for the login step."""

    def test_anonymous_login_uses_empty_strings(self):
        """Test missing credentials send an explicit anonymous login."""
        invoke = FakeInvoker()

        result = CapabilityDiscovery(invoke).run()

        assert invoke.calls[0] == (SteemApis.LOGIN_API, RequestMethods.LOGIN, ["", ""])
        assert result.logged_in
        assert not result.authenticated

    def test_credentials_are_used(self):
        """Test both credentials are sent when present."""
        invoke = FakeInvoker()

        result = CapabilityDiscovery(invoke, username="alice", password="pw").run()

        assert invoke.calls[0][2] == ["alice", "pw"]
        assert result.authenticated

    def test_partial_credentials_are_anonymous(self):
        """Test a username without password logs in anonymously."""
        invoke = FakeInvoker()

        CapabilityDiscovery(invoke, username="alice").run()

        assert invoke.calls[0][2] == ["", ""]

    def test_rejected_login_is_not_fatal(self, caplog: pytest.LogCaptureFixture):
        """Test a false login result only logs a warning."""
        invoke = FakeInvoker(login=False, apis={"database_api": 0})

        with caplog.at_level(logging.WARNING, logger="steem_bridge.discovery"):
            result = CapabilityDiscovery(invoke, username="alice", password="bad").run()

        assert result.state is DiscoveryState.READY
        assert not result.logged_in
        assert not result.authenticated
        assert "Login failed" in caplog.text
        assert result.capabilities == {"database_api": 0}

    def test_login_error_is_not_fatal(self, caplog: pytest.LogCaptureFixture):
        """Test remote errors and timeouts during login are downgraded."""
        invoke = FakeInvoker(login=SteemResponseError(1, "nope"))

        with caplog.at_level(logging.WARNING, logger="steem_bridge.discovery"):
            result = CapabilityDiscovery(invoke).run()

        assert result.state is DiscoveryState.READY
        assert "Login call failed" in caplog.text


class TestProbing:
    """Tests for sub-API probing."""

    def test_all_apis_probed(self):
        """Test every known sub-API is probed by name."""
        invoke = FakeInvoker()

        CapabilityDiscovery(invoke).run()

        probed = [params[0] for _, method, params in invoke.calls if method is RequestMethods.GET_API_BY_NAME]
        assert probed == [api.value for api in SteemApis]

    def test_partial_availability(self, caplog: pytest.LogCaptureFixture):
        """Test N of M published sub-APIs end up in the capability set."""
        published = {"database_api": 0, "login_api": 1, "network_broadcast_api": 2}
        invoke = FakeInvoker(apis=published)

        with caplog.at_level(logging.WARNING, logger="steem_bridge.discovery"):
            result = CapabilityDiscovery(invoke, label="node").run()

        assert dict(result.capabilities) == published
        missing = [api.value for api in SteemApis if api.value not in published]
        assert list(result.missing) == missing
        for name in missing:
            assert f"The {name} is not published" in caplog.text

    def test_no_apis(self):
        """Test an empty capability set still completes."""
        result = CapabilityDiscovery(FakeInvoker()).run()

        assert result.state is DiscoveryState.READY
        assert len(result.capabilities) == 0
        assert len(result.missing) == len(SteemApis)

    def test_probe_failure_does_not_stop_others(self, caplog: pytest.LogCaptureFixture):
        """Test one failing probe is logged and the rest continue."""
        invoke = FakeInvoker(
            apis={"database_api": SteemTimeout("slow"), "login_api": 1}
        )

        with caplog.at_level(logging.WARNING, logger="steem_bridge.discovery"):
            result = CapabilityDiscovery(invoke).run()

        assert dict(result.capabilities) == {"login_api": 1}
        assert "database_api" in result.missing
        assert "Probing database_api failed" in caplog.text

    def test_capabilities_read_only(self):
        result = CapabilityDiscovery(FakeInvoker(apis={"database_api": 0})).run()

        with pytest.raises(TypeError):
            result.capabilities["tag_api"] = 3  # type: ignore[index]


class TestConnectionFailures:
    """Tests for failures that end discovery."""

    def test_lost_connection_propagates(self):
        """Test a connection failure on a dead session is fatal."""
        invoke = FakeInvoker(login=SteemConnectionError("WebSocket closed by node"))

        with pytest.raises(SteemConnectionError):
            CapabilityDiscovery(invoke, is_connected=lambda: False).run()

    def test_desync_on_live_session_is_downgraded(self):
        """Test a bad frame on an open session only skips that probe."""
        invoke = FakeInvoker(apis={"database_api": SteemConnectionError("bad frame")})

        result = CapabilityDiscovery(invoke, is_connected=lambda: True).run()

        assert result.state is DiscoveryState.READY
        assert "database_api" in result.missing

    def test_runs_once(self):
        discovery = CapabilityDiscovery(FakeInvoker())
        discovery.run()

        with pytest.raises(Exception, match="already run"):
            discovery.run()
