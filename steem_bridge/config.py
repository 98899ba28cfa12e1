"""Client configuration and YAML loading."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ENDPOINT_URI = "wss://steemd.steemit.com"


class ConfigLoadError(Exception):
    """Error loading or validating a client configuration."""

    pass


@dataclass(frozen=True)
class SteemClientConfig:
    """Settings consumed by :class:`~steem_bridge.client.SteemClient`.

    Attributes:
        endpoint_uri: WebSocket URI of the node.
        response_timeout: Seconds to wait for each response.
        username: Optional login name.
        password: Optional login password.
        connect_timeout: Seconds to wait for the WebSocket handshake.
        ping_interval: Keepalive ping interval in seconds, None disables it.
    """

    endpoint_uri: str = DEFAULT_ENDPOINT_URI
    response_timeout: float = 5.0
    username: str = ""
    password: str = ""
    connect_timeout: float = 15.0
    ping_interval: int | None = 20

    def __post_init__(self) -> None:
        if not isinstance(self.endpoint_uri, str) or not self.endpoint_uri.startswith(
            ("ws://", "wss://")
        ):
            raise ConfigLoadError(
                f"endpoint_uri must be a ws:// or wss:// URI: {self.endpoint_uri!r}"
            )
        if self.response_timeout <= 0:
            raise ConfigLoadError("response_timeout must be positive")
        if self.connect_timeout <= 0:
            raise ConfigLoadError("connect_timeout must be positive")

    @property
    def has_credentials(self) -> bool:
        """True when both username and password are set."""
        return bool(self.username) and bool(self.password)

    def __repr__(self) -> str:
        password = "***" if self.password else ""
        return (
            f"SteemClientConfig(endpoint_uri={self.endpoint_uri!r}, "
            f"response_timeout={self.response_timeout!r}, "
            f"username={self.username!r}, password={password!r})"
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise ConfigLoadError(f"File not found: {path}")
    with path.open() as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as err:
            raise ConfigLoadError(f"Invalid YAML in {path}") from err
    if not isinstance(data, dict):
        raise ConfigLoadError(f"Expected a mapping in {path}")
    return data


def config_from_mapping(data: dict[str, Any]) -> SteemClientConfig:
    """Build a config from a plain mapping.

    Timeouts may be given in seconds (``response_timeout``) or, as older
    config files do, in milliseconds (``response_timeout_ms``).
    """
    values = dict(data)
    for key in ("response_timeout", "connect_timeout"):
        millis = values.pop(f"{key}_ms", None)
        if millis is not None:
            if key in values:
                raise ConfigLoadError(f"Both {key} and {key}_ms are set")
            if isinstance(millis, bool) or not isinstance(millis, (int, float)):
                raise ConfigLoadError(f"{key}_ms must be a number")
            values[key] = millis / 1000

    known = {f.name for f in fields(SteemClientConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigLoadError(f"Unknown config keys: {', '.join(unknown)}")

    for key in ("username", "password"):
        if values.get(key) is None:
            values.pop(key, None)
        else:
            values[key] = str(values[key])

    try:
        return SteemClientConfig(**values)
    except TypeError as err:
        raise ConfigLoadError(f"Invalid config values: {err}") from err


def load_config(path: Path | str) -> SteemClientConfig:
    """Load a client configuration from a YAML file.

    Example file::

        endpoint_uri: wss://steemd.steemit.com
        response_timeout_ms: 5000
        username: dez1337
        password: secret
    """
    return config_from_mapping(_load_yaml(Path(path)))
