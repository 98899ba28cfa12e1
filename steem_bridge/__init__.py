"""Synchronous client for the Steem JSON-RPC WebSocket API."""

__version__ = "0.1.0"

from .api import DiscussionSortType, SteemApi
from .bridge import SessionBridge
from .client import SteemClient
from .config import ConfigLoadError, SteemClientConfig, load_config
from .discovery import CapabilityDiscovery, DiscoveryResult, DiscoveryState
from .errors import (
    SteemClientError,
    SteemConnectionError,
    SteemHandshakeError,
    SteemResponseError,
    SteemTimeout,
    SteemTransformationError,
)
from .protocol import (
    RequestDescriptor,
    RequestMethods,
    ResponseEnvelope,
    SteemApis,
    build_request,
    decode_response,
    encode_request,
)
from .transform import Shape, ShapeKind, transform

__all__ = [
    "CapabilityDiscovery",
    "ConfigLoadError",
    "DiscoveryResult",
    "DiscoveryState",
    "DiscussionSortType",
    "RequestDescriptor",
    "RequestMethods",
    "ResponseEnvelope",
    "SessionBridge",
    "Shape",
    "ShapeKind",
    "SteemApi",
    "SteemApis",
    "SteemClient",
    "SteemClientConfig",
    "SteemClientError",
    "SteemConnectionError",
    "SteemHandshakeError",
    "SteemResponseError",
    "SteemTimeout",
    "SteemTransformationError",
    "__version__",
    "build_request",
    "decode_response",
    "encode_request",
    "load_config",
    "transform",
]
