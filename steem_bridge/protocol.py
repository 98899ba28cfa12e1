"""Envelope helpers for Steem JSON-RPC frames.

Outbound requests always use the ``call`` method with the sub-API name, the
remote method name and the positional parameter list::

    {"id": 7, "method": "call", "params": ["database_api", "get_block", [1]]}

Inbound frames carry either ``result`` or ``error`` next to the echoed id.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import SteemConnectionError, SteemTransformationError


class SteemApis(Enum):
    """Sub-APIs a node may publish."""

    DATABASE_API = "database_api"
    LOGIN_API = "login_api"
    FOLLOW_API = "follow_api"
    ACCOUNT_BY_KEY_API = "account_by_key_api"
    MARKET_HISTORY_API = "market_history_api"
    NETWORK_BROADCAST_API = "network_broadcast_api"
    NETWORK_NODE_API = "network_node_api"
    TAG_API = "tag_api"


class RequestMethods(Enum):
    """Remote method names."""

    BROADCAST_TRANSACTION = "broadcast_transaction"
    BROADCAST_TRANSACTION_SYNCHRONOUS = "broadcast_transaction_synchronous"
    GET_ACCOUNT_COUNT = "get_account_count"
    GET_ACCOUNT_HISTORY = "get_account_history"
    GET_ACCOUNT_VOTES = "get_account_votes"
    GET_ACTIVE_VOTES = "get_active_votes"
    GET_ACTIVE_WITNESSES = "get_active_witnesses"
    GET_API_BY_NAME = "get_api_by_name"
    GET_BLOCK = "get_block"
    GET_BLOCK_HEADER = "get_block_header"
    GET_CHAIN_PROPERTIES = "get_chain_properties"
    GET_CONFIG = "get_config"
    GET_CONTENT = "get_content"
    GET_CONTENT_REPLIES = "get_content_replies"
    GET_CONVERSATION_REQUESTS = "get_conversation_requests"
    GET_CURRENT_MEDIAN_HISTORY_PRICE = "get_current_median_history_price"
    GET_DISCUSSIONS_BY_ACTIVE = "get_discussions_by_active"
    GET_DISCUSSIONS_BY_BLOG = "get_discussions_by_blog"
    GET_DISCUSSIONS_BY_CASHOUT = "get_discussions_by_cashout"
    GET_DISCUSSIONS_BY_CHILDREN = "get_discussions_by_children"
    GET_DISCUSSIONS_BY_COMMENTS = "get_discussions_by_comments"
    GET_DISCUSSIONS_BY_CREATED = "get_discussions_by_created"
    GET_DISCUSSIONS_BY_FEED = "get_discussions_by_feed"
    GET_DISCUSSIONS_BY_HOT = "get_discussions_by_hot"
    GET_DISCUSSIONS_BY_PAYOUT = "get_discussions_by_payout"
    GET_DISCUSSIONS_BY_PROMOTED = "get_discussions_by_promoted"
    GET_DISCUSSIONS_BY_TRENDING = "get_discussions_by_trending"
    GET_DISCUSSIONS_BY_VOTES = "get_discussions_by_votes"
    GET_DYNAMIC_GLOBAL_PROPERTIES = "get_dynamic_global_properties"
    GET_FEED_HISTORY = "get_feed_history"
    GET_HARDFORK_VERSION = "get_hardfork_version"
    GET_KEY_REFERENCES = "get_key_references"
    GET_MINER_QUEUE = "get_miner_queue"
    GET_NEXT_SCHEDULED_HARDFORK = "get_next_scheduled_hardfork"
    GET_OPEN_ORDERS = "get_open_orders"
    GET_ORDER_BOOK = "get_order_book"
    GET_TRENDING_TAGS = "get_trending_tags"
    GET_VERSION = "get_version"
    GET_WITNESS_COUNT = "get_witness_count"
    GET_WITNESS_SCHEDULE = "get_witness_schedule"
    LOGIN = "login"
    LOOKUP_ACCOUNTS = "lookup_accounts"
    LOOKUP_WITNESS_ACCOUNTS = "lookup_witness_accounts"


@dataclass(frozen=True)
class RequestDescriptor:
    """A single outbound call."""

    sub_api: SteemApis
    method: RequestMethods | str
    parameters: tuple[Any, ...] = ()
    request_id: int = 0

    @property
    def method_name(self) -> str:
        if isinstance(self.method, RequestMethods):
            return self.method.value
        return self.method


@dataclass(frozen=True)
class RemoteError:
    """Error object reported by the node."""

    code: int
    message: str
    data: Any = None


@dataclass(frozen=True)
class ResponseEnvelope:
    """Decoded inbound frame.

    ``result`` may legitimately be ``None`` (e.g. an unpublished API), so
    success is signalled by ``error`` being absent.
    """

    request_id: int
    result: Any = None
    error: RemoteError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def _to_wire(value: Any) -> Any:
    """Convert a parameter into a JSON-serializable value."""
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: _to_wire(getattr(value, field.name))
            for field in dataclasses.fields(value)
            if getattr(value, field.name) is not None
        }
    if isinstance(value, dict):
        return {str(key): _to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(item) for item in value]
    return value


def build_request(descriptor: RequestDescriptor) -> dict[str, Any]:
    """Build the JSON-RPC request object for a descriptor."""
    return {
        "id": descriptor.request_id,
        "method": "call",
        "params": [
            descriptor.sub_api.value,
            descriptor.method_name,
            [_to_wire(param) for param in descriptor.parameters],
        ],
    }


def encode_request(descriptor: RequestDescriptor) -> str:
    """Serialize a descriptor into the text frame sent to the node."""
    try:
        return json.dumps(build_request(descriptor))
    except (TypeError, ValueError) as err:
        raise SteemTransformationError(
            f"Parameters of {descriptor.method_name} are not JSON serializable",
            value=descriptor.parameters,
            target="json",
        ) from err


def _parse_error(raw: Any) -> RemoteError:
    if not isinstance(raw, dict):
        raise SteemConnectionError("Error member is not a JSON object")
    code = raw.get("code")
    if not isinstance(code, int) or isinstance(code, bool):
        raise SteemConnectionError(f"Error member carries no integer code: {code!r}")
    return RemoteError(
        code=code,
        message=str(raw.get("message", "")),
        data=raw.get("data"),
    )


def decode_response(text: str, *, expected_id: int | None = None) -> ResponseEnvelope:
    """Decode an inbound frame.

    Raises:
        SteemConnectionError: If the frame is not a valid response envelope or
            answers a different request than the outstanding one.
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as err:
        raise SteemConnectionError("Received a frame that is not valid JSON") from err

    if not isinstance(payload, dict):
        raise SteemConnectionError("Received a frame that is not a JSON object")

    has_result = "result" in payload
    has_error = "error" in payload
    if has_result == has_error:
        raise SteemConnectionError(
            "Response must contain exactly one of 'result' and 'error'"
        )

    request_id = payload.get("id")
    if expected_id is not None and request_id != expected_id:
        raise SteemConnectionError(
            f"Response id {request_id!r} does not match outstanding request {expected_id}"
        )

    if has_error:
        return ResponseEnvelope(request_id=request_id, error=_parse_error(payload["error"]))
    return ResponseEnvelope(request_id=request_id, result=payload["result"])


def response_id(text: str) -> Any:
    """Return the ``id`` member of a frame, or None when it has none."""
    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get("id")
