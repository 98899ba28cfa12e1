"""Application-facing façade: one method per remote call."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from .client import SteemClient
from .models import (
    AccountActivity,
    ActiveVote,
    Block,
    BlockHeader,
    ChainProperties,
    Discussion,
    DiscussionQuery,
    FeedHistory,
    GlobalProperties,
    OrderBook,
    Price,
    TrendingTag,
    UserOrder,
    Version,
    Vote,
    WitnessSchedule,
)
from .protocol import RequestMethods, SteemApis
from .transform import Shape


class DiscussionSortType(Enum):
    """Orderings offered by the ``get_discussions_by_*`` family."""

    SORTED_BY_ACTIVE = RequestMethods.GET_DISCUSSIONS_BY_ACTIVE
    SORTED_BY_BLOG = RequestMethods.GET_DISCUSSIONS_BY_BLOG
    SORTED_BY_CASHOUT = RequestMethods.GET_DISCUSSIONS_BY_CASHOUT
    SORTED_BY_CHILDREN = RequestMethods.GET_DISCUSSIONS_BY_CHILDREN
    SORTED_BY_COMMENTS = RequestMethods.GET_DISCUSSIONS_BY_COMMENTS
    SORTED_BY_CREATED = RequestMethods.GET_DISCUSSIONS_BY_CREATED
    SORTED_BY_FEED = RequestMethods.GET_DISCUSSIONS_BY_FEED
    SORTED_BY_HOT = RequestMethods.GET_DISCUSSIONS_BY_HOT
    SORTED_BY_PAYOUT = RequestMethods.GET_DISCUSSIONS_BY_PAYOUT
    SORTED_BY_PROMOTED = RequestMethods.GET_DISCUSSIONS_BY_PROMOTED
    SORTED_BY_TRENDING = RequestMethods.GET_DISCUSSIONS_BY_TRENDING
    SORTED_BY_VOTES = RequestMethods.GET_DISCUSSIONS_BY_VOTES


_DATABASE = SteemApis.DATABASE_API
_LOGIN = SteemApis.LOGIN_API


class SteemApi:
    """Typed wrapper around the node methods.

    Usage:
        with SteemClient(config) as client:
            api = SteemApi(client)
            print(api.get_dynamic_global_properties().head_block_number)
    """

    def __init__(self, client: SteemClient) -> None:
        self._client = client

    @property
    def client(self) -> SteemClient:
        return self._client

    def _one(
        self,
        sub_api: SteemApis,
        method: RequestMethods,
        params: Sequence[Any],
        target: Any,
    ) -> Any:
        return self._client.invoke(sub_api, method, params, Shape.single(target))[0]

    def _many(
        self,
        sub_api: SteemApis,
        method: RequestMethods,
        params: Sequence[Any],
        target: Any,
    ) -> list[Any]:
        return self._client.invoke(sub_api, method, params, Shape.many(target))

    # -------------------------------------------------------------------------
    # Login API
    # -------------------------------------------------------------------------

    def login(self, username: str | None = None, password: str | None = None) -> bool:
        """Log in; defaults to the credentials of the client config.

        Empty strings open an anonymous session, which some sub-APIs require.
        """
        if username is None:
            username = self._client.config.username
        if password is None:
            password = self._client.config.password
        return self._one(_LOGIN, RequestMethods.LOGIN, [username, password], bool)

    def get_api_by_name(self, api_name: str) -> int | None:
        """Node-assigned id of a sub-API, None if it is not published."""
        return self._one(_LOGIN, RequestMethods.GET_API_BY_NAME, [api_name], int | None)

    def get_version(self) -> Version:
        return self._one(_LOGIN, RequestMethods.GET_VERSION, [], Version)

    def get_block_header(self, block_number: int) -> BlockHeader:
        return self._one(
            _LOGIN, RequestMethods.GET_BLOCK_HEADER, [block_number], BlockHeader
        )

    def get_block(self, block_number: int) -> Block:
        return self._one(_LOGIN, RequestMethods.GET_BLOCK, [block_number], Block)

    def get_conversation_requests(self) -> Any:
        """Raw result; the shape of this call is not documented."""
        return self._one(_LOGIN, RequestMethods.GET_CONVERSATION_REQUESTS, [], Any)

    def get_feed_history(self) -> FeedHistory:
        return self._one(_LOGIN, RequestMethods.GET_FEED_HISTORY, [], FeedHistory)

    def get_next_scheduled_hardfork(self) -> Any:
        """Raw result; the shape of this call is not documented."""
        return self._one(_LOGIN, RequestMethods.GET_NEXT_SCHEDULED_HARDFORK, [], Any)

    def get_open_orders(self, account_name: str) -> list[UserOrder]:
        return self._many(
            _LOGIN, RequestMethods.GET_OPEN_ORDERS, [account_name], UserOrder
        )

    def get_order_book(self, limit: int) -> OrderBook:
        return self._one(_LOGIN, RequestMethods.GET_ORDER_BOOK, [limit], OrderBook)

    # -------------------------------------------------------------------------
    # Database API
    # -------------------------------------------------------------------------

    def get_account_count(self) -> int:
        return self._one(_DATABASE, RequestMethods.GET_ACCOUNT_COUNT, [], int)

    def get_account_history(
        self, account_name: str, start: int, limit: int
    ) -> dict[int, AccountActivity]:
        """Latest activities of an account, keyed by their sequence number."""
        entries = self._many(
            _DATABASE,
            RequestMethods.GET_ACCOUNT_HISTORY,
            [account_name, start, limit],
            tuple[int, AccountActivity],
        )
        return dict(entries)

    def get_account_votes(self, account_name: str) -> list[Vote]:
        return self._many(
            _DATABASE, RequestMethods.GET_ACCOUNT_VOTES, [account_name], Vote
        )

    def get_witness_count(self) -> int:
        return self._one(_DATABASE, RequestMethods.GET_WITNESS_COUNT, [], int)

    def get_miner_queue(self) -> list[str]:
        return self._one(_DATABASE, RequestMethods.GET_MINER_QUEUE, [], list[str])

    def get_config(self) -> dict[str, Any]:
        return self._one(_DATABASE, RequestMethods.GET_CONFIG, [], dict[str, Any])

    def get_trending_tags(self, first_tag: str, limit: int) -> list[TrendingTag]:
        return self._many(
            _DATABASE,
            RequestMethods.GET_TRENDING_TAGS,
            [first_tag, limit],
            TrendingTag,
        )

    def get_hardfork_version(self) -> str:
        return self._one(_DATABASE, RequestMethods.GET_HARDFORK_VERSION, [], str)

    def get_witness_schedule(self) -> WitnessSchedule:
        return self._one(
            _DATABASE, RequestMethods.GET_WITNESS_SCHEDULE, [], WitnessSchedule
        )

    def lookup_accounts(self, pattern: str, limit: int) -> list[str]:
        return self._many(
            _DATABASE, RequestMethods.LOOKUP_ACCOUNTS, [pattern, limit], str
        )

    def lookup_witness_accounts(self, pattern: str, limit: int) -> list[str]:
        return self._many(
            _DATABASE, RequestMethods.LOOKUP_WITNESS_ACCOUNTS, [pattern, limit], str
        )

    def get_dynamic_global_properties(self) -> GlobalProperties:
        return self._one(
            _DATABASE,
            RequestMethods.GET_DYNAMIC_GLOBAL_PROPERTIES,
            [],
            GlobalProperties,
        )

    def get_chain_properties(self) -> ChainProperties:
        return self._one(
            _DATABASE, RequestMethods.GET_CHAIN_PROPERTIES, [], ChainProperties
        )

    def get_current_median_history_price(self) -> Price:
        return self._one(
            _DATABASE, RequestMethods.GET_CURRENT_MEDIAN_HISTORY_PRICE, [], Price
        )

    def get_content(self, author: str, permlink: str) -> Discussion:
        return self._one(
            _DATABASE, RequestMethods.GET_CONTENT, [author, permlink], Discussion
        )

    def get_content_replies(self, author: str, permlink: str) -> list[Discussion]:
        return self._many(
            _DATABASE,
            RequestMethods.GET_CONTENT_REPLIES,
            [author, permlink],
            Discussion,
        )

    def get_active_votes(self, author: str, permlink: str) -> list[ActiveVote]:
        return self._many(
            _DATABASE, RequestMethods.GET_ACTIVE_VOTES, [author, permlink], ActiveVote
        )

    def get_discussions_by(
        self, tag: str, limit: int, sort_by: DiscussionSortType
    ) -> list[Discussion]:
        """Discussions tagged with ``tag`` in the given ordering.

        These methods take a single query object instead of positional values.
        """
        query = DiscussionQuery(tag=tag, limit=str(limit))
        return self._many(_DATABASE, sort_by.value, [query], Discussion)

    def get_active_witnesses(self) -> list[str]:
        return self._one(
            _DATABASE, RequestMethods.GET_ACTIVE_WITNESSES, [], list[str]
        )

    # -------------------------------------------------------------------------
    # Account by key API
    # -------------------------------------------------------------------------

    def get_key_references(self, public_keys: Sequence[str]) -> list[list[str]]:
        """Account names per public key, in the order of ``public_keys``."""
        return self._many(
            SteemApis.ACCOUNT_BY_KEY_API,
            RequestMethods.GET_KEY_REFERENCES,
            [list(public_keys)],
            list[str],
        )

    # -------------------------------------------------------------------------
    # Network broadcast API
    # -------------------------------------------------------------------------

    def broadcast_transaction(self, transaction: dict[str, Any]) -> None:
        """Broadcast a signed transaction without waiting for inclusion."""
        self._client.invoke(
            SteemApis.NETWORK_BROADCAST_API,
            RequestMethods.BROADCAST_TRANSACTION,
            [transaction],
            Shape.single(Any),
        )

    def broadcast_transaction_synchronous(
        self, transaction: dict[str, Any]
    ) -> dict[str, Any]:
        """Broadcast a signed transaction and wait until it is in a block."""
        return self._one(
            SteemApis.NETWORK_BROADCAST_API,
            RequestMethods.BROADCAST_TRANSACTION_SYNCHRONOUS,
            [transaction],
            dict[str, Any],
        )
