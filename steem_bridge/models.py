"""Typed records returned by the Steem node.

Records are decoded structurally by :mod:`steem_bridge.transform`: JSON keys
map to field names, unknown keys are dropped, and missing keys keep the field
default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DiscussionQuery:
    """Single object parameter of the ``get_discussions_by_*`` methods.

    The node expects the limit as a string.
    """

    tag: str
    limit: str = "10"
    filter_tags: list[str] | None = None
    start_author: str | None = None
    start_permlink: str | None = None


@dataclass(frozen=True)
class Version:
    """Software versions of the connected node."""

    blockchain_version: str = ""
    steem_revision: str = ""
    fc_revision: str = ""


@dataclass(frozen=True)
class Price:
    """Exchange rate expressed as two asset strings, e.g. ``"1.000 SBD"``."""

    base: str = ""
    quote: str = ""


@dataclass(frozen=True)
class FeedHistory:
    """Current median price and the recent price feed."""

    id: int = 0
    current_median_history: Price | None = None
    price_history: list[Price] = field(default_factory=list)


@dataclass(frozen=True)
class ChainProperties:
    """Witness-voted chain parameters."""

    account_creation_fee: str = ""
    maximum_block_size: int = 0
    sbd_interest_rate: int = 0


@dataclass(frozen=True)
class GlobalProperties:
    """Dynamic global properties of the chain.

    Attributes:
        head_block_number: Number of the newest block.
        last_irreversible_block_num: Newest block that can no longer be
            reverted.
        current_supply: Total STEEM supply as an asset string.
    """

    id: int = 0
    head_block_number: int = 0
    head_block_id: str = ""
    time: str = ""
    current_witness: str = ""
    total_pow: int = 0
    num_pow_witnesses: int = 0
    virtual_supply: str = ""
    current_supply: str = ""
    confidential_supply: str = ""
    current_sbd_supply: str = ""
    confidential_sbd_supply: str = ""
    total_vesting_fund_steem: str = ""
    total_vesting_shares: str = ""
    total_reward_fund_steem: str = ""
    total_reward_shares2: str = ""
    sbd_interest_rate: int = 0
    sbd_print_rate: int = 0
    average_block_size: int = 0
    maximum_block_size: int = 0
    current_aslot: int = 0
    recent_slots_filled: str = ""
    participation_count: int = 0
    last_irreversible_block_num: int = 0
    max_virtual_bandwidth: str = ""
    current_reserve_ratio: int = 0
    vote_regeneration_per_day: int = 0


@dataclass(frozen=True)
class Operation:
    """One chain operation.

    Operations arrive as ``[type, body]`` pairs. Only the fields shared by the
    common operation types are kept; everything else is dropped.
    """

    op_type: str = ""
    voter: str = ""
    author: str = ""
    permlink: str = ""
    weight: int = 0
    to: str = ""
    amount: str = ""
    memo: str = ""
    parent_author: str = ""
    parent_permlink: str = ""
    title: str = ""
    body: str = ""


@dataclass(frozen=True)
class Transaction:
    """A signed transaction inside a block."""

    ref_block_num: int = 0
    ref_block_prefix: int = 0
    expiration: str = ""
    operations: list[Operation] = field(default_factory=list)
    extensions: list[Any] = field(default_factory=list)
    signatures: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BlockHeader:
    """Header fields of a block."""

    previous: str = ""
    timestamp: str = ""
    witness: str = ""
    transaction_merkle_root: str = ""
    extensions: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class Block(BlockHeader):
    """A complete block including its transactions."""

    witness_signature: str = ""
    transactions: list[Transaction] = field(default_factory=list)


@dataclass(frozen=True)
class AccountActivity:
    """One entry of an account's history."""

    trx_id: str = ""
    block: int = 0
    trx_in_block: int = 0
    op_in_trx: int = 0
    virtual_op: int = 0
    timestamp: str = ""
    op: Operation | None = None


@dataclass(frozen=True)
class Vote:
    """A vote cast by an account."""

    authorperm: str = ""
    weight: int = 0
    rshares: int = 0
    percent: int = 0
    time: str = ""


@dataclass(frozen=True)
class ActiveVote:
    """A vote on a post or comment."""

    voter: str = ""
    weight: int = 0
    rshares: int = 0
    percent: int = 0
    reputation: int = 0
    time: str = ""


@dataclass(frozen=True)
class Discussion:
    """A post or comment."""

    id: int = 0
    author: str = ""
    permlink: str = ""
    category: str = ""
    parent_author: str = ""
    parent_permlink: str = ""
    title: str = ""
    body: str = ""
    json_metadata: str = ""
    created: str = ""
    last_update: str = ""
    depth: int = 0
    children: int = 0
    net_votes: int = 0
    url: str = ""
    pending_payout_value: str = ""
    total_payout_value: str = ""
    active_votes: list[ActiveVote] = field(default_factory=list)
    replies: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TrendingTag:
    """Aggregated statistics of a tag."""

    name: str = ""
    total_payouts: str = ""
    net_votes: int = 0
    top_posts: int = 0
    comments: int = 0
    trending: str = ""


@dataclass(frozen=True)
class WitnessSchedule:
    """Current witness shuffle."""

    id: int = 0
    current_virtual_time: str = ""
    next_shuffle_block_num: int = 0
    current_shuffled_witnesses: str = ""
    num_scheduled_witnesses: int = 0
    median_props: ChainProperties | None = None
    majority_version: str = ""


@dataclass(frozen=True)
class MarketOrder:
    """One side entry of the internal market order book."""

    created: str = ""
    order_price: Price | None = None
    real_price: str = ""
    steem: int = 0
    sbd: int = 0


@dataclass(frozen=True)
class OrderBook:
    """Bids and asks of the internal market."""

    bids: list[MarketOrder] = field(default_factory=list)
    asks: list[MarketOrder] = field(default_factory=list)


@dataclass(frozen=True)
class UserOrder:
    """An open limit order of an account."""

    id: int = 0
    created: str = ""
    expiration: str = ""
    seller: str = ""
    orderid: int = 0
    for_sale: int = 0
    sell_price: Price | None = None
    real_price: str = ""
    rewarded: bool = False
