"""
Score aggregators: each turns one external signal stream into per-user
scores for a single reward window.

Aggregators are lazy and restartable; every call to `scores()` reads the
external source again. They never touch the ledger themselves.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from decimal import Decimal, localcontext
from typing import Dict, Iterator, Optional, Sequence

from blockchain.constants import LATEST_BLOCK_ONLY_CHAIN_IDS, SUPPORTED_CHAIN_IDS
from blockchain.units import PRECISE_CONTEXT, from_token_units

from ..constants import REWARD_MULTIPLIER
from ..entities import ScoredUser
from ..interfaces import (
    BalanceOracle,
    BlockResolver,
    ContributionFeed,
    IdentityLookup,
    LiquidityDataSource,
    OnChainRegistry,
)
from ..models import RewardType

logger = logging.getLogger(__name__)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def apply_multiplier(score: Decimal) -> Decimal:
    with localcontext(PRECISE_CONTEXT):
        return score * REWARD_MULTIPLIER


class ScoreAggregator(ABC):
    """Produces (user, score) pairs for one reward type and window."""

    reward_type: RewardType

    @abstractmethod
    def scores(self, date_ts: int) -> Iterator[ScoredUser]:
        raise NotImplementedError


class EngagementAggregator(ScoreAggregator):
    reward_type = RewardType.ENGAGEMENT

    def __init__(self, contributions: ContributionFeed, identity: IdentityLookup):
        self.contributions = contributions
        self.identity = identity

    def scores(self, date_ts: int) -> Iterator[ScoredUser]:
        for summary in self.contributions.get_summaries(date_ts):
            user = self.identity.single(summary.user_guid)
            if user is None:
                continue

            # Require phone number to be setup for uniqueness
            if not user.has_verified_identity:
                continue

            yield ScoredUser(
                user_guid=str(summary.user_guid),
                score=apply_multiplier(to_decimal(summary.score)),
            )


class LiquidityAggregator(ScoreAggregator):
    """Sums each provider's position across every supported chain."""

    reward_type = RewardType.LIQUIDITY

    def __init__(self, liquidity_source: LiquidityDataSource, chain_ids: Sequence[int] = SUPPORTED_CHAIN_IDS):
        self.liquidity_source = liquidity_source
        self.chain_ids = tuple(chain_ids)

    def scores(self, date_ts: int) -> Iterator[ScoredUser]:
        # Every chain is read before anything is yielded, so a failing source
        # produces no liquidity entries at all for the window.
        positions: Dict[str, Decimal] = OrderedDict()
        with localcontext(PRECISE_CONTEXT):
            for chain_id in self.chain_ids:
                for summary in self.liquidity_source.get_all_providers_summaries(date_ts, chain_id):
                    user_guid = str(summary.user_guid)
                    positions[user_guid] = positions.get(user_guid, Decimal('0')) + to_decimal(summary.lp_position)

        for user_guid, position in positions.items():
            yield ScoredUser(user_guid=user_guid, score=apply_multiplier(position))


class HoldingAggregator(ScoreAggregator):
    """Scores the token balance held at the registered unique address."""

    reward_type = RewardType.HOLDING

    def __init__(
        self,
        registry: OnChainRegistry,
        identity: IdentityLookup,
        block_resolver: BlockResolver,
        balance_oracle: BalanceOracle,
        chain_ids: Sequence[int] = SUPPORTED_CHAIN_IDS,
    ):
        self.registry = registry
        self.identity = identity
        self.block_resolver = block_resolver
        self.balance_oracle = balance_oracle
        self.chain_ids = tuple(chain_ids)

    def resolve_blocks(self, date_ts: int) -> Dict[int, Optional[int]]:
        """Block to read balances at per chain; None means the latest block."""
        blocks: Dict[int, Optional[int]] = {}
        for chain_id in self.chain_ids:
            if chain_id in LATEST_BLOCK_ONLY_CHAIN_IDS:
                # Historicals aren't served on this chain so use the latest block
                blocks[chain_id] = None
            else:
                blocks[chain_id] = self.block_resolver.get_block_by_timestamp(date_ts, chain_id)
        return blocks

    def token_balance(self, address: str, blocks: Dict[int, Optional[int]]) -> Decimal:
        balance = Decimal('0')
        with localcontext(PRECISE_CONTEXT):
            for chain_id, block_number in blocks.items():
                raw = self.balance_oracle.balance_of(address, block_number, chain_id)
                balance += from_token_units(raw)
        return balance

    def scores(self, date_ts: int) -> Iterator[ScoredUser]:
        blocks: Optional[Dict[int, Optional[int]]] = None

        for registration in self.registry.get_all():
            user = self.identity.single(registration.user_guid)
            if user is None:
                continue

            # Require phone number to be setup for uniqueness
            if not user.has_verified_identity:
                continue

            address = (registration.address or '').lower()
            if not address or address != (user.eth_wallet or '').lower():
                logger.debug(
                    "Skipping holding reward for %s: registered address is not the linked wallet",
                    registration.user_guid,
                )
                continue

            if blocks is None:
                blocks = self.resolve_blocks(date_ts)

            token_balance = self.token_balance(registration.address, blocks)

            yield ScoredUser(
                user_guid=str(user.user_guid),
                score=apply_multiplier(token_balance),
                context={
                    'address': registration.address,
                    'blocks': dict(blocks),
                    'token_balance': str(token_balance),
                },
            )
