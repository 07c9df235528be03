"""
Contracts for the collaborators the reward core consumes.

Everything here is external to the core: analytics feeds, the liquidity data
source, the on-chain registry, the balance oracle, the block resolver, the
transaction ledger and identity lookup. Default implementations live in the
`users` and `blockchain` apps; anything else is wired through settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ContributionSummary:
    """A user's engagement contribution score for one day."""

    user_guid: str
    score: Decimal
    date_ts: int


@dataclass(frozen=True)
class LiquiditySummary:
    """A provider's liquidity position on one chain for one day."""

    user_guid: str
    lp_position: Decimal


@dataclass(frozen=True)
class OnChainRegistration:
    """An address a user proved ownership of on-chain."""

    user_guid: str
    address: str


@dataclass(frozen=True)
class UserIdentity:
    """The slice of a user record the reward core needs."""

    user_guid: str
    phone_number_hash: Optional[str] = None
    eth_wallet: str = ""
    flagged: bool = False

    @property
    def has_verified_identity(self) -> bool:
        return bool(self.phone_number_hash)


@dataclass(frozen=True)
class Transaction:
    """Payout transaction handed to the transaction ledger."""

    user_guid: str
    tx: str
    amount: int  # base units
    timestamp: int
    wallet_address: str = "offchain"
    contract: str = "offchain:reward"
    data: Dict[str, Any] = field(default_factory=dict)
    completed: bool = True


@runtime_checkable
class ContributionFeed(Protocol):
    def get_summaries(self, date_ts: int) -> Iterable[ContributionSummary]:
        ...


@runtime_checkable
class LiquidityDataSource(Protocol):
    def get_all_providers_summaries(self, date_ts: int, chain_id: int) -> Iterable[LiquiditySummary]:
        ...


@runtime_checkable
class OnChainRegistry(Protocol):
    def get_all(self) -> Iterable[OnChainRegistration]:
        ...

    def is_unique(self, user: UserIdentity) -> bool:
        ...


@runtime_checkable
class BalanceOracle(Protocol):
    def balance_of(self, address: str, block_number: Optional[int], chain_id: int) -> int:
        """Raw (base unit) token balance; block_number None means latest."""
        ...


@runtime_checkable
class BlockResolver(Protocol):
    def get_block_by_timestamp(self, ts: int, chain_id: int) -> int:
        ...


@runtime_checkable
class TransactionSink(Protocol):
    """
    Durable payout ledger. `add` runs inside the issuer's database transaction
    and must join it, so a payout whose ledger update fails is rolled back.
    """

    def add(self, transaction: Transaction) -> None:
        ...


@runtime_checkable
class IdentityLookup(Protocol):
    def single(self, user_guid: str) -> Optional[UserIdentity]:
        ...
