"""
Immutable values passed between the reward aggregators, the ledger store,
the calculation engine and the payout issuer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .constants import DEFAULT_TOKENOMICS_VERSION
from .models import RewardType

# Fields the ledger store accepts in a partial update
UPDATABLE_FIELDS = frozenset({'score', 'multiplier', 'token_amount', 'payout_tx'})


@dataclass(frozen=True)
class RewardEntry:
    """One row of the reward ledger, keyed by (user_guid, date_ts, reward_type)."""

    user_guid: str
    date_ts: int
    reward_type: RewardType
    score: Decimal = Decimal('0')
    multiplier: Decimal = Decimal('1')
    # Derived by the ledger store when iterating a window, never persisted
    share_pct: Decimal = Decimal('0')
    token_amount: Decimal = Decimal('0')
    payout_tx: str = ''
    tokenomics_version: int = DEFAULT_TOKENOMICS_VERSION

    @property
    def key(self) -> Tuple[str, int, str]:
        return (self.user_guid, self.date_ts, str(self.reward_type))

    def with_changes(self, **changes: Any) -> RewardEntry:
        return replace(self, **changes)


@dataclass(frozen=True)
class RewardsQueryOpts:
    """Query window for the ledger: one day, optionally narrowed to one user."""

    date_ts: int
    user_guid: Optional[str] = None


@dataclass(frozen=True)
class ScoredUser:
    """A (user, score) pair produced by an aggregator."""

    user_guid: str
    score: Decimal
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RewardsSummary:
    """All of one user's reward entries for one day."""

    user_guid: Optional[str]
    date_ts: int
    reward_entries: List[RewardEntry] = field(default_factory=list)

    @property
    def total_score(self) -> Decimal:
        return sum((entry.score for entry in self.reward_entries), Decimal('0'))

    @property
    def total_token_amount(self) -> Decimal:
        return sum((entry.token_amount for entry in self.reward_entries), Decimal('0'))

    def entry_for(self, reward_type: RewardType) -> Optional[RewardEntry]:
        for entry in self.reward_entries:
            if entry.reward_type == reward_type:
                return entry
        return None
