"""
Reward calculation engine.

Phase A writes raw scores from every aggregator to the ledger. Phase B walks
the window's ledger entries and converts each score into a share of the
reward type's daily token pool.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_DOWN, Decimal, localcontext
from typing import Dict, List, Optional, Sequence

from django.db import transaction

from blockchain.units import PRECISE_CONTEXT, TOKEN_QUANTUM

from ..constants import REWARD_MULTIPLIER
from ..entities import RewardEntry, RewardsQueryOpts, ScoredUser
from ..interfaces import IdentityLookup, OnChainRegistry
from ..models import ONCHAIN_REWARD_TYPES
from ..repository import RewardEntryRepository
from ..tokenomics import TokenomicsManifest, require_tokenomics_manifest
from ..windows import window_label
from .aggregators import ScoreAggregator

logger = logging.getLogger(__name__)


@dataclass
class CalculationReport:
    date_ts: int
    scored: Counter = field(default_factory=Counter)
    failed_reward_types: List[str] = field(default_factory=list)
    converted: int = 0
    disqualified: int = 0
    tokens_allocated: Dict[str, Decimal] = field(default_factory=dict)

    def allocate(self, reward_type: str, amount: Decimal) -> None:
        self.tokens_allocated[reward_type] = self.tokens_allocated.get(reward_type, Decimal('0')) + amount


def calculate_token_amount(daily_pool: Decimal, share_pct: Decimal) -> Decimal:
    """
    The pool split by share %, truncated at 18 fractional digits so the sum
    of all amounts can never exceed the pool.
    """
    if not share_pct:
        return Decimal('0')

    with localcontext(PRECISE_CONTEXT):
        token_amount = (daily_pool * share_pct).quantize(TOKEN_QUANTUM, rounding=ROUND_DOWN)

    # Do not allow negative rewards to be issued
    if token_amount <= 0:
        return Decimal('0')
    return token_amount


def calculate_multiplier(previous_multiplier: Decimal, manifest: TokenomicsManifest) -> Decimal:
    """Next day's multiplier: previous + daily increment, capped at the maximum."""
    with localcontext(PRECISE_CONTEXT):
        multiplier = previous_multiplier + manifest.daily_multiplier_increment
    return min(multiplier, manifest.max_multiplier)


class RewardCalculator:

    def __init__(
        self,
        repository: RewardEntryRepository,
        aggregators: Sequence[ScoreAggregator],
        identity: IdentityLookup,
        registry: OnChainRegistry,
    ):
        self.repository = repository
        self.aggregators = list(aggregators)
        self.identity = identity
        self.registry = registry

    def calculate(self, opts: RewardsQueryOpts) -> CalculationReport:
        report = CalculationReport(date_ts=opts.date_ts)
        self.score(opts, report)
        self.convert_scores(opts, report)
        return report

    def score(self, opts: RewardsQueryOpts, report: Optional[CalculationReport] = None) -> CalculationReport:
        """Phase A: persist one entry per scored user for every reward type."""
        report = report or CalculationReport(date_ts=opts.date_ts)

        for aggregator in self.aggregators:
            reward_type = aggregator.reward_type
            try:
                # A failing aggregator leaves none of its entries behind
                with transaction.atomic():
                    for i, scored_user in enumerate(aggregator.scores(opts.date_ts)):
                        entry = RewardEntry(
                            user_guid=scored_user.user_guid,
                            date_ts=opts.date_ts,
                            reward_type=reward_type,
                            score=self.clamp_score(scored_user, reward_type),
                            multiplier=REWARD_MULTIPLIER,
                        )
                        self.repository.add(entry)
                        report.scored[reward_type.value] += 1

                        logger.info(
                            "[%s]: %s score calculated as %s (user=%s, multiplier=%s%s)",
                            i,
                            reward_type.label,
                            entry.score,
                            entry.user_guid,
                            entry.multiplier,
                            "".join(f", {k}={v}" for k, v in scored_user.context.items()),
                        )
            except Exception as exc:  # pylint: disable=broad-except
                report.scored.pop(reward_type.value, None)
                report.failed_reward_types.append(reward_type.value)
                logger.error(
                    "%s rewards failed for %s, skipping: %s",
                    reward_type.label,
                    window_label(opts.date_ts),
                    exc,
                    exc_info=True,
                )

        return report

    @staticmethod
    def clamp_score(scored_user: ScoredUser, reward_type) -> Decimal:
        """Negative scores are recorded as 0."""
        if scored_user.score < 0:
            logger.warning(
                "Negative %s score %s for %s, recording 0",
                reward_type.value,
                scored_user.score,
                scored_user.user_guid,
            )
            return Decimal('0')
        return scored_user.score

    def is_eligible_onchain(self, user_guid: str) -> bool:
        """The user still exists, is unique on-chain and is not flagged."""
        user = self.identity.single(user_guid)
        if user is None:
            return False
        if user.flagged:
            return False
        return self.registry.is_unique(user)

    def convert_scores(self, opts: RewardsQueryOpts, report: Optional[CalculationReport] = None) -> CalculationReport:
        """Phase B: turn every score of the window into a token amount."""
        report = report or CalculationReport(date_ts=opts.date_ts)

        # Resolve every manifest up front so an unknown version aborts before any write
        manifests = {
            version: require_tokenomics_manifest(version)
            for version in self.repository.get_tokenomics_versions(opts.date_ts)
        }

        window = RewardsQueryOpts(date_ts=opts.date_ts)
        for i, entry in enumerate(self.repository.get_iterator(window)):
            if entry.reward_type in ONCHAIN_REWARD_TYPES and not self.is_eligible_onchain(entry.user_guid):
                cleared = entry.with_changes(score=Decimal('0'), token_amount=Decimal('0'))
                self.repository.update(cleared, ['score', 'token_amount'])
                report.disqualified += 1

                logger.info(
                    "[%s]: Clearing score and token amount for %s (%s). Address isn't unique or user is not valid.",
                    i,
                    entry.user_guid,
                    entry.reward_type.value,
                )
                continue

            manifest = manifests[entry.tokenomics_version]
            token_amount = calculate_token_amount(manifest.daily_pool(entry.reward_type), entry.share_pct)

            self.repository.update(entry.with_changes(token_amount=token_amount), ['token_amount'])
            report.converted += 1
            report.allocate(entry.reward_type.value, token_amount)

            logger.info(
                "[%s]: Calculated %s tokens (%s%%) for %s (%s)",
                i,
                token_amount,
                (entry.share_pct * 100).normalize() if entry.share_pct else 0,
                entry.user_guid,
                entry.reward_type.value,
            )

        return report
