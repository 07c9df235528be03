"""
Entry point for the daily reward ledger: scoring, token conversion,
issuance and per-user summaries.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..collaborators import RewardCollaborators, load_collaborators
from ..entities import RewardEntry, RewardsQueryOpts, RewardsSummary
from ..repository import RewardEntryRepository
from ..tokenomics import require_tokenomics_manifest
from ..windows import today_ts, window_label, yesterday_ts
from .aggregators import EngagementAggregator, HoldingAggregator, LiquidityAggregator
from .calculation import CalculationReport, RewardCalculator, calculate_multiplier
from .payouts import IssuanceReport, PayoutIssuer

logger = logging.getLogger(__name__)


class RewardsManager:

    def __init__(
        self,
        collaborators: Optional[RewardCollaborators] = None,
        repository: Optional[RewardEntryRepository] = None,
    ):
        self.collaborators = collaborators or load_collaborators()
        self.repository = repository or RewardEntryRepository()

        c = self.collaborators
        self.aggregators = [
            EngagementAggregator(c.contributions, c.identity),
            LiquidityAggregator(c.liquidity_source),
            HoldingAggregator(c.registry, c.identity, c.block_resolver, c.balance_oracle),
        ]
        self.calculator = RewardCalculator(self.repository, self.aggregators, c.identity, c.registry)
        self.issuer = PayoutIssuer(self.repository, c.transactions)

    def add(self, reward_entry: RewardEntry) -> RewardEntry:
        """Does not issue tokens!"""
        return self.repository.add(reward_entry)

    def get_list(self, opts: RewardsQueryOpts) -> List[RewardEntry]:
        return self.repository.get_list(opts)

    def get_summary(self, opts: RewardsQueryOpts) -> RewardsSummary:
        return RewardsSummary(
            user_guid=opts.user_guid,
            date_ts=opts.date_ts,
            reward_entries=self.get_list(opts),
        )

    def calculate(self, opts: Optional[RewardsQueryOpts] = None) -> CalculationReport:
        opts = opts or RewardsQueryOpts(date_ts=today_ts())
        logger.info("Calculating rewards for %s", window_label(opts.date_ts))
        report = self.calculator.calculate(opts)
        logger.info(
            "Rewards calculated for %s: scored=%s converted=%s disqualified=%s failed=%s",
            window_label(opts.date_ts),
            dict(report.scored),
            report.converted,
            report.disqualified,
            report.failed_reward_types,
        )
        return report

    def calculate_multiplier(self, reward_entry: RewardEntry):
        """Today's multiplier: yesterday's entry multiplier plus the daily increment."""
        manifest = require_tokenomics_manifest(reward_entry.tokenomics_version)
        return calculate_multiplier(reward_entry.multiplier, manifest)

    def issue_tokens(self, opts: Optional[RewardsQueryOpts] = None, dry_run: bool = True) -> IssuanceReport:
        """Issue tokens based on already calculated reward entries."""
        opts = opts or RewardsQueryOpts(date_ts=yesterday_ts())
        report = self.issuer.issue_tokens(opts, dry_run=dry_run)
        logger.info(
            "%s %s payouts for %s (zero=%s, already paid=%s, failed=%s)",
            "Simulated" if dry_run else "Issued",
            report.issued,
            window_label(opts.date_ts),
            report.skipped_zero,
            report.skipped_paid,
            len(report.failures),
        )
        return report
