from dataclasses import replace
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from unittest.mock import patch

from django.test import TestCase

from blockchain.constants import BASE_CHAIN_ID
from rewards.entities import RewardEntry, RewardsQueryOpts
from rewards.exceptions import TokenomicsConfigurationError
from rewards.models import RewardLedgerEntry, RewardType
from rewards.repository import RewardEntryRepository
from rewards.services.manager import RewardsManager
from rewards.tokenomics import TOKENOMICS_V2
from rewards.windows import date_to_ts

from .fakes import (
    FakeBalanceOracle,
    FakeContributionFeed,
    FakeIdentityLookup,
    FakeLiquiditySource,
    FakeRegistry,
    make_collaborators,
    verified_user,
)

DAY = date_to_ts(date(2024, 5, 1))
TOKEN = 10 ** 18


def manifests_with_pools(**pools):
    manifest = replace(
        TOKENOMICS_V2,
        daily_pools=MappingProxyType({k: Decimal(v) for k, v in pools.items()}),
    )
    return {manifest.version: manifest}


class RewardCalculationTests(TestCase):
    def setUp(self):
        self.repository = RewardEntryRepository()

    def _manager(self, **collaborators):
        return RewardsManager(collaborators=make_collaborators(**collaborators), repository=self.repository)

    def test_sole_contributor_takes_whole_pool(self):
        manager = self._manager(
            contributions=FakeContributionFeed([("u1", 10)]),
            identity=FakeIdentityLookup([verified_user("u1")]),
        )
        manifests = manifests_with_pools(engagement=1000, liquidity=1000, holding=1000)

        with patch('rewards.tokenomics.TOKENOMICS_MANIFESTS', manifests):
            report = manager.calculate(RewardsQueryOpts(date_ts=DAY))

        entry = self.repository.get("u1", DAY, RewardType.ENGAGEMENT)
        self.assertEqual(entry.score, Decimal("30"))
        self.assertEqual(entry.multiplier, Decimal("3"))
        self.assertEqual(str(entry.token_amount), "1000.000000000000000000")
        self.assertEqual(report.scored["engagement"], 1)
        self.assertEqual(report.converted, 1)
        self.assertEqual(report.failed_reward_types, [])

    def test_default_manifest_pools(self):
        manager = self._manager(
            contributions=FakeContributionFeed([("u1", 1)]),
            identity=FakeIdentityLookup([verified_user("u1", eth_wallet="0xabc")]),
            liquidity_source=FakeLiquiditySource({BASE_CHAIN_ID: [("u1", 2)]}),
            registry=FakeRegistry([("u1", "0xabc")]),
            balance_oracle=FakeBalanceOracle({("0xabc", BASE_CHAIN_ID): 5 * TOKEN}),
        )

        manager.calculate(RewardsQueryOpts(date_ts=DAY))

        summary = manager.get_summary(RewardsQueryOpts(date_ts=DAY, user_guid="u1"))
        self.assertEqual(summary.entry_for(RewardType.ENGAGEMENT).token_amount, Decimal("4000"))
        self.assertEqual(summary.entry_for(RewardType.LIQUIDITY).token_amount, Decimal("1000"))
        self.assertEqual(summary.entry_for(RewardType.HOLDING).token_amount, Decimal("1000"))
        self.assertEqual(summary.entry_for(RewardType.HOLDING).score, Decimal("15"))

    def test_amounts_never_exceed_pool(self):
        manager = self._manager(
            contributions=FakeContributionFeed([("u1", 1), ("u2", 1), ("u3", 1)]),
            identity=FakeIdentityLookup([verified_user("u1"), verified_user("u2"), verified_user("u3")]),
        )

        manager.calculate(RewardsQueryOpts(date_ts=DAY))

        amounts = [e.token_amount for e in manager.get_list(RewardsQueryOpts(date_ts=DAY))]
        self.assertEqual([str(a) for a in amounts], ["1333.333333333333333333"] * 3)
        self.assertLessEqual(sum(amounts), Decimal("4000"))
        self.assertLess(Decimal("4000") - sum(amounts), Decimal("3e-18"))

    def test_non_unique_holder_is_disqualified(self):
        manager = self._manager(
            identity=FakeIdentityLookup([
                verified_user("u1", eth_wallet="0xaaa"),
                verified_user("u2", eth_wallet="0xbbb"),
            ]),
            registry=FakeRegistry([("u1", "0xaaa"), ("u2", "0xbbb")], unique={"u2"}),
            balance_oracle=FakeBalanceOracle({
                ("0xaaa", BASE_CHAIN_ID): TOKEN,
                ("0xbbb", BASE_CHAIN_ID): TOKEN,
            }),
        )

        report = manager.calculate(RewardsQueryOpts(date_ts=DAY))

        cleared = self.repository.get("u1", DAY, RewardType.HOLDING)
        self.assertEqual(cleared.score, Decimal("0"))
        self.assertEqual(cleared.token_amount, Decimal("0"))
        # The share is taken from scores as they stood before disqualification
        kept = self.repository.get("u2", DAY, RewardType.HOLDING)
        self.assertEqual(kept.token_amount, Decimal("500"))
        self.assertEqual(report.disqualified, 1)
        self.assertEqual(report.converted, 1)

    def test_flagged_or_deleted_liquidity_provider_is_disqualified(self):
        manager = self._manager(
            liquidity_source=FakeLiquiditySource({BASE_CHAIN_ID: [("u1", 1), ("u2", 1), ("ghost", 1)]}),
            identity=FakeIdentityLookup([
                verified_user("u1", flagged=True),
                verified_user("u2"),
            ]),
            registry=FakeRegistry([("u1", "0xaaa"), ("u2", "0xbbb"), ("ghost", "0xccc")]),
        )

        report = manager.calculate(RewardsQueryOpts(date_ts=DAY))

        amounts = {
            e.user_guid: e.token_amount
            for e in manager.get_list(RewardsQueryOpts(date_ts=DAY))
        }
        self.assertEqual(amounts["u1"], Decimal("0"))
        self.assertEqual(amounts["ghost"], Decimal("0"))
        self.assertGreater(amounts["u2"], Decimal("0"))
        self.assertEqual(report.disqualified, 2)

    def test_flagged_user_keeps_engagement_reward(self):
        manager = self._manager(
            contributions=FakeContributionFeed([("u1", 1)]),
            identity=FakeIdentityLookup([verified_user("u1", flagged=True)]),
        )

        manager.calculate(RewardsQueryOpts(date_ts=DAY))

        self.assertEqual(self.repository.get("u1", DAY, RewardType.ENGAGEMENT).token_amount, Decimal("4000"))

    def test_liquidity_failure_does_not_block_other_types(self):
        manager = self._manager(
            contributions=FakeContributionFeed([("u1", 1)]),
            liquidity_source=FakeLiquiditySource(error=RuntimeError("subgraph down")),
            identity=FakeIdentityLookup([verified_user("u1", eth_wallet="0xabc")]),
            registry=FakeRegistry([("u1", "0xabc")]),
            balance_oracle=FakeBalanceOracle({("0xabc", BASE_CHAIN_ID): TOKEN}),
        )

        with self.assertLogs('rewards.services.calculation', level='ERROR'):
            report = manager.calculate(RewardsQueryOpts(date_ts=DAY))

        self.assertEqual(report.failed_reward_types, ["liquidity"])
        types = {e.reward_type for e in manager.get_list(RewardsQueryOpts(date_ts=DAY))}
        self.assertEqual(types, {RewardType.ENGAGEMENT, RewardType.HOLDING})
        self.assertEqual(report.converted, 2)

    def test_failing_aggregator_leaves_no_partial_entries(self):
        manager = self._manager(
            contributions=FakeContributionFeed([("u1", 1)]),
            identity=FakeIdentityLookup([
                verified_user("u1", eth_wallet="0xaaa"),
                verified_user("u2", eth_wallet="0xbbb"),
            ]),
            registry=FakeRegistry([("u1", "0xaaa"), ("u2", "0xbbb")]),
            balance_oracle=FakeBalanceOracle({("0xaaa", BASE_CHAIN_ID): TOKEN}, fail_for=["0xbbb"]),
        )

        with self.assertLogs('rewards.services.calculation', level='ERROR'):
            report = manager.calculate(RewardsQueryOpts(date_ts=DAY))

        self.assertEqual(report.failed_reward_types, ["holding"])
        self.assertNotIn("holding", report.scored)
        self.assertIsNone(self.repository.get("u1", DAY, RewardType.HOLDING))
        self.assertFalse(RewardLedgerEntry.objects.filter(reward_type=RewardType.HOLDING).exists())
        self.assertEqual(self.repository.get("u1", DAY, RewardType.ENGAGEMENT).token_amount, Decimal("4000"))
        self.assertEqual(report.tokens_allocated, {"engagement": Decimal("4000")})

    def test_negative_position_cannot_inflate_other_shares(self):
        manager = self._manager(
            liquidity_source=FakeLiquiditySource({BASE_CHAIN_ID: [("u1", 10), ("u2", -5)]}),
            identity=FakeIdentityLookup([verified_user("u1"), verified_user("u2")]),
            registry=FakeRegistry([("u1", "0xaaa"), ("u2", "0xbbb")]),
        )

        with self.assertLogs('rewards.services.calculation', level='WARNING'):
            manager.calculate(RewardsQueryOpts(date_ts=DAY))

        entries = {e.user_guid: e for e in manager.get_list(RewardsQueryOpts(date_ts=DAY))}
        self.assertEqual(entries["u1"].score, Decimal("30"))
        self.assertEqual(entries["u2"].score, Decimal("0"))
        self.assertEqual(entries["u1"].token_amount, Decimal("1000"))
        self.assertEqual(entries["u2"].token_amount, Decimal("0"))
        self.assertLessEqual(sum(e.token_amount for e in entries.values()), Decimal("1000"))

    def test_unknown_tokenomics_version_aborts_before_writing(self):
        self.repository.add(RewardEntry("u1", DAY, RewardType.ENGAGEMENT, score=Decimal("1")))
        self.repository.add(
            RewardEntry("u2", DAY, RewardType.ENGAGEMENT, score=Decimal("1"), tokenomics_version=99)
        )
        manager = self._manager()

        with self.assertRaises(TokenomicsConfigurationError):
            manager.calculator.convert_scores(RewardsQueryOpts(date_ts=DAY))

        self.assertFalse(RewardLedgerEntry.objects.exclude(token_amount=Decimal("0")).exists())

    def test_recalculation_is_stable(self):
        manager = self._manager(
            contributions=FakeContributionFeed([("u1", 1), ("u2", 3)]),
            identity=FakeIdentityLookup([verified_user("u1"), verified_user("u2")]),
        )
        opts = RewardsQueryOpts(date_ts=DAY)

        manager.calculate(opts)
        first = manager.get_list(opts)
        manager.calculate(opts)
        second = manager.get_list(opts)

        self.assertEqual(first, second)
        self.assertEqual(RewardLedgerEntry.objects.count(), 2)
        self.assertEqual([e.token_amount for e in second], [Decimal("1000"), Decimal("3000")])
