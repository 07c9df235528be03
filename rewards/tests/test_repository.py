from datetime import date
from decimal import Decimal

from django.test import TestCase

from rewards.entities import RewardEntry, RewardsQueryOpts
from rewards.exceptions import LedgerUpdateError
from rewards.models import RewardLedgerEntry, RewardType
from rewards.repository import RewardEntryRepository
from rewards.windows import date_to_ts

DAY = date_to_ts(date(2024, 5, 1))
NEXT_DAY = date_to_ts(date(2024, 5, 2))


class RewardEntryRepositoryTests(TestCase):
    def setUp(self):
        self.repository = RewardEntryRepository()

    def _add(self, user_guid, reward_type, score, date_ts=DAY):
        return self.repository.add(
            RewardEntry(
                user_guid=user_guid,
                date_ts=date_ts,
                reward_type=reward_type,
                score=Decimal(score),
                multiplier=Decimal("3"),
            )
        )

    def test_add_creates_entry_with_zero_tokens(self):
        self._add("1", RewardType.ENGAGEMENT, "30")

        entry = self.repository.get("1", DAY, RewardType.ENGAGEMENT)
        self.assertEqual(entry.score, Decimal("30"))
        self.assertEqual(entry.multiplier, Decimal("3"))
        self.assertEqual(entry.token_amount, Decimal("0"))
        self.assertEqual(entry.payout_tx, "")
        self.assertEqual(entry.tokenomics_version, 2)

    def test_add_existing_key_rescores_without_touching_payout(self):
        entry = self._add("1", RewardType.ENGAGEMENT, "30")
        self.repository.update(entry.with_changes(token_amount=Decimal("5"), payout_tx="oc:abc"),
                               ["token_amount", "payout_tx"])

        self._add("1", RewardType.ENGAGEMENT, "45")

        self.assertEqual(RewardLedgerEntry.objects.count(), 1)
        entry = self.repository.get("1", DAY, RewardType.ENGAGEMENT)
        self.assertEqual(entry.score, Decimal("45"))
        self.assertEqual(entry.token_amount, Decimal("5"))
        self.assertEqual(entry.payout_tx, "oc:abc")

    def test_full_precision_is_kept(self):
        score = Decimal("123456789012345678901234567890.123456789012345678")
        self._add("1", RewardType.HOLDING, score)
        self.assertEqual(self.repository.get("1", DAY, RewardType.HOLDING).score, score)

    def test_get_missing_entry_returns_none(self):
        self.assertIsNone(self.repository.get("404", DAY, RewardType.ENGAGEMENT))

    def test_update_writes_only_named_fields(self):
        entry = self._add("1", RewardType.LIQUIDITY, "10")
        changed = entry.with_changes(score=Decimal("0"), token_amount=Decimal("12.5"))

        self.repository.update(changed, ["token_amount"])

        stored = self.repository.get("1", DAY, RewardType.LIQUIDITY)
        self.assertEqual(stored.token_amount, Decimal("12.5"))
        self.assertEqual(stored.score, Decimal("10"))

    def test_update_rejects_unknown_fields(self):
        entry = self._add("1", RewardType.LIQUIDITY, "10")
        with self.assertRaises(LedgerUpdateError):
            self.repository.update(entry, ["user_guid"])

    def test_update_missing_entry_raises(self):
        entry = RewardEntry(user_guid="9", date_ts=DAY, reward_type=RewardType.HOLDING)
        with self.assertRaises(LedgerUpdateError):
            self.repository.update(entry, ["token_amount"])

    def test_payout_reference_is_set_once(self):
        entry = self._add("1", RewardType.ENGAGEMENT, "10")
        self.repository.update(entry.with_changes(payout_tx="oc:first"), ["payout_tx"])

        with self.assertRaises(LedgerUpdateError):
            self.repository.update(entry.with_changes(payout_tx="oc:second"), ["payout_tx"])
        self.assertEqual(self.repository.get("1", DAY, RewardType.ENGAGEMENT).payout_tx, "oc:first")

    def test_iterator_is_window_scoped_and_ordered(self):
        self._add("2", RewardType.ENGAGEMENT, "10")
        self._add("1", RewardType.ENGAGEMENT, "30")
        self._add("1", RewardType.HOLDING, "5")
        self._add("3", RewardType.ENGAGEMENT, "99", date_ts=NEXT_DAY)

        entries = list(self.repository.get_iterator(RewardsQueryOpts(date_ts=DAY)))

        self.assertEqual(
            [(e.user_guid, e.reward_type) for e in entries],
            [("2", RewardType.ENGAGEMENT), ("1", RewardType.ENGAGEMENT), ("1", RewardType.HOLDING)],
        )

    def test_share_pct_is_relative_to_same_type_and_day(self):
        self._add("1", RewardType.ENGAGEMENT, "30")
        self._add("2", RewardType.ENGAGEMENT, "10")
        self._add("1", RewardType.HOLDING, "5")
        self._add("3", RewardType.ENGAGEMENT, "60", date_ts=NEXT_DAY)

        shares = {
            (e.user_guid, e.reward_type): e.share_pct
            for e in self.repository.get_iterator(RewardsQueryOpts(date_ts=DAY))
        }

        self.assertEqual(shares[("1", RewardType.ENGAGEMENT)], Decimal("0.75"))
        self.assertEqual(shares[("2", RewardType.ENGAGEMENT)], Decimal("0.25"))
        self.assertEqual(shares[("1", RewardType.HOLDING)], Decimal("1"))

    def test_share_pct_is_zero_when_global_score_is_zero(self):
        self._add("1", RewardType.LIQUIDITY, "0")
        entry = self.repository.get_list(RewardsQueryOpts(date_ts=DAY))[0]
        self.assertEqual(entry.share_pct, Decimal("0"))

    def test_user_filter_keeps_global_share(self):
        self._add("1", RewardType.ENGAGEMENT, "30")
        self._add("2", RewardType.ENGAGEMENT, "10")

        entries = self.repository.get_list(RewardsQueryOpts(date_ts=DAY, user_guid="2"))

        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].share_pct, Decimal("0.25"))

    def test_tokenomics_versions(self):
        self._add("1", RewardType.ENGAGEMENT, "30")
        RewardLedgerEntry.objects.create(
            user_guid="2", date_ts=DAY, reward_type=RewardType.HOLDING, score=Decimal("1"), tokenomics_version=5
        )
        self.assertEqual(self.repository.get_tokenomics_versions(DAY), [2, 5])

    def test_negative_score_is_refused(self):
        with self.assertRaises(LedgerUpdateError):
            self._add("1", RewardType.LIQUIDITY, "-5")
        self.assertFalse(RewardLedgerEntry.objects.exists())

        entry = self._add("1", RewardType.LIQUIDITY, "5")
        with self.assertRaises(LedgerUpdateError):
            self.repository.update(entry.with_changes(score=Decimal("-1")), ["score"])
        self.assertEqual(self.repository.get("1", DAY, RewardType.LIQUIDITY).score, Decimal("5"))

    def test_rows_below_zero_do_not_count_toward_shares(self):
        self._add("1", RewardType.LIQUIDITY, "30")
        # Written around the ledger store, which refuses negative scores
        RewardLedgerEntry.objects.create(
            user_guid="2", date_ts=DAY, reward_type=RewardType.LIQUIDITY, score=Decimal("-15")
        )

        shares = {e.user_guid: e.share_pct for e in self.repository.get_list(RewardsQueryOpts(date_ts=DAY))}

        self.assertEqual(self.repository.get_global_scores(DAY), {"liquidity": Decimal("30")})
        self.assertEqual(shares, {"1": Decimal("1"), "2": Decimal("0")})
