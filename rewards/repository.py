"""
Ledger store for reward entries.

Entries are immutable `RewardEntry` values on the way in and out; updates
name the fields they change explicitly and are applied under a row lock.
"""
import logging
from collections import defaultdict
from decimal import Decimal, localcontext
from typing import Dict, Iterable, Iterator, List, Optional

from django.db import transaction

from blockchain.units import PRECISE_CONTEXT

from .entities import UPDATABLE_FIELDS, RewardEntry, RewardsQueryOpts
from .exceptions import LedgerUpdateError
from .models import RewardLedgerEntry, RewardType

logger = logging.getLogger(__name__)


class RewardEntryRepository:

    def add(self, entry: RewardEntry) -> RewardEntry:
        """
        Insert a scored entry, or refresh the score of an existing one.

        Token amount and payout reference of an existing row are left alone;
        they belong to the calculation and issuance passes.
        """
        self._check_score(entry)
        record, created = RewardLedgerEntry.objects.update_or_create(
            user_guid=str(entry.user_guid),
            date_ts=entry.date_ts,
            reward_type=str(entry.reward_type),
            defaults={
                'score': entry.score,
                'multiplier': entry.multiplier,
                'tokenomics_version': entry.tokenomics_version,
            },
        )
        if not created:
            logger.debug("Re-scored existing reward entry %s", entry.key)
        return self._to_entry(record)

    def get(self, user_guid, date_ts: int, reward_type) -> Optional[RewardEntry]:
        record = RewardLedgerEntry.objects.filter(
            user_guid=str(user_guid),
            date_ts=date_ts,
            reward_type=str(reward_type),
        ).first()
        if record is None:
            return None
        return self._to_entry(record)

    def update(self, entry: RewardEntry, fields: Iterable[str]) -> None:
        """Write only `fields` of `entry` to its ledger row."""
        fields = set(fields)
        unknown = fields - UPDATABLE_FIELDS
        if unknown:
            raise LedgerUpdateError(f"Fields not updatable: {sorted(unknown)}")
        if not fields:
            return
        if 'score' in fields:
            self._check_score(entry)

        with transaction.atomic():
            try:
                record = RewardLedgerEntry.objects.select_for_update().get(
                    user_guid=str(entry.user_guid),
                    date_ts=entry.date_ts,
                    reward_type=str(entry.reward_type),
                )
            except RewardLedgerEntry.DoesNotExist:
                raise LedgerUpdateError(f"No reward entry for {entry.key}")

            if 'payout_tx' in fields and record.payout_tx and record.payout_tx != entry.payout_tx:
                raise LedgerUpdateError(
                    f"Reward entry {entry.key} already paid out in {record.payout_tx}"
                )

            for name in fields:
                setattr(record, name, getattr(entry, name))
            record.save(update_fields=sorted(fields) + ['updated_at'])

    @staticmethod
    def _check_score(entry: RewardEntry) -> None:
        if entry.score < 0:
            raise LedgerUpdateError(f"Negative score {entry.score} for {entry.key}")

    def get_iterator(self, opts: RewardsQueryOpts) -> Iterator[RewardEntry]:
        """
        Entries of one window in ledger order, with share % populated.

        Global scores are snapshotted when iteration starts.
        """
        global_scores = self.get_global_scores(opts.date_ts)

        queryset = RewardLedgerEntry.objects.filter(date_ts=opts.date_ts)
        if opts.user_guid is not None:
            queryset = queryset.filter(user_guid=str(opts.user_guid))

        for record in queryset.order_by('id').iterator():
            yield self._to_entry(record, global_scores)

    def get_list(self, opts: RewardsQueryOpts) -> List[RewardEntry]:
        return list(self.get_iterator(opts))

    def get_global_scores(self, date_ts: int) -> Dict[str, Decimal]:
        """Sum of positive scores per reward type for a window."""
        totals: Dict[str, Decimal] = defaultdict(lambda: Decimal('0'))
        rows = RewardLedgerEntry.objects.filter(date_ts=date_ts).values_list('reward_type', 'score')
        with localcontext(PRECISE_CONTEXT):
            for reward_type, score in rows.iterator():
                if score > 0:
                    totals[reward_type] += score
        return dict(totals)

    @staticmethod
    def _share_pct(score: Decimal, total: Optional[Decimal]) -> Decimal:
        if not total or total <= 0 or score <= 0:
            return Decimal('0')
        with localcontext(PRECISE_CONTEXT):
            return score / total

    def _to_entry(self, record: RewardLedgerEntry, global_scores: Optional[Dict[str, Decimal]] = None) -> RewardEntry:
        share_pct = Decimal('0')
        if global_scores is not None:
            share_pct = self._share_pct(record.score, global_scores.get(record.reward_type))

        return RewardEntry(
            user_guid=record.user_guid,
            date_ts=record.date_ts,
            reward_type=RewardType(record.reward_type),
            score=record.score,
            multiplier=record.multiplier,
            share_pct=share_pct,
            token_amount=record.token_amount,
            payout_tx=record.payout_tx,
            tokenomics_version=record.tokenomics_version,
        )

    def get_tokenomics_versions(self, date_ts: int) -> List[int]:
        return sorted(
            RewardLedgerEntry.objects.filter(date_ts=date_ts)
            .order_by('tokenomics_version')
            .values_list('tokenomics_version', flat=True)
            .distinct()
        )
