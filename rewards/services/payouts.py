"""
Payout issuer: turns calculated reward entries into ledger transactions.

Issuance is idempotent. Entries without tokens and entries that already
carry a payout reference are skipped, so a window can be re-run safely.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from django.db import transaction as db_transaction

from blockchain.constants import OFFCHAIN_REWARD_CONTRACT, OFFCHAIN_TX_PREFIX, OFFCHAIN_WALLET_ADDRESS
from blockchain.units import to_token_units

from ..entities import RewardEntry, RewardsQueryOpts
from ..interfaces import Transaction, TransactionSink
from ..repository import RewardEntryRepository
from ..windows import payout_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayoutFailure:
    entry: RewardEntry
    error: Exception
    # Set when the sink accepted the transaction before the ledger update failed
    transaction: Optional[Transaction] = None


@dataclass
class IssuanceReport:
    date_ts: int
    dry_run: bool
    transactions: List[Transaction] = field(default_factory=list)
    skipped_zero: int = 0
    skipped_paid: int = 0
    failures: List[PayoutFailure] = field(default_factory=list)

    @property
    def issued(self) -> int:
        return len(self.transactions)

    @property
    def ok(self) -> bool:
        return not self.failures


def new_transaction_id() -> str:
    return f"{OFFCHAIN_TX_PREFIX}{uuid.uuid4().hex}"


def build_transaction(entry: RewardEntry) -> Transaction:
    return Transaction(
        user_guid=entry.user_guid,
        tx=new_transaction_id(),
        amount=to_token_units(entry.token_amount),
        timestamp=payout_timestamp(entry.date_ts),
        wallet_address=OFFCHAIN_WALLET_ADDRESS,
        contract=OFFCHAIN_REWARD_CONTRACT,
        data={'reward_type': entry.reward_type.value},
        completed=True,
    )


class PayoutIssuer:

    def __init__(self, repository: RewardEntryRepository, transactions: TransactionSink):
        self.repository = repository
        self.transactions = transactions

    def issue_tokens(self, opts: RewardsQueryOpts, dry_run: bool = True) -> IssuanceReport:
        """
        Issue tokens for already calculated entries of a window.

        With `dry_run` everything is computed and logged but nothing is written.
        """
        report = IssuanceReport(date_ts=opts.date_ts, dry_run=dry_run)

        for i, entry in enumerate(self.repository.get_iterator(opts)):
            if not entry.token_amount:
                report.skipped_zero += 1
                continue

            # Do not payout again if we have already issued a payout
            if entry.payout_tx:
                report.skipped_paid += 1
                continue

            transaction = build_transaction(entry)

            if not dry_run:
                sink_accepted = False
                try:
                    # The sink must join this transaction so a failed ledger update undoes the payout
                    with db_transaction.atomic():
                        self.transactions.add(transaction)
                        sink_accepted = True
                        # Add in the TX to the ledger entry for auditing
                        self.repository.update(entry.with_changes(payout_tx=transaction.tx), ['payout_tx'])
                except Exception as exc:  # pylint: disable=broad-except
                    report.failures.append(PayoutFailure(
                        entry=entry,
                        error=exc,
                        transaction=transaction if sink_accepted else None,
                    ))
                    if sink_accepted:
                        logger.critical(
                            "[%s]: %s was handed to the transaction sink but %s (%s) was not marked paid; "
                            "reconcile before re-running: %s",
                            i,
                            transaction.tx,
                            entry.user_guid,
                            entry.reward_type.value,
                            exc,
                            exc_info=True,
                        )
                        continue
                    logger.error(
                        "[%s]: Failed to issue %s tokens to %s (%s): %s",
                        i,
                        entry.token_amount,
                        entry.user_guid,
                        entry.reward_type.value,
                        exc,
                        exc_info=True,
                    )
                    continue

            report.transactions.append(transaction)
            logger.info(
                "[%s]: %s %s tokens to %s (%s, tx=%s)",
                i,
                "Would issue" if dry_run else "Issued",
                entry.token_amount,
                entry.user_guid,
                entry.reward_type.value,
                transaction.tx,
            )

        return report
