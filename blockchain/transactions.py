"""
Off-chain transaction ledger used as the payout sink.
"""
import logging

from django.db import transaction as db_transaction

from rewards.interfaces import Transaction

from .models import PayoutTransaction

logger = logging.getLogger(__name__)


class TransactionRepository:
    """Durably appends payout transactions; tx ids are unique."""

    def add(self, transaction: Transaction) -> PayoutTransaction:
        with db_transaction.atomic():
            record = PayoutTransaction.objects.create(
                tx=transaction.tx,
                user_guid=str(transaction.user_guid),
                wallet_address=transaction.wallet_address,
                contract=transaction.contract,
                amount=transaction.amount,
                timestamp=transaction.timestamp,
                data=dict(transaction.data),
                completed=transaction.completed,
            )
        logger.debug("Recorded payout %s for %s", transaction.tx, transaction.user_guid)
        return record
