from django.conf import settings
from django.db import models

from .constants import OFFCHAIN_REWARD_CONTRACT, OFFCHAIN_WALLET_ADDRESS
from .fields import PreciseDecimalField


class UniqueOnChainAddress(models.Model):
    """An on-chain address a user has proven to own, used for uniqueness checks"""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='unique_onchain_addresses',
    )
    address = models.CharField(max_length=42, help_text="Registered wallet address (any case)")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'address'],
                name='unique_onchain_address_per_user',
            )
        ]

    def __str__(self):
        return f"{self.user_id} - {self.address}"


class PayoutTransaction(models.Model):
    """Off-chain ledger record of a token payout"""

    tx = models.CharField(max_length=128, unique=True, help_text="Caller-assigned transaction id")
    user_guid = models.CharField(max_length=64, db_index=True)
    wallet_address = models.CharField(max_length=64, default=OFFCHAIN_WALLET_ADDRESS)
    contract = models.CharField(max_length=64, default=OFFCHAIN_REWARD_CONTRACT)
    amount = PreciseDecimalField(decimal_places=0, help_text="Amount in base units (18 decimals)")
    timestamp = models.BigIntegerField(help_text="Unix timestamp the payout is booked at")
    data = models.JSONField(default=dict, blank=True)
    completed = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['timestamp', 'id']
        verbose_name = "Payout Transaction"
        verbose_name_plural = "Payout Transactions"

    def __str__(self):
        return f"{self.tx} - {self.user_guid}: {self.amount}"
