from decimal import Decimal

from django.db import models

from blockchain.fields import PreciseDecimalField

from .constants import DEFAULT_TOKENOMICS_VERSION


class RewardType(models.TextChoices):
    """Closed set of reward dimensions, in processing order."""

    ENGAGEMENT = 'engagement', 'Engagement'
    LIQUIDITY = 'liquidity', 'Liquidity'
    HOLDING = 'holding', 'Holding'


# Reward types whose entries are re-verified against the on-chain registry
ONCHAIN_REWARD_TYPES = frozenset({RewardType.LIQUIDITY, RewardType.HOLDING})


class RewardLedgerEntry(models.Model):
    """A user's score and token share for one reward type on one day"""

    user_guid = models.CharField(max_length=64)
    date_ts = models.BigIntegerField(help_text="Midnight (UTC) unix timestamp of the rewarded day")
    reward_type = models.CharField(max_length=20, choices=RewardType.choices)
    score = PreciseDecimalField(default=Decimal('0'))
    multiplier = PreciseDecimalField(default=Decimal('1'))
    token_amount = PreciseDecimalField(
        default=Decimal('0'),
        help_text="Tokens earned; only set by the calculation pass",
    )
    payout_tx = models.CharField(
        max_length=128,
        blank=True,
        default='',
        help_text="Ledger transaction id; set once when tokens are issued",
    )
    tokenomics_version = models.PositiveSmallIntegerField(default=DEFAULT_TOKENOMICS_VERSION)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date_ts', 'id']
        verbose_name = "Reward Ledger Entry"
        verbose_name_plural = "Reward Ledger Entries"
        constraints = [
            models.UniqueConstraint(
                fields=['user_guid', 'date_ts', 'reward_type'],
                name='unique_reward_entry_per_user_day_type',
            )
        ]
        indexes = [
            models.Index(fields=['date_ts', 'reward_type'], name='reward_entry_window'),
        ]

    def __str__(self):
        return f"{self.user_guid} - {self.reward_type} @ {self.date_ts}: {self.token_amount}"
