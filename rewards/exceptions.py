from django.core.exceptions import ImproperlyConfigured


class RewardsError(Exception):
    """Base class for reward ledger errors"""


class TokenomicsConfigurationError(RewardsError, ImproperlyConfigured):
    """An entry references a tokenomics version with no manifest"""


class LedgerUpdateError(RewardsError):
    """A partial update named fields the ledger does not allow to change"""


class PayoutError(RewardsError):
    """One or more payouts could not be written to the transaction ledger"""

    def __init__(self, failures):
        self.failures = list(failures)
        super().__init__(f"{len(self.failures)} payout(s) failed")
