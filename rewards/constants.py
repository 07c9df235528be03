from decimal import Decimal

# Applied to every raw score before it is written to the ledger
REWARD_MULTIPLIER = Decimal(3)

DEFAULT_TOKENOMICS_VERSION = 2

# Fractional digits of the daily multiplier increment (ceiling rounded)
MULTIPLIER_INCREMENT_DECIMALS = 12

SECONDS_PER_DAY = 86400
