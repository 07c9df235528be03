"""
Versioned tokenomics manifests.

A manifest is immutable; entries select one through `tokenomics_version`.
Looking up an unregistered version yields an `UnknownTokenomicsVersion`
value instead of raising, so callers decide how fatal it is.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal, localcontext
from types import MappingProxyType
from typing import Mapping, Union

from blockchain.units import PRECISE_CONTEXT

from .constants import MULTIPLIER_INCREMENT_DECIMALS
from .exceptions import TokenomicsConfigurationError
from .models import RewardType


@dataclass(frozen=True)
class TokenomicsManifest:
    version: int
    daily_pools: Mapping[str, Decimal]
    min_multiplier: Decimal
    max_multiplier: Decimal
    max_multiplier_days: int

    def daily_pool(self, reward_type: str) -> Decimal:
        return self.daily_pools[str(reward_type)]

    @property
    def daily_multiplier_increment(self) -> Decimal:
        """(max - min) / days, rounded up at 12 fractional digits."""
        with localcontext(PRECISE_CONTEXT):
            increment = (self.max_multiplier - self.min_multiplier) / Decimal(self.max_multiplier_days)
            return increment.quantize(
                Decimal(1).scaleb(-MULTIPLIER_INCREMENT_DECIMALS),
                rounding=ROUND_CEILING,
            )


@dataclass(frozen=True)
class UnknownTokenomicsVersion:
    version: object

    @property
    def message(self) -> str:
        return f"Invalid tokenomics version: {self.version!r}"

    def raise_error(self):
        raise TokenomicsConfigurationError(self.message)


TOKENOMICS_V2 = TokenomicsManifest(
    version=2,
    daily_pools=MappingProxyType({
        RewardType.ENGAGEMENT.value: Decimal('4000'),
        RewardType.LIQUIDITY.value: Decimal('1000'),
        RewardType.HOLDING.value: Decimal('1000'),
    }),
    min_multiplier=Decimal('1'),
    max_multiplier=Decimal('3'),
    max_multiplier_days=365,
)

TOKENOMICS_MANIFESTS: Mapping[int, TokenomicsManifest] = MappingProxyType({
    TOKENOMICS_V2.version: TOKENOMICS_V2,
})


def get_tokenomics_manifest(version) -> Union[TokenomicsManifest, UnknownTokenomicsVersion]:
    manifest = TOKENOMICS_MANIFESTS.get(version)
    if manifest is None:
        return UnknownTokenomicsVersion(version)
    return manifest


def require_tokenomics_manifest(version) -> TokenomicsManifest:
    """Manifest for `version`, or TokenomicsConfigurationError."""
    manifest = get_tokenomics_manifest(version)
    if isinstance(manifest, UnknownTokenomicsVersion):
        manifest.raise_error()
    return manifest
