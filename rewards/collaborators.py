"""
Builds the external collaborators of the reward core from settings.

Each REWARDS_* setting holds the dotted path of a class that is
instantiated without arguments. Settings pointing at the same class share
one instance.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from .interfaces import (
    BalanceOracle,
    BlockResolver,
    ContributionFeed,
    IdentityLookup,
    LiquidityDataSource,
    OnChainRegistry,
    TransactionSink,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardCollaborators:
    contributions: ContributionFeed
    liquidity_source: LiquidityDataSource
    registry: OnChainRegistry
    balance_oracle: BalanceOracle
    block_resolver: BlockResolver
    transactions: TransactionSink
    identity: IdentityLookup


COLLABORATOR_SETTINGS = {
    'contributions': 'REWARDS_CONTRIBUTION_FEED',
    'liquidity_source': 'REWARDS_LIQUIDITY_SOURCE',
    'registry': 'REWARDS_ONCHAIN_REGISTRY',
    'balance_oracle': 'REWARDS_BALANCE_ORACLE',
    'block_resolver': 'REWARDS_BLOCK_RESOLVER',
    'transactions': 'REWARDS_TRANSACTION_SINK',
    'identity': 'REWARDS_IDENTITY_LOOKUP',
}


def load_collaborators() -> RewardCollaborators:
    instances: Dict[str, Any] = {}
    kwargs = {}

    for name, setting_name in COLLABORATOR_SETTINGS.items():
        dotted_path = getattr(settings, setting_name, '')
        if not dotted_path:
            raise ImproperlyConfigured(f"{setting_name} is required to calculate rewards")

        if dotted_path not in instances:
            try:
                collaborator_class = import_string(dotted_path)
            except ImportError as exc:
                raise ImproperlyConfigured(f"{setting_name}={dotted_path!r} cannot be imported: {exc}") from exc
            instances[dotted_path] = collaborator_class()
            logger.debug("Loaded %s from %s", name, dotted_path)

        kwargs[name] = instances[dotted_path]

    return RewardCollaborators(**kwargs)
