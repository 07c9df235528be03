from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, override_settings

from blockchain.evm_client import EvmRpcClient
from blockchain.transactions import TransactionRepository
from blockchain.unique_onchain import UniqueOnChainManager
from rewards.collaborators import load_collaborators
from users.identity import DjangoIdentityLookup

from .fakes import FakeContributionFeed, FakeLiquiditySource

FAKES = 'rewards.tests.fakes'


@override_settings(
    REWARDS_CONTRIBUTION_FEED=f'{FAKES}.FakeContributionFeed',
    REWARDS_LIQUIDITY_SOURCE=f'{FAKES}.FakeLiquiditySource',
    REWARDS_ONCHAIN_REGISTRY='blockchain.unique_onchain.UniqueOnChainManager',
    REWARDS_BALANCE_ORACLE='blockchain.evm_client.EvmRpcClient',
    REWARDS_BLOCK_RESOLVER='blockchain.evm_client.EvmRpcClient',
    REWARDS_TRANSACTION_SINK='blockchain.transactions.TransactionRepository',
    REWARDS_IDENTITY_LOOKUP='users.identity.DjangoIdentityLookup',
)
class LoadCollaboratorsTests(SimpleTestCase):
    def test_loads_configured_classes(self):
        collaborators = load_collaborators()

        self.assertIsInstance(collaborators.contributions, FakeContributionFeed)
        self.assertIsInstance(collaborators.liquidity_source, FakeLiquiditySource)
        self.assertIsInstance(collaborators.registry, UniqueOnChainManager)
        self.assertIsInstance(collaborators.balance_oracle, EvmRpcClient)
        self.assertIsInstance(collaborators.transactions, TransactionRepository)
        self.assertIsInstance(collaborators.identity, DjangoIdentityLookup)

    def test_same_path_shares_instance(self):
        collaborators = load_collaborators()
        self.assertIs(collaborators.balance_oracle, collaborators.block_resolver)

    @override_settings(REWARDS_CONTRIBUTION_FEED='')
    def test_missing_setting(self):
        with self.assertRaisesMessage(ImproperlyConfigured, "REWARDS_CONTRIBUTION_FEED is required"):
            load_collaborators()

    @override_settings(REWARDS_LIQUIDITY_SOURCE='rewards.tests.fakes.Missing')
    def test_unimportable_setting(self):
        with self.assertRaisesMessage(ImproperlyConfigured, "REWARDS_LIQUIDITY_SOURCE"):
            load_collaborators()
