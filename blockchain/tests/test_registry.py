from decimal import Decimal

from django.db import IntegrityError
from django.test import TestCase

from blockchain.models import PayoutTransaction, UniqueOnChainAddress
from blockchain.transactions import TransactionRepository
from blockchain.unique_onchain import UniqueOnChainManager
from rewards.interfaces import Transaction
from users.identity import to_identity
from users.models import User


class UniqueOnChainManagerTests(TestCase):
    def setUp(self):
        self.manager = UniqueOnChainManager()
        self.alice = User.objects.create(username="alice", eth_wallet="0xAAA")
        self.bob = User.objects.create(username="bob", eth_wallet="0xbbb")

    def test_get_all_in_registration_order(self):
        UniqueOnChainAddress.objects.create(user=self.bob, address="0xbbb")
        UniqueOnChainAddress.objects.create(user=self.alice, address="0xAAA")

        registrations = list(self.manager.get_all())

        self.assertEqual(
            [(r.user_guid, r.address) for r in registrations],
            [(str(self.bob.pk), "0xbbb"), (str(self.alice.pk), "0xAAA")],
        )

    def test_unique_ignores_case(self):
        UniqueOnChainAddress.objects.create(user=self.alice, address="0xaaa")
        self.assertTrue(self.manager.is_unique(to_identity(self.alice)))

    def test_shared_address_is_not_unique(self):
        UniqueOnChainAddress.objects.create(user=self.alice, address="0xaaa")
        UniqueOnChainAddress.objects.create(user=self.bob, address="0xAAA")

        self.assertFalse(self.manager.is_unique(to_identity(self.alice)))

    def test_unregistered_or_walletless_user_is_not_unique(self):
        self.assertFalse(self.manager.is_unique(to_identity(self.bob)))

        carol = User.objects.create(username="carol")
        self.assertFalse(self.manager.is_unique(to_identity(carol)))

    def test_address_registered_once_per_user(self):
        UniqueOnChainAddress.objects.create(user=self.alice, address="0xaaa")
        with self.assertRaises(IntegrityError):
            UniqueOnChainAddress.objects.create(user=self.alice, address="0xaaa")


class TransactionRepositoryTests(TestCase):
    def test_add(self):
        transaction = Transaction(
            user_guid="42",
            tx="oc:1",
            amount=10 ** 21,
            timestamp=1714607999,
            data={'reward_type': 'engagement'},
        )

        TransactionRepository().add(transaction)

        record = PayoutTransaction.objects.get(tx="oc:1")
        self.assertEqual(record.user_guid, "42")
        self.assertEqual(record.amount, Decimal(10 ** 21))
        self.assertEqual(record.wallet_address, "offchain")
        self.assertEqual(record.contract, "offchain:reward")
        self.assertEqual(record.data, {'reward_type': 'engagement'})
        self.assertTrue(record.completed)

    def test_tx_ids_are_unique(self):
        transaction = Transaction(user_guid="42", tx="oc:1", amount=1, timestamp=0)
        repository = TransactionRepository()
        repository.add(transaction)

        with self.assertRaises(IntegrityError):
            repository.add(transaction)
