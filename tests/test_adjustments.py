"""
Tests for admin credits, debits and transaction cancellation
"""

import pytest
from decimal import Decimal

from banque_rupt.config import BanqueRuptConfig
from banque_rupt.storage import InMemoryStorage
from banque_rupt.system import BankingSystem
from banque_rupt.journal import TransactionType, TransactionStatus
from banque_rupt.audit import AuditEventType
from banque_rupt.errors import (
    AccountNotFound, NotFound, InvalidAmount, InsufficientFunds,
    InsufficientFundsToReverse, AlreadyCancelled, NotCancellable, NonZeroBalance, BalanceLimit
)


class TestAdminAdjustments:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.system = BankingSystem(self.storage, BanqueRuptConfig(database_url="memory://"))
        self.ledger = self.system.ledger
        self.journal = self.system.journal
        self.engine = self.system.adjustment_engine
        self.account = self.ledger.create_account("alice", "courant")

    def balance(self, account):
        return self.ledger.get_account(account.id).balance

    def test_credit_creates_deposit_entry(self):
        entry = self.engine.credit(self.account.id, "100.00", actor_id="admin")

        assert self.balance(self.account) == Decimal("100.00")
        assert entry.transaction_type == TransactionType.DEPOSIT
        assert entry.from_account is None
        assert entry.to_account == self.account.id
        assert entry.description == "Dépôt administratif"
        assert entry.status == TransactionStatus.COMPLETED

        events = self.system.audit_trail.get_events_by_type(AuditEventType.ADMIN_CREDIT)
        assert len(events) == 1
        assert events[0].user_id == "admin"

    def test_debit_creates_withdrawal_entry(self):
        self.engine.credit(self.account.id, "100.00")
        entry = self.engine.debit(self.account.id, "30.00")

        assert self.balance(self.account) == Decimal("70.00")
        assert entry.transaction_type == TransactionType.WITHDRAWAL
        assert entry.from_account == self.account.id
        assert entry.to_account is None
        assert entry.description == "Retrait administratif"

    def test_debit_cannot_overdraw(self):
        self.engine.credit(self.account.id, "10.00")
        with pytest.raises(InsufficientFunds):
            self.engine.debit(self.account.id, "10.01")
        assert self.balance(self.account) == Decimal("10.00")
        assert len(self.journal.list_all()) == 1

    def test_invalid_amount(self):
        with pytest.raises(InvalidAmount):
            self.engine.credit(self.account.id, "-3")
        with pytest.raises(InvalidAmount):
            self.engine.debit(self.account.id, "zero")
        assert self.journal.list_all() == []

    def test_credit_cannot_exceed_maximum_balance(self):
        self.engine.credit(self.account.id, "9999999999999.00")

        with pytest.raises(BalanceLimit):
            self.engine.credit(self.account.id, "1.00")
        with pytest.raises(InvalidAmount):
            self.engine.credit(self.account.id, "60000000000000000000000000")

        assert self.balance(self.account) == Decimal("9999999999999.00")
        assert len(self.journal.list_all()) == 1
        assert self.engine.credit(self.account.id, "0.99").amount == Decimal("0.99")

    def test_unknown_account(self):
        with pytest.raises(AccountNotFound):
            self.engine.credit("missing", "1.00")
        with pytest.raises(AccountNotFound):
            self.engine.debit("missing", "1.00")
        assert self.journal.list_all() == []


class TestCancellation:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.system = BankingSystem(self.storage, BanqueRuptConfig(database_url="memory://"))
        self.ledger = self.system.ledger
        self.journal = self.system.journal
        self.engine = self.system.adjustment_engine

        self.source = self.ledger.create_account("alice", "courant")
        self.destination = self.ledger.create_account("bob", "courant")

    def balance(self, account):
        return self.ledger.get_account(account.id).balance

    def test_cancel_transfer_restores_balances(self):
        self.engine.credit(self.source.id, "100.00")
        transfer = self.system.transfer_engine.transfer(
            "alice", self.source.account_number, self.destination.account_number, "40.00"
        )

        reversal = self.engine.cancel(transfer.id, actor_id="admin")

        assert self.balance(self.source) == Decimal("100.00")
        assert self.balance(self.destination) == Decimal("0.00")
        assert self.journal.get_entry(transfer.id).status == TransactionStatus.CANCELLED

        assert reversal.transaction_type == TransactionType.TRANSFER
        assert reversal.from_account == self.destination.id
        assert reversal.to_account == self.source.id
        assert reversal.amount == Decimal("40.00")
        assert reversal.description == f"Annulation administrative de la transaction #{transfer.id}"
        assert reversal.status == TransactionStatus.COMPLETED
        # credit + transfer + reversal
        assert len(self.journal.list_all()) == 3

    def test_cancel_twice_fails_without_side_effects(self):
        self.engine.credit(self.source.id, "50.00")
        transfer = self.system.transfer_engine.transfer(
            "alice", self.source.account_number, self.destination.account_number, "20.00"
        )
        self.engine.cancel(transfer.id)

        with pytest.raises(AlreadyCancelled):
            self.engine.cancel(transfer.id)

        assert self.balance(self.source) == Decimal("50.00")
        assert self.balance(self.destination) == Decimal("0.00")
        assert len(self.journal.list_all()) == 3

    def test_cancel_transfer_when_destination_spent_the_money(self):
        self.engine.credit(self.source.id, "50.00")
        transfer = self.system.transfer_engine.transfer(
            "alice", self.source.account_number, self.destination.account_number, "20.00"
        )
        self.engine.debit(self.destination.id, "15.00")

        with pytest.raises(InsufficientFundsToReverse):
            self.engine.cancel(transfer.id)

        assert self.balance(self.source) == Decimal("30.00")
        assert self.balance(self.destination) == Decimal("5.00")
        assert self.journal.get_entry(transfer.id).status == TransactionStatus.COMPLETED
        assert len(self.journal.list_all()) == 3

    def test_cancel_deposit(self):
        deposit = self.engine.credit(self.source.id, "80.00")
        reversal = self.engine.cancel(deposit.id)

        assert self.balance(self.source) == Decimal("0.00")
        assert self.journal.get_entry(deposit.id).is_cancelled
        assert reversal.from_account == self.source.id
        assert reversal.to_account is None

    def test_cancel_deposit_already_spent(self):
        deposit = self.engine.credit(self.source.id, "80.00")
        self.engine.debit(self.source.id, "50.00")

        with pytest.raises(InsufficientFundsToReverse):
            self.engine.cancel(deposit.id)
        assert self.balance(self.source) == Decimal("30.00")
        assert not self.journal.get_entry(deposit.id).is_cancelled

    def test_cancel_withdrawal(self):
        self.engine.credit(self.source.id, "80.00")
        withdrawal = self.engine.debit(self.source.id, "30.00")
        reversal = self.engine.cancel(withdrawal.id)

        assert self.balance(self.source) == Decimal("80.00")
        assert reversal.from_account is None
        assert reversal.to_account == self.source.id

    def test_cancel_missing_transaction(self):
        with pytest.raises(NotFound):
            self.engine.cancel("missing")

    def test_cancel_pending_transaction(self):
        deposit = self.engine.credit(self.source.id, "10.00")
        data = self.storage.load("transactions", deposit.id)
        data["status"] = "pending"
        self.storage.save("transactions", deposit.id, data)

        with pytest.raises(NotCancellable):
            self.engine.cancel(deposit.id)
        assert self.balance(self.source) == Decimal("10.00")

    def test_cancellation_is_audited(self):
        deposit = self.engine.credit(self.source.id, "10.00")
        reversal = self.engine.cancel(deposit.id, actor_id="admin")

        events = self.system.audit_trail.get_events_for_entity("transaction", deposit.id)
        assert [e.event_type for e in events] == [AuditEventType.TRANSACTION_CANCELLED]
        assert events[0].metadata["reversal_id"] == reversal.id


class TestScenarios:
    """End-to-end scenarios over the banking core"""

    def setup_method(self):
        self.system = BankingSystem(InMemoryStorage(), BanqueRuptConfig(database_url="memory://"))

    def test_register_credit_transfer_cancel(self):
        user = self.system.user_manager.register("alice@example.com", "secret", "Alice", "Martin")
        accounts = self.system.ledger.get_user_accounts(user.id)
        assert len(accounts) == 1
        account = accounts[0]
        assert account.account_type.value == "courant"
        assert account.balance == Decimal("0.00")

        other = self.system.ledger.create_account("bob", "courant")
        self.system.ledger.credit(other.id, "10.00")

        deposit = self.system.adjustment_engine.credit(account.id, "100.00")
        assert self.system.ledger.get_account(account.id).balance == Decimal("100.00")
        assert deposit.transaction_type == TransactionType.DEPOSIT

        transfer = self.system.transfer_engine.transfer(
            user.id, account.account_number, other.account_number, "40.00"
        )
        assert self.system.ledger.get_account(account.id).balance == Decimal("60.00")
        assert self.system.ledger.get_account(other.id).balance == Decimal("50.00")
        entries_before_cancel = len(self.system.journal.list_all())

        self.system.adjustment_engine.cancel(transfer.id)
        assert self.system.ledger.get_account(account.id).balance == Decimal("100.00")
        assert self.system.ledger.get_account(other.id).balance == Decimal("10.00")
        assert self.system.journal.get_entry(transfer.id).is_cancelled
        assert len(self.system.journal.list_all()) == entries_before_cancel + 1

    def test_delete_after_emptying_account(self):
        account = self.system.ledger.create_account("alice", "courant")
        self.system.ledger.credit(account.id, "5.00")

        with pytest.raises(NonZeroBalance):
            self.system.ledger.delete_account(account.id, "alice")

        self.system.ledger.debit(account.id, "5.00")
        self.system.ledger.delete_account(account.id, "alice")
        assert self.system.ledger.get_account(account.id) is None
