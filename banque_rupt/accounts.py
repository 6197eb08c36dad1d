"""
Account Ledger Module

Owns account records and the only two balance mutation primitives,
debit and credit. Balances are Decimal with two fractional digits and
never go below zero after a committed operation.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from enum import Enum
import secrets
import uuid

from .storage import StorageInterface, StorageRecord
from .audit import AuditTrail, AuditEventType
from .errors import (
    AccountNotFound, InvalidType, InsufficientFunds, NonZeroBalance, HasTransactions, BalanceLimit
)
from .money import ZERO, MAX_AMOUNT, parse_amount, format_amount
from .logging_config import get_logger, log_action


class AccountType(Enum):
    """Account products offered to customers"""
    COURANT = "courant"        # Current account
    EPARGNE = "epargne"        # Savings account
    ENTREPRISE = "entreprise"  # Business account


@dataclass
class Account(StorageRecord):
    """Monetary container owned by one user"""
    user_id: str
    account_number: str
    account_type: AccountType
    balance: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['account_type'] = self.account_type.value
        result['balance'] = format_amount(self.balance)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            user_id=data['user_id'],
            account_number=data['account_number'],
            account_type=AccountType(data['account_type']),
            balance=Decimal(data['balance'])
        )


def parse_account_type(value: Any) -> AccountType:
    """Resolve an account type name, raising InvalidType for anything else"""
    if isinstance(value, AccountType):
        return value
    try:
        return AccountType(str(value).strip().lower())
    except ValueError:
        raise InvalidType(f"Invalid account type: {value!r}")


class AccountLedger:
    """
    Account lifecycle and balance primitives.

    debit and credit re-read the account inside their own atomic unit;
    when called from inside an outer unit they join it, so the read and
    the write happen under the same lock as the rest of the operation.
    """

    def __init__(
        self,
        storage: StorageInterface,
        audit_trail: AuditTrail,
        journal: 'TransactionJournal',
        number_prefix: str = "FR",
        number_digits: int = 16
    ):
        self.storage = storage
        self.audit_trail = audit_trail
        self.journal = journal
        self.number_prefix = number_prefix
        self.number_digits = number_digits
        self.accounts_table = "accounts"
        self.cards_table = "cards"
        self.logger = get_logger("banque_rupt.accounts")

    def _generate_account_number(self) -> str:
        digits = "".join(secrets.choice("0123456789") for _ in range(self.number_digits))
        return f"{self.number_prefix}{digits}"

    def create_account(self, owner_id: str, account_type: Any,
                       actor_id: Optional[str] = None) -> Account:
        """
        Open a new account with a zero balance

        Args:
            owner_id: ID of the owning user
            account_type: courant, epargne or entreprise
            actor_id: user performing the action, defaults to the owner

        Returns:
            Created Account
        """
        account_type = parse_account_type(account_type)

        with self.storage.atomic():
            account_number = self._generate_account_number()
            while self.get_account_by_number(account_number):
                account_number = self._generate_account_number()

            now = datetime.now(timezone.utc)
            account = Account(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                user_id=owner_id,
                account_number=account_number,
                account_type=account_type,
                balance=ZERO
            )
            self._save_account(account)

            self.audit_trail.log_event(
                event_type=AuditEventType.ACCOUNT_CREATED,
                entity_type="account",
                entity_id=account.id,
                metadata={
                    "account_number": account_number,
                    "owner_id": owner_id,
                    "account_type": account_type.value
                },
                user_id=actor_id or owner_id
            )

        log_action(self.logger, "info", f"Account {account.account_number} created",
                   user_id=actor_id or owner_id, action="create_account", account_number=account.account_number)
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID"""
        data = self.storage.load(self.accounts_table, account_id)
        if data:
            return Account.from_dict(data)
        return None

    def get_account_by_number(self, account_number: str) -> Optional[Account]:
        """Get account by account number"""
        accounts = self.storage.find(self.accounts_table, {"account_number": account_number})
        if accounts:
            return Account.from_dict(accounts[0])
        return None

    def get_user_accounts(self, user_id: str) -> List[Account]:
        """All accounts of a user, newest first"""
        accounts = [Account.from_dict(data)
                    for data in self.storage.find(self.accounts_table, {"user_id": user_id})]
        accounts.sort(key=lambda a: a.created_at)
        accounts.reverse()
        return accounts

    def list_accounts(self) -> List[Account]:
        accounts = [Account.from_dict(data) for data in self.storage.load_all(self.accounts_table)]
        accounts.sort(key=lambda a: a.created_at)
        accounts.reverse()
        return accounts

    def get_owned_account(self, account_id: str, user_id: str) -> Account:
        """Account owned by user_id; absent and foreign accounts are both NotFound"""
        account = self.get_account(account_id)
        if not account or account.user_id != user_id:
            raise AccountNotFound()
        return account

    def debit(self, account_id: str, amount: Any) -> Account:
        """
        Decrease an account balance.

        Raises:
            InvalidAmount: amount is not a positive decimal
            AccountNotFound: account does not exist
            InsufficientFunds: balance would become negative
        """
        amount = parse_amount(amount)
        with self.storage.atomic():
            account = self.get_account(account_id)
            if not account:
                raise AccountNotFound()
            if account.balance < amount:
                raise InsufficientFunds(
                    f"Insufficient funds on {account.account_number}: "
                    f"balance {format_amount(account.balance)}, requested {format_amount(amount)}"
                )
            account.balance -= amount
            account.updated_at = datetime.now(timezone.utc)
            self._save_account(account)
        return account

    def credit(self, account_id: str, amount: Any) -> Account:
        """
        Increase an account balance.

        Raises:
            InvalidAmount: amount is not a positive decimal
            AccountNotFound: account does not exist
            BalanceLimit: balance would go past MAX_AMOUNT
        """
        amount = parse_amount(amount)
        with self.storage.atomic():
            account = self.get_account(account_id)
            if not account:
                raise AccountNotFound()
            if account.balance > MAX_AMOUNT - amount:
                raise BalanceLimit(
                    f"Crediting {format_amount(amount)} would take {account.account_number} "
                    f"past {format_amount(MAX_AMOUNT)}"
                )
            account.balance += amount
            account.updated_at = datetime.now(timezone.utc)
            self._save_account(account)
        return account

    def delete_account(self, account_id: str, owner_id: str) -> None:
        """
        Owner deletion: only an empty account can be closed.

        Raises:
            AccountNotFound: absent or owned by someone else
            NonZeroBalance: balance is not 0.00
        """
        with self.storage.atomic():
            account = self.get_owned_account(account_id, owner_id)
            if account.balance != ZERO:
                raise NonZeroBalance(
                    f"Account {account.account_number} still holds {format_amount(account.balance)}"
                )
            self._remove_account(account, actor_id=owner_id)

        log_action(self.logger, "info", f"Account {account.account_number} deleted by owner",
                   user_id=owner_id, action="delete_account", account_number=account.account_number)

    def admin_delete_account(self, account_id: str, actor_id: Optional[str] = None) -> None:
        """
        Back-office deletion: only an account no journal entry references.

        Raises:
            AccountNotFound: account does not exist
            HasTransactions: the journal references the account
        """
        with self.storage.atomic():
            account = self.get_account(account_id)
            if not account:
                raise AccountNotFound()
            if self.journal.count_for_account(account.id) > 0:
                raise HasTransactions(
                    f"Account {account.account_number} has transactions and cannot be deleted"
                )
            self._remove_account(account, actor_id=actor_id)

        log_action(self.logger, "info", f"Account {account.account_number} deleted by admin",
                   user_id=actor_id, action="admin_delete_account", account_number=account.account_number)

    def _remove_account(self, account: Account, actor_id: Optional[str]) -> None:
        # Cards cannot outlive the account they draw on
        for card in self.storage.find(self.cards_table, {"account_id": account.id}):
            self.storage.delete(self.cards_table, card['id'])
        self.storage.delete(self.accounts_table, account.id)

        self.audit_trail.log_event(
            event_type=AuditEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account.id,
            metadata={
                "account_number": account.account_number,
                "owner_id": account.user_id,
                "balance": account.balance
            },
            user_id=actor_id
        )

    def _save_account(self, account: Account) -> None:
        self.storage.save(self.accounts_table, account.id, account.to_dict())
