"""
Admin Adjustment Engine Module

Operator-initiated credits and debits, and exact reversal of earlier
transfers, deposits and withdrawals. Every operation is one atomic unit.
"""

from typing import Any, Optional

from .storage import StorageInterface
from .audit import AuditTrail, AuditEventType
from .accounts import AccountLedger
from .journal import TransactionJournal, TransactionType, TransactionStatus, JournalEntry
from .errors import (
    NotFound, AlreadyCancelled, NotCancellable,
    InsufficientFunds, InsufficientFundsToReverse
)
from .money import parse_amount, format_amount
from .logging_config import get_logger, log_action

DEPOSIT_DESCRIPTION = "Dépôt administratif"
WITHDRAWAL_DESCRIPTION = "Retrait administratif"
CANCELLATION_DESCRIPTION = "Annulation administrative de la transaction #{transaction_id}"


class AdminAdjustmentEngine:
    """Back-office balance adjustments"""

    def __init__(
        self,
        storage: StorageInterface,
        ledger: AccountLedger,
        journal: TransactionJournal,
        audit_trail: AuditTrail
    ):
        self.storage = storage
        self.ledger = ledger
        self.journal = journal
        self.audit_trail = audit_trail
        self.logger = get_logger("banque_rupt.adjustments")

    def credit(self, account_id: str, amount: Any, actor_id: Optional[str] = None) -> JournalEntry:
        """Deposit funds into an account"""
        amount = parse_amount(amount)

        with self.storage.atomic():
            account = self.ledger.credit(account_id, amount)
            entry = self.journal.append(
                transaction_type=TransactionType.DEPOSIT,
                amount=amount,
                to_account=account_id,
                description=DEPOSIT_DESCRIPTION
            )
            self.audit_trail.log_event(
                event_type=AuditEventType.ADMIN_CREDIT,
                entity_type="account",
                entity_id=account_id,
                metadata={"amount": amount, "transaction_id": entry.id, "balance": account.balance},
                user_id=actor_id
            )

        log_action(self.logger, "info",
                   f"Admin credit of {format_amount(amount)} on {account.account_number}",
                   user_id=actor_id, action="admin_credit", account_number=account.account_number,
                   amount=amount, transaction_id=entry.id)
        return entry

    def debit(self, account_id: str, amount: Any, actor_id: Optional[str] = None) -> JournalEntry:
        """Withdraw funds from an account; never overdraws"""
        amount = parse_amount(amount)

        with self.storage.atomic():
            account = self.ledger.debit(account_id, amount)
            entry = self.journal.append(
                transaction_type=TransactionType.WITHDRAWAL,
                amount=amount,
                from_account=account_id,
                description=WITHDRAWAL_DESCRIPTION
            )
            self.audit_trail.log_event(
                event_type=AuditEventType.ADMIN_DEBIT,
                entity_type="account",
                entity_id=account_id,
                metadata={"amount": amount, "transaction_id": entry.id, "balance": account.balance},
                user_id=actor_id
            )

        log_action(self.logger, "info",
                   f"Admin debit of {format_amount(amount)} on {account.account_number}",
                   user_id=actor_id, action="admin_debit", account_number=account.account_number,
                   amount=amount, transaction_id=entry.id)
        return entry

    def cancel(self, transaction_id: str, actor_id: Optional[str] = None) -> JournalEntry:
        """
        Reverse a completed transaction.

        The original entry becomes cancelled and a new transfer entry with
        the original accounts swapped documents the reversal.

        Returns:
            The reversal JournalEntry

        Raises:
            NotFound: no such transaction
            AlreadyCancelled: transaction was already cancelled
            NotCancellable: transaction is pending
            InsufficientFundsToReverse: the account giving money back cannot cover it
        """
        with self.storage.atomic():
            original = self.journal.get_entry(transaction_id)
            if not original:
                raise NotFound(f"Transaction {transaction_id} not found")
            if original.status == TransactionStatus.CANCELLED:
                raise AlreadyCancelled(f"Transaction {transaction_id} is already cancelled")
            if original.status != TransactionStatus.COMPLETED:
                raise NotCancellable(f"Transaction {transaction_id} is {original.status.value}")

            amount = original.amount
            if original.transaction_type == TransactionType.TRANSFER:
                self._take_back(original.to_account, amount)
                self._give_back(original.from_account, amount)
            elif original.transaction_type == TransactionType.DEPOSIT:
                self._take_back(original.to_account, amount)
            elif original.transaction_type == TransactionType.WITHDRAWAL:
                self._give_back(original.from_account, amount)

            self.journal.mark_cancelled(original.id)
            reversal = self.journal.append(
                transaction_type=TransactionType.TRANSFER,
                amount=amount,
                from_account=original.to_account,
                to_account=original.from_account,
                description=CANCELLATION_DESCRIPTION.format(transaction_id=original.id)
            )

            self.audit_trail.log_event(
                event_type=AuditEventType.TRANSACTION_CANCELLED,
                entity_type="transaction",
                entity_id=original.id,
                metadata={
                    "transaction_type": original.transaction_type,
                    "amount": amount,
                    "reversal_id": reversal.id
                },
                user_id=actor_id
            )

        log_action(self.logger, "info",
                   f"Transaction {original.id} cancelled ({original.transaction_type.value}, {format_amount(amount)})",
                   user_id=actor_id, action="cancel_transaction", amount=amount, transaction_id=original.id)
        return reversal

    def _take_back(self, account_id: Optional[str], amount) -> None:
        if not account_id:
            return
        try:
            self.ledger.debit(account_id, amount)
        except InsufficientFunds as e:
            raise InsufficientFundsToReverse(e.message) from e

    def _give_back(self, account_id: Optional[str], amount) -> None:
        if not account_id:
            return
        self.ledger.credit(account_id, amount)
