"""
Transfer Engine Module

Moves funds between two accounts identified by account number. The
source must belong to the caller; the destination may belong to anyone.
Debit, credit and the journal entry are committed as one atomic unit.
"""

from typing import Any

from .storage import StorageInterface
from .audit import AuditTrail, AuditEventType
from .accounts import AccountLedger
from .journal import TransactionJournal, TransactionType, JournalEntry
from .errors import SourceNotFound, DestinationNotFound, InsufficientFunds, SameAccount
from .money import parse_amount, format_amount
from .logging_config import get_logger, log_action

DEFAULT_DESCRIPTION = "Virement"


class TransferEngine:
    """Atomic account-to-account transfers"""

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
        self.logger = get_logger("banque_rupt.transfers")

    def transfer(
        self,
        user_id: str,
        from_account_number: str,
        to_account_number: str,
        amount: Any,
        description: str = DEFAULT_DESCRIPTION
    ) -> JournalEntry:
        """
        Transfer funds from one of the caller's accounts to any account

        Args:
            user_id: verified caller identity
            from_account_number: source account, must be owned by the caller
            to_account_number: destination account
            amount: positive decimal amount
            description: free text stored on the journal entry

        Returns:
            The completed JournalEntry

        Raises:
            InvalidAmount, SourceNotFound, InsufficientFunds,
            DestinationNotFound, SameAccount
        """
        amount = parse_amount(amount)

        with self.storage.atomic():
            source = self.ledger.get_account_by_number(from_account_number)
            if not source or source.user_id != user_id:
                raise SourceNotFound()

            if source.balance < amount:
                raise InsufficientFunds(
                    f"Insufficient funds on {source.account_number}: "
                    f"balance {format_amount(source.balance)}, requested {format_amount(amount)}"
                )

            destination = self.ledger.get_account_by_number(to_account_number)
            if not destination:
                raise DestinationNotFound()
            if destination.id == source.id:
                raise SameAccount()

            self.ledger.debit(source.id, amount)
            self.ledger.credit(destination.id, amount)
            entry = self.journal.append(
                transaction_type=TransactionType.TRANSFER,
                amount=amount,
                from_account=source.id,
                to_account=destination.id,
                description=description or DEFAULT_DESCRIPTION
            )

            self.audit_trail.log_event(
                event_type=AuditEventType.TRANSFER_COMPLETED,
                entity_type="transaction",
                entity_id=entry.id,
                metadata={
                    "amount": amount,
                    "from_account": source.account_number,
                    "to_account": destination.account_number
                },
                user_id=user_id
            )

        log_action(
            self.logger, "info",
            f"Transfer of {format_amount(amount)} from {source.account_number} to {destination.account_number}",
            action="transfer", user_id=user_id, account_number=source.account_number,
            counterparty=destination.account_number, amount=amount, transaction_id=entry.id
        )
        return entry
