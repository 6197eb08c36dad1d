"""
Transaction Journal Module

Append-mostly record of balance-affecting events. Entries are written
with status completed in the same atomic unit as the balance change they
describe; the only later mutation is completed -> cancelled.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from enum import Enum
import uuid

from .storage import StorageInterface, StorageRecord
from .errors import NotFound, AlreadyCancelled, NotCancellable, InvalidAmount
from .money import ZERO, format_amount


class TransactionType(Enum):
    TRANSFER = "transfer"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(Enum):
    PENDING = "pending"      # Kept for compatibility, nothing writes it
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class JournalEntry(StorageRecord):
    """One balance-affecting event"""
    transaction_type: TransactionType
    amount: Decimal
    from_account: Optional[str]  # None for deposits
    to_account: Optional[str]    # None for withdrawals
    description: str
    status: TransactionStatus = TransactionStatus.COMPLETED

    def __post_init__(self):
        if self.amount <= ZERO:
            raise InvalidAmount("Journal entry amount must be positive")

    @property
    def is_cancelled(self) -> bool:
        return self.status == TransactionStatus.CANCELLED

    def involves(self, account_ids: Iterable[str]) -> bool:
        ids = set(account_ids)
        return self.from_account in ids or self.to_account in ids

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['transaction_type'] = self.transaction_type.value
        result['status'] = self.status.value
        result['amount'] = format_amount(self.amount)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JournalEntry':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            transaction_type=TransactionType(data['transaction_type']),
            amount=Decimal(data['amount']),
            from_account=data.get('from_account'),
            to_account=data.get('to_account'),
            description=data.get('description', ""),
            status=TransactionStatus(data['status'])
        )


def _newest_first(entries: List[JournalEntry]) -> List[JournalEntry]:
    # Stable ascending sort then reverse keeps later writes first on equal timestamps
    entries.sort(key=lambda e: e.created_at)
    entries.reverse()
    return entries


class TransactionJournal:
    """Storage-backed journal of transactions"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.transactions_table = "transactions"
        self.accounts_table = "accounts"

    def append(
        self,
        transaction_type: TransactionType,
        amount: Decimal,
        from_account: Optional[str] = None,
        to_account: Optional[str] = None,
        description: str = ""
    ) -> JournalEntry:
        """Write one completed entry"""
        now = datetime.now(timezone.utc)
        entry = JournalEntry(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            transaction_type=transaction_type,
            amount=amount,
            from_account=from_account,
            to_account=to_account,
            description=description,
            status=TransactionStatus.COMPLETED
        )
        self.storage.save(self.transactions_table, entry.id, entry.to_dict())
        return entry

    def get_entry(self, entry_id: str) -> Optional[JournalEntry]:
        data = self.storage.load(self.transactions_table, entry_id)
        if data:
            return JournalEntry.from_dict(data)
        return None

    def mark_cancelled(self, entry_id: str) -> JournalEntry:
        """
        Flip a completed entry to cancelled.

        Raises:
            NotFound: no such entry
            AlreadyCancelled: entry is already cancelled
            NotCancellable: entry is pending
        """
        with self.storage.atomic():
            entry = self.get_entry(entry_id)
            if not entry:
                raise NotFound(f"Transaction {entry_id} not found")
            if entry.status == TransactionStatus.CANCELLED:
                raise AlreadyCancelled(f"Transaction {entry_id} is already cancelled")
            if entry.status != TransactionStatus.COMPLETED:
                raise NotCancellable(f"Transaction {entry_id} is {entry.status.value}")
            entry.status = TransactionStatus.CANCELLED
            entry.updated_at = datetime.now(timezone.utc)
            self.storage.save(self.transactions_table, entry.id, entry.to_dict())
        return entry

    def _all_entries(self) -> List[JournalEntry]:
        return [JournalEntry.from_dict(data)
                for data in self.storage.load_all(self.transactions_table)]

    def list_for_accounts(self, account_ids: Iterable[str], limit: int = 50,
                          offset: int = 0) -> List[JournalEntry]:
        """Entries touching any of the accounts, newest first"""
        ids = set(account_ids)
        if not ids:
            return []
        entries = _newest_first([e for e in self._all_entries() if e.involves(ids)])
        return entries[offset:offset + limit]

    def list_for_user(self, user_id: str, limit: int = 50, offset: int = 0) -> List[JournalEntry]:
        accounts = self.storage.find(self.accounts_table, {"user_id": user_id})
        return self.list_for_accounts([a['id'] for a in accounts], limit=limit, offset=offset)

    def list_all(self, limit: int = 200, offset: int = 0) -> List[JournalEntry]:
        entries = _newest_first(self._all_entries())
        return entries[offset:offset + limit]

    def count_for_account(self, account_id: str) -> int:
        return sum(1 for e in self._all_entries() if e.involves([account_id]))
