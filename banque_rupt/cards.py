"""
Card Issuance Module

Issues Luhn-valid cards bound to one account and its owner, and manages
card status and daily limits. The PIN is stored only as a one-way hash
and never leaves this module.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from enum import Enum
import re
import uuid

from .storage import StorageInterface, StorageRecord
from .audit import AuditTrail, AuditEventType
from .accounts import AccountLedger
from .card_numbers import generate_card_number, generate_cvv, expiration_date
from .hashing import hash_secret, verify_secret
from .errors import NotFound, InvalidPin, InvalidCardType, InvalidStatus, CardBlocked
from .money import parse_limit, format_amount
from .logging_config import get_logger, log_action

PIN_PATTERN = re.compile(r"[0-9]{4}")


class CardType(Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"


class CardStatus(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    BLOCKED = "blocked"  # Terminal


@dataclass
class Card(StorageRecord):
    """Spending instrument drawing on one account"""
    user_id: str
    account_id: str
    card_number: str
    card_type: CardType
    expiration_date: datetime
    cvv: str
    pin_hash: str
    status: CardStatus = CardStatus.INACTIVE
    daily_limit: Decimal = Decimal("500.00")

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['card_type'] = self.card_type.value
        result['status'] = self.status.value
        result['expiration_date'] = self.expiration_date.isoformat()
        result['daily_limit'] = format_amount(self.daily_limit)
        return result

    def to_public_dict(self) -> Dict[str, Any]:
        """Representation safe to return to clients"""
        result = self.to_dict()
        del result['pin_hash']
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Card':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            user_id=data['user_id'],
            account_id=data['account_id'],
            card_number=data['card_number'],
            card_type=CardType(data['card_type']),
            expiration_date=datetime.fromisoformat(data['expiration_date']),
            cvv=data['cvv'],
            pin_hash=data['pin_hash'],
            status=CardStatus(data['status']),
            daily_limit=Decimal(data['daily_limit'])
        )

    def check_pin(self, pin: str) -> bool:
        return verify_secret(pin, self.pin_hash)


def parse_card_type(value: Any) -> CardType:
    try:
        return CardType(str(value).strip().lower())
    except ValueError:
        raise InvalidCardType(f"Invalid card type: {value!r}")


def parse_card_status(value: Any) -> CardStatus:
    try:
        return CardStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidStatus(f"Invalid card status: {value!r}")


class CardManager:
    """
    Card issuance and lifecycle.

    Operations taking an owner_id act only on that user's cards and report
    foreign cards as NotFound; staff callers pass owner_id=None.
    """

    def __init__(
        self,
        storage: StorageInterface,
        ledger: AccountLedger,
        audit_trail: AuditTrail,
        default_daily_limit: Any = "500.00",
        validity_years: int = 3
    ):
        self.storage = storage
        self.ledger = ledger
        self.audit_trail = audit_trail
        self.default_daily_limit = parse_limit(default_daily_limit)
        self.validity_years = validity_years
        self.cards_table = "cards"
        self.logger = get_logger("banque_rupt.cards")

    def issue(self, owner_id: str, account_id: str, card_type: Any, pin: Any) -> Card:
        """
        Issue a new inactive card on one of the owner's accounts

        Args:
            owner_id: verified caller identity
            account_id: account the card draws on, must belong to owner_id
            card_type: visa, mastercard or amex (case-insensitive)
            pin: exactly four digits, as a string or an integer

        Returns:
            Created Card (use to_public_dict for responses)

        Raises:
            InvalidPin, InvalidCardType, AccountNotFound
        """
        # JSON numbers are accepted; a leading zero only survives as a string
        if isinstance(pin, int) and not isinstance(pin, bool):
            pin = str(pin)
        if not isinstance(pin, str) or not PIN_PATTERN.fullmatch(pin):
            raise InvalidPin()
        card_type = parse_card_type(card_type)

        with self.storage.atomic():
            account = self.ledger.get_owned_account(account_id, owner_id)

            card_number = generate_card_number(card_type.value)
            while self.storage.find(self.cards_table, {"card_number": card_number}):
                card_number = generate_card_number(card_type.value)

            now = datetime.now(timezone.utc)
            card = Card(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                user_id=owner_id,
                account_id=account.id,
                card_number=card_number,
                card_type=card_type,
                expiration_date=expiration_date(now, self.validity_years),
                cvv=generate_cvv(),
                pin_hash=hash_secret(pin),
                status=CardStatus.INACTIVE,
                daily_limit=self.default_daily_limit
            )
            self._save_card(card)

            self.audit_trail.log_event(
                event_type=AuditEventType.CARD_ISSUED,
                entity_type="card",
                entity_id=card.id,
                metadata={
                    "account_id": account.id,
                    "card_type": card_type,
                    "last_digits": card_number[-4:]
                },
                user_id=owner_id
            )

        log_action(self.logger, "info", f"{card_type.value} card issued on {account.account_number}",
                   user_id=owner_id, action="issue_card", account_number=account.account_number, card_id=card.id)
        return card

    def get_card(self, card_id: str, owner_id: Optional[str] = None) -> Card:
        """Card by id, optionally restricted to one owner"""
        data = self.storage.load(self.cards_table, card_id)
        if not data:
            raise NotFound("Card not found")
        card = Card.from_dict(data)
        if owner_id is not None and card.user_id != owner_id:
            raise NotFound("Card not found")
        return card

    def list_user_cards(self, user_id: str) -> List[Card]:
        cards = [Card.from_dict(data)
                 for data in self.storage.find(self.cards_table, {"user_id": user_id})]
        cards.sort(key=lambda c: c.created_at)
        cards.reverse()
        return cards

    def list_cards(self) -> List[Card]:
        cards = [Card.from_dict(data) for data in self.storage.load_all(self.cards_table)]
        cards.sort(key=lambda c: c.created_at)
        cards.reverse()
        return cards

    def set_status(self, card_id: str, new_status: Any, owner_id: Optional[str] = None,
                   actor_id: Optional[str] = None) -> Card:
        """
        Change a card's status. A blocked card stays blocked.

        Raises:
            InvalidStatus, NotFound, CardBlocked
        """
        new_status = parse_card_status(new_status)

        with self.storage.atomic():
            card = self.get_card(card_id, owner_id)
            if card.status == CardStatus.BLOCKED and new_status != CardStatus.BLOCKED:
                raise CardBlocked()
            old_status = card.status
            card.status = new_status
            card.updated_at = datetime.now(timezone.utc)
            self._save_card(card)

            self.audit_trail.log_event(
                event_type=AuditEventType.CARD_STATUS_CHANGED,
                entity_type="card",
                entity_id=card.id,
                metadata={"old_status": old_status, "new_status": new_status},
                user_id=actor_id or owner_id
            )

        log_action(self.logger, "info", f"Card {card.id} status {old_status.value} -> {new_status.value}",
                   user_id=actor_id or owner_id, action="set_card_status", card_id=card.id)
        return card

    def set_daily_limit(self, card_id: str, limit: Any, owner_id: Optional[str] = None,
                        actor_id: Optional[str] = None) -> Card:
        """Change a card's daily limit (non-negative decimal)"""
        limit = parse_limit(limit)

        with self.storage.atomic():
            card = self.get_card(card_id, owner_id)
            old_limit = card.daily_limit
            card.daily_limit = limit
            card.updated_at = datetime.now(timezone.utc)
            self._save_card(card)

            self.audit_trail.log_event(
                event_type=AuditEventType.CARD_LIMIT_CHANGED,
                entity_type="card",
                entity_id=card.id,
                metadata={"old_limit": old_limit, "new_limit": limit},
                user_id=actor_id or owner_id
            )

        log_action(self.logger, "info", f"Card {card.id} daily limit set to {format_amount(limit)}",
                   user_id=actor_id or owner_id, action="set_card_limit", card_id=card.id)
        return card

    def delete_card(self, card_id: str, owner_id: Optional[str] = None,
                    actor_id: Optional[str] = None) -> None:
        """Delete a card in any status"""
        with self.storage.atomic():
            card = self.get_card(card_id, owner_id)
            self.storage.delete(self.cards_table, card.id)
            self.audit_trail.log_event(
                event_type=AuditEventType.CARD_DELETED,
                entity_type="card",
                entity_id=card.id,
                metadata={"account_id": card.account_id, "status": card.status},
                user_id=actor_id or owner_id
            )

        log_action(self.logger, "info", f"Card {card.id} deleted",
                   user_id=actor_id or owner_id, action="delete_card", card_id=card.id)

    def _save_card(self, card: Card) -> None:
        self.storage.save(self.cards_table, card.id, card.to_dict())
