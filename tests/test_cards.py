"""
Tests for card number generation and card management
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from banque_rupt.storage import InMemoryStorage
from banque_rupt.audit import AuditTrail, AuditEventType
from banque_rupt.accounts import AccountLedger
from banque_rupt.journal import TransactionJournal
from banque_rupt.cards import CardManager, CardStatus, CardType
from banque_rupt.card_numbers import (
    luhn_check_digit, is_luhn_valid, generate_card_number, generate_cvv, expiration_date
)
from banque_rupt.errors import (
    AccountNotFound, NotFound, InvalidPin, InvalidCardType, InvalidStatus,
    InvalidLimit, CardBlocked
)


class TestCardNumbers:

    def test_luhn_known_values(self):
        assert luhn_check_digit("7992739871") == 3
        assert is_luhn_valid("79927398713")
        assert not is_luhn_valid("79927398710")
        assert is_luhn_valid("4111111111111111")
        assert is_luhn_valid("378282246310005")
        assert not is_luhn_valid("")
        assert not is_luhn_valid("4111-1111")

    def test_visa_numbers(self):
        for _ in range(50):
            number = generate_card_number("visa")
            assert number.startswith("4")
            assert len(number) == 16
            assert is_luhn_valid(number)

    def test_mastercard_numbers(self):
        for _ in range(50):
            number = generate_card_number("mastercard")
            assert number[:2] in {"51", "52", "53", "54", "55"}
            assert len(number) == 16
            assert is_luhn_valid(number)

    def test_amex_numbers(self):
        for _ in range(50):
            number = generate_card_number("amex")
            assert number[:2] in {"34", "37"}
            assert len(number) == 15
            assert is_luhn_valid(number)

    def test_cvv_is_three_digits(self):
        for _ in range(100):
            cvv = generate_cvv()
            assert len(cvv) == 3
            assert 100 <= int(cvv) <= 999

    def test_expiration_is_end_of_month_three_years_out(self):
        issued = datetime(2024, 2, 29, 10, 30, tzinfo=timezone.utc)
        expiry = expiration_date(issued)
        assert (expiry.year, expiry.month, expiry.day) == (2027, 2, 28)
        assert (expiry.hour, expiry.minute, expiry.second) == (23, 59, 59)
        assert expiry.microsecond == 999000

        expiry = expiration_date(datetime(2025, 12, 3, tzinfo=timezone.utc))
        assert (expiry.year, expiry.month, expiry.day) == (2028, 12, 31)


class TestCardManager:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)
        self.journal = TransactionJournal(self.storage)
        self.ledger = AccountLedger(self.storage, self.audit_trail, self.journal)
        self.cards = CardManager(self.storage, self.ledger, self.audit_trail)
        self.account = self.ledger.create_account("alice", "courant")

    def test_issue_card(self):
        card = self.cards.issue("alice", self.account.id, "VISA", "1234")

        assert card.card_type == CardType.VISA
        assert card.status == CardStatus.INACTIVE
        assert card.daily_limit == Decimal("500.00")
        assert card.user_id == "alice"
        assert card.account_id == self.account.id
        assert is_luhn_valid(card.card_number)
        assert card.check_pin("1234")
        assert not card.check_pin("4321")
        assert card.expiration_date > datetime.now(timezone.utc)

    def test_public_representation_hides_pin(self):
        card = self.cards.issue("alice", self.account.id, "amex", "0000")
        public = card.to_public_dict()
        assert "pin_hash" not in public
        assert "0000" not in public.values()
        assert public["daily_limit"] == "500.00"
        assert public["status"] == "inactive"
        # Stored hash is not the raw pin
        assert self.storage.load("cards", card.id)["pin_hash"] != "0000"

    @pytest.mark.parametrize("pin", ["123", "12345", "12a4", "", None, " 1234", 123, 12345, -123, True, 12.34])
    def test_invalid_pin(self, pin):
        with pytest.raises(InvalidPin):
            self.cards.issue("alice", self.account.id, "visa", pin)
        assert self.storage.count("cards") == 0

    def test_numeric_pin(self):
        card = self.cards.issue("alice", self.account.id, "visa", 4821)
        assert card.check_pin("4821")

        leading_zero = self.cards.issue("alice", self.account.id, "visa", "0042")
        assert leading_zero.check_pin("0042")

    def test_invalid_card_type(self):
        with pytest.raises(InvalidCardType):
            self.cards.issue("alice", self.account.id, "discover", "1234")

    def test_issue_requires_owned_account(self):
        with pytest.raises(AccountNotFound):
            self.cards.issue("mallory", self.account.id, "visa", "1234")
        with pytest.raises(AccountNotFound):
            self.cards.issue("alice", "missing", "visa", "1234")
        assert self.storage.count("cards") == 0

    def test_issue_is_audited_without_secrets(self):
        card = self.cards.issue("alice", self.account.id, "mastercard", "9876")
        events = self.audit_trail.get_events_for_entity("card", card.id)
        assert events[0].event_type == AuditEventType.CARD_ISSUED
        assert events[0].metadata["last_digits"] == card.card_number[-4:]
        assert "9876" not in str(events[0].metadata)

    def test_status_transitions(self):
        card = self.cards.issue("alice", self.account.id, "visa", "1234")

        assert self.cards.set_status(card.id, "active", owner_id="alice").status == CardStatus.ACTIVE
        assert self.cards.set_status(card.id, "inactive", owner_id="alice").status == CardStatus.INACTIVE
        assert self.cards.set_status(card.id, "blocked", owner_id="alice").status == CardStatus.BLOCKED

        # Blocked is terminal
        with pytest.raises(CardBlocked):
            self.cards.set_status(card.id, "active", owner_id="alice")
        with pytest.raises(CardBlocked):
            self.cards.set_status(card.id, "inactive")
        assert self.cards.set_status(card.id, "blocked").status == CardStatus.BLOCKED
        assert self.cards.get_card(card.id).status == CardStatus.BLOCKED

    def test_invalid_status(self):
        card = self.cards.issue("alice", self.account.id, "visa", "1234")
        with pytest.raises(InvalidStatus):
            self.cards.set_status(card.id, "stolen", owner_id="alice")

    def test_owner_path_hides_foreign_cards(self):
        card = self.cards.issue("alice", self.account.id, "visa", "1234")

        with pytest.raises(NotFound):
            self.cards.set_status(card.id, "active", owner_id="bob")
        with pytest.raises(NotFound):
            self.cards.set_daily_limit(card.id, "10.00", owner_id="bob")
        with pytest.raises(NotFound):
            self.cards.delete_card(card.id, owner_id="bob")

        # Staff path acts on any card
        assert self.cards.set_status(card.id, "active", actor_id="employee").status == CardStatus.ACTIVE

    def test_daily_limit(self):
        card = self.cards.issue("alice", self.account.id, "visa", "1234")

        assert self.cards.set_daily_limit(card.id, "1200.50", owner_id="alice").daily_limit == Decimal("1200.50")
        assert self.cards.set_daily_limit(card.id, 0, owner_id="alice").daily_limit == Decimal("0.00")

        for limit in ["-1", "abc", None]:
            with pytest.raises(InvalidLimit):
                self.cards.set_daily_limit(card.id, limit, owner_id="alice")
        assert self.cards.get_card(card.id).daily_limit == Decimal("0.00")

    def test_listing_and_deletion(self):
        first = self.cards.issue("alice", self.account.id, "visa", "1234")
        second = self.cards.issue("alice", self.account.id, "amex", "1234")
        bob_account = self.ledger.create_account("bob", "courant")
        self.cards.issue("bob", bob_account.id, "visa", "1111")

        assert [c.id for c in self.cards.list_user_cards("alice")] == [second.id, first.id]
        assert len(self.cards.list_cards()) == 3

        self.cards.set_status(first.id, "blocked", owner_id="alice")
        self.cards.delete_card(first.id, owner_id="alice")
        assert [c.id for c in self.cards.list_user_cards("alice")] == [second.id]

        with pytest.raises(NotFound):
            self.cards.get_card(first.id)

    def test_configured_defaults(self):
        cards = CardManager(self.storage, self.ledger, self.audit_trail,
                            default_daily_limit="250", validity_years=5)
        card = cards.issue("alice", self.account.id, "visa", "1234")
        assert card.daily_limit == Decimal("250.00")
        assert card.expiration_date.year == card.created_at.year + 5
