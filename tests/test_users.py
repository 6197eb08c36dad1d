"""
Tests for users, credentials, roles and token identity
"""

import pytest
from datetime import datetime, timedelta, timezone

import jwt

from banque_rupt.storage import InMemoryStorage
from banque_rupt.audit import AuditTrail, AuditEventType
from banque_rupt.accounts import AccountLedger, AccountType
from banque_rupt.journal import TransactionJournal
from banque_rupt.users import UserManager, Role
from banque_rupt.auth import TokenService, AuthContext, authenticate_token, authorize
from banque_rupt.hashing import hash_secret, verify_secret
from banque_rupt.errors import (
    NotFound, EmailAlreadyUsed, InvalidCredentials, UserHasAccounts,
    Unauthenticated, Unauthorized
)


class TestHashing:

    def test_hash_and_verify(self):
        stored = hash_secret("hunter2")
        assert stored.startswith("scrypt$")
        assert "hunter2" not in stored
        assert verify_secret("hunter2", stored)
        assert not verify_secret("hunter3", stored)

    def test_salted(self):
        assert hash_secret("same") != hash_secret("same")

    def test_malformed_hash(self):
        assert not verify_secret("x", "not-a-hash")
        assert not verify_secret("x", "md5$salt$digest")


class TestUserManager:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)
        self.journal = TransactionJournal(self.storage)
        self.ledger = AccountLedger(self.storage, self.audit_trail, self.journal)
        self.users = UserManager(self.storage, self.ledger, self.audit_trail)

    def test_register_creates_client_with_default_account(self):
        user = self.users.register("Alice@Example.com ", "secret", "Alice", "Martin")

        assert user.email == "alice@example.com"
        assert user.role == Role.CLIENT
        assert user.password_hash != "secret"

        accounts = self.ledger.get_user_accounts(user.id)
        assert len(accounts) == 1
        assert accounts[0].account_type == AccountType.COURANT
        assert str(accounts[0].balance) == "0.00"

        events = self.audit_trail.get_events_for_entity("user", user.id)
        assert events[0].event_type == AuditEventType.USER_REGISTERED

    def test_public_representation_hides_password(self):
        user = self.users.register("alice@example.com", "secret", "Alice", "Martin")
        public = user.to_public_dict()
        assert "password_hash" not in public
        assert public["role"] == "client"

    def test_duplicate_email(self):
        self.users.register("alice@example.com", "secret", "Alice", "Martin")
        with pytest.raises(EmailAlreadyUsed):
            self.users.register("ALICE@example.com", "other", "A", "M")
        assert self.users.count_users() == 1
        assert self.storage.count("accounts") == 1

    def test_authenticate(self):
        user = self.users.register("alice@example.com", "secret", "Alice", "Martin")
        assert self.users.authenticate("alice@example.com", "secret").id == user.id

        with pytest.raises(InvalidCredentials) as wrong_password:
            self.users.authenticate("alice@example.com", "wrong")
        with pytest.raises(InvalidCredentials) as unknown_email:
            self.users.authenticate("nobody@example.com", "secret")
        assert wrong_password.value.message == unknown_email.value.message

        failures = self.audit_trail.get_events_by_type(AuditEventType.LOGIN_FAILED)
        assert [event.entity_id for event in failures] == [user.id]

    def test_unknown_email_leaves_no_audit_event(self):
        before = self.audit_trail.count_events()
        for attempt in range(3):
            with pytest.raises(InvalidCredentials):
                self.users.authenticate(f"attacker{attempt}@example.com", "guess")
        assert self.audit_trail.count_events() == before

    def test_promote(self):
        user = self.users.register("alice@example.com", "secret", "Alice", "Martin")
        promoted = self.users.promote(user.id, actor_id="root")
        assert promoted.role == Role.ADMIN
        assert self.users.get_user(user.id).role == Role.ADMIN

        with pytest.raises(NotFound):
            self.users.promote("missing")

    def test_delete_user_requires_no_accounts(self):
        user = self.users.register("alice@example.com", "secret", "Alice", "Martin")
        with pytest.raises(UserHasAccounts):
            self.users.delete_user(user.id)

        account = self.ledger.get_user_accounts(user.id)[0]
        self.ledger.delete_account(account.id, user.id)
        self.users.delete_user(user.id)
        assert self.users.get_user(user.id) is None

        with pytest.raises(NotFound):
            self.users.delete_user(user.id)

    def test_list_users_newest_first(self):
        first = self.users.register("a@example.com", "x", "A", "A")
        second = self.users.register("b@example.com", "x", "B", "B")
        assert [u.id for u in self.users.list_users()] == [second.id, first.id]

    def test_ensure_admin_is_idempotent(self):
        admin = self.users.ensure_admin("admin@banque.fr", "adminPassword123")
        again = self.users.ensure_admin("admin@banque.fr", "ignored")

        assert admin.role == Role.ADMIN
        assert again.id == admin.id
        assert self.users.count_users() == 1
        # Administrators get no default account
        assert self.ledger.get_user_accounts(admin.id) == []
        assert self.users.authenticate("admin@banque.fr", "adminPassword123").id == admin.id


class TestTokenIdentity:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)
        self.journal = TransactionJournal(self.storage)
        self.ledger = AccountLedger(self.storage, self.audit_trail, self.journal)
        self.users = UserManager(self.storage, self.ledger, self.audit_trail)
        self.tokens = TokenService("test-secret", expiry_minutes=5)
        self.user = self.users.register("alice@example.com", "secret", "Alice", "Martin")

    def test_token_round_trip(self):
        token = self.tokens.issue(self.user)
        context = authenticate_token(token, self.tokens, self.users)
        assert context == AuthContext(user_id=self.user.id, role=Role.CLIENT)

    def test_missing_or_garbage_token(self):
        with pytest.raises(Unauthenticated):
            authenticate_token(None, self.tokens, self.users)
        with pytest.raises(Unauthenticated):
            authenticate_token("garbage", self.tokens, self.users)

    def test_token_signed_with_other_secret(self):
        token = TokenService("other-secret").issue(self.user)
        with pytest.raises(Unauthenticated):
            authenticate_token(token, self.tokens, self.users)

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode({"sub": self.user.id, "iat": past, "exp": past + timedelta(minutes=1)},
                           "test-secret", algorithm="HS256")
        with pytest.raises(Unauthenticated) as exc_info:
            authenticate_token(token, self.tokens, self.users)
        assert exc_info.value.message == "Token expired"

    def test_token_for_deleted_user(self):
        token = self.tokens.issue(self.user)
        account = self.ledger.get_user_accounts(self.user.id)[0]
        self.ledger.delete_account(account.id, self.user.id)
        self.users.delete_user(self.user.id)
        with pytest.raises(Unauthenticated):
            authenticate_token(token, self.tokens, self.users)

    def test_role_read_from_storage(self):
        token = self.tokens.issue(self.user)
        self.users.promote(self.user.id)
        assert authenticate_token(token, self.tokens, self.users).role == Role.ADMIN

    def test_authorize(self):
        client = AuthContext(user_id="u", role=Role.CLIENT)
        employee = AuthContext(user_id="e", role=Role.EMPLOYEE)

        assert authorize(employee, [Role.EMPLOYEE, Role.ADMIN]) is employee
        with pytest.raises(Unauthorized):
            authorize(client, [Role.EMPLOYEE, Role.ADMIN])
        with pytest.raises(Unauthorized):
            authorize(employee, [Role.ADMIN])
