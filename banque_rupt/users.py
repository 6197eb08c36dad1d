"""
User Management Module

Registration, credential checks and role changes. A newly registered
user is a client and receives one empty current account in the same
atomic unit as the user record.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from enum import Enum
import uuid

from .storage import StorageInterface, StorageRecord
from .audit import AuditTrail, AuditEventType
from .accounts import AccountLedger, AccountType
from .hashing import hash_secret, verify_secret
from .errors import NotFound, EmailAlreadyUsed, InvalidCredentials, UserHasAccounts
from .logging_config import get_logger, log_action


class Role(Enum):
    CLIENT = "client"
    EMPLOYEE = "employee"
    ADMIN = "admin"


@dataclass
class User(StorageRecord):
    email: str
    password_hash: str
    first_name: str
    last_name: str
    role: Role = Role.CLIENT

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['role'] = self.role.value
        return result

    def to_public_dict(self) -> Dict[str, Any]:
        result = self.to_dict()
        del result['password_hash']
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=data['id'],
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
            email=data['email'],
            password_hash=data['password_hash'],
            first_name=data.get('first_name', ""),
            last_name=data.get('last_name', ""),
            role=Role(data['role'])
        )


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserManager:
    """Users, credentials and roles"""

    def __init__(self, storage: StorageInterface, ledger: AccountLedger, audit_trail: AuditTrail):
        self.storage = storage
        self.ledger = ledger
        self.audit_trail = audit_trail
        self.users_table = "users"
        self.logger = get_logger("banque_rupt.users")

    def register(self, email: str, password: str, first_name: str, last_name: str) -> User:
        """
        Create a client user and its default current account

        Raises:
            EmailAlreadyUsed: another user has this email
        """
        email = normalize_email(email)
        password_hash = hash_secret(password)

        with self.storage.atomic():
            if self.get_user_by_email(email):
                raise EmailAlreadyUsed(f"Email already used: {email}")
            user = self._create_user(email, password_hash, first_name, last_name, Role.CLIENT)
            self.ledger.create_account(user.id, AccountType.COURANT)

        log_action(self.logger, "info", f"User {email} registered",
                   user_id=user.id, action="register")
        return user

    def _create_user(self, email: str, password_hash: str, first_name: str,
                     last_name: str, role: Role) -> User:
        now = datetime.now(timezone.utc)
        user = User(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role
        )
        self._save_user(user)
        self.audit_trail.log_event(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            metadata={"email": email, "role": role},
            user_id=user.id
        )
        return user

    def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials. Unknown email and wrong password are
        indistinguishable to the caller.
        """
        email = normalize_email(email)
        user = self.get_user_by_email(email)
        if not user:
            # Unknown emails are logged only; the chained trail is keyed by real users
            log_action(self.logger, "warning", "Failed login for unknown email", action="login_failed")
            raise InvalidCredentials()
        if not verify_secret(password, user.password_hash):
            self.audit_trail.log_event(
                event_type=AuditEventType.LOGIN_FAILED,
                entity_type="user",
                entity_id=user.id,
                metadata={"email": email}
            )
            log_action(self.logger, "warning", f"Failed login for {email}", action="login_failed",
                       user_id=user.id)
            raise InvalidCredentials()

        self.audit_trail.log_event(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id
        )
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        data = self.storage.load(self.users_table, user_id)
        if data:
            return User.from_dict(data)
        return None

    def get_user_by_email(self, email: str) -> Optional[User]:
        users = self.storage.find(self.users_table, {"email": normalize_email(email)})
        if users:
            return User.from_dict(users[0])
        return None

    def list_users(self) -> List[User]:
        users = [User.from_dict(data) for data in self.storage.load_all(self.users_table)]
        users.sort(key=lambda u: u.created_at)
        users.reverse()
        return users

    def count_users(self) -> int:
        return self.storage.count(self.users_table)

    def promote(self, user_id: str, actor_id: Optional[str] = None) -> User:
        """Grant the admin role"""
        with self.storage.atomic():
            user = self.get_user(user_id)
            if not user:
                raise NotFound("User not found")
            old_role = user.role
            user.role = Role.ADMIN
            user.updated_at = datetime.now(timezone.utc)
            self._save_user(user)
            self.audit_trail.log_event(
                event_type=AuditEventType.USER_PROMOTED,
                entity_type="user",
                entity_id=user.id,
                metadata={"old_role": old_role, "new_role": Role.ADMIN},
                user_id=actor_id
            )

        log_action(self.logger, "info", f"User {user.email} promoted to admin",
                   user_id=actor_id, action="promote_user")
        return user

    def delete_user(self, user_id: str, actor_id: Optional[str] = None) -> None:
        """
        Delete a user who owns no account.

        Raises:
            NotFound: no such user
            UserHasAccounts: accounts must be closed first
        """
        with self.storage.atomic():
            user = self.get_user(user_id)
            if not user:
                raise NotFound("User not found")
            if self.ledger.get_user_accounts(user.id):
                raise UserHasAccounts(f"User {user.email} still owns accounts")
            self.storage.delete(self.users_table, user.id)
            self.audit_trail.log_event(
                event_type=AuditEventType.USER_DELETED,
                entity_type="user",
                entity_id=user.id,
                metadata={"email": user.email},
                user_id=actor_id
            )

        log_action(self.logger, "info", f"User {user.email} deleted",
                   user_id=actor_id, action="delete_user")

    def ensure_admin(self, email: str, password: str, first_name: str = "Admin",
                     last_name: str = "System") -> User:
        """Create the administrator if no user has this email yet"""
        existing = self.get_user_by_email(email)
        if existing:
            return existing
        password_hash = hash_secret(password)
        with self.storage.atomic():
            user = self._create_user(normalize_email(email), password_hash,
                                     first_name, last_name, Role.ADMIN)
        log_action(self.logger, "info", f"Administrator {user.email} created",
                   action="seed_admin")
        return user

    def _save_user(self, user: User) -> None:
        self.storage.save(self.users_table, user.id, user.to_dict())
