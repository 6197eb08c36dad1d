"""
Composition root: wires every component onto one storage handle.
"""

from typing import Optional

from .storage import StorageInterface, create_storage
from .audit import AuditTrail
from .accounts import AccountLedger
from .journal import TransactionJournal
from .transfers import TransferEngine
from .adjustments import AdminAdjustmentEngine
from .cards import CardManager
from .users import UserManager
from .auth import TokenService
from .config import BanqueRuptConfig, get_config


class BankingSystem:
    """Banking core with all components initialized"""

    def __init__(self, storage: StorageInterface, config: Optional[BanqueRuptConfig] = None):
        self.config = config or get_config()
        self.storage = storage

        self.audit_trail = AuditTrail(self.storage)
        self.journal = TransactionJournal(self.storage)
        self.ledger = AccountLedger(
            self.storage, self.audit_trail, self.journal,
            number_prefix=self.config.account_number_prefix,
            number_digits=self.config.account_number_digits
        )
        self.transfer_engine = TransferEngine(self.storage, self.ledger, self.journal, self.audit_trail)
        self.adjustment_engine = AdminAdjustmentEngine(
            self.storage, self.ledger, self.journal, self.audit_trail
        )
        self.card_manager = CardManager(
            self.storage, self.ledger, self.audit_trail,
            default_daily_limit=self.config.card_default_daily_limit,
            validity_years=self.config.card_validity_years
        )
        self.user_manager = UserManager(self.storage, self.ledger, self.audit_trail)
        self.token_service = TokenService(
            self.config.jwt_secret,
            algorithm=self.config.jwt_algorithm,
            expiry_minutes=self.config.jwt_expiry_minutes
        )

    @classmethod
    def from_config(cls, config: Optional[BanqueRuptConfig] = None) -> 'BankingSystem':
        config = config or get_config()
        storage = create_storage(config.database_url, lock_timeout=config.database_lock_timeout)
        return cls(storage, config)

    def seed_admin(self) -> None:
        """Create the configured administrator when credentials are set"""
        if self.config.seed_admin_email and self.config.seed_admin_password:
            self.user_manager.ensure_admin(self.config.seed_admin_email, self.config.seed_admin_password)

    def close(self) -> None:
        self.storage.close()
