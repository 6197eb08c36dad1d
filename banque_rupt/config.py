"""
Configuration Management Module

Centralized configuration using pydantic-settings. Every value can be
overridden with a BANQUE_RUPT_* environment variable or a .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class BanqueRuptConfig(BaseSettings):
    """Banque Rupt configuration"""

    # Database configuration
    database_url: str = "sqlite:///banque_rupt.db"  # memory:// for the in-memory backend
    database_lock_timeout: float = 5.0  # seconds to wait for the write lock

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Security configuration
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_minutes: int = 60
    auth_cookie_name: str = "token"

    # Logging configuration
    log_level: str = "INFO"

    # Business rules configuration
    account_number_prefix: str = "FR"
    account_number_digits: int = 16
    card_default_daily_limit: str = "500.00"
    card_validity_years: int = 3
    transaction_history_limit: int = 50
    admin_transaction_limit: int = 200

    # Administrator seeded at startup when both are set
    seed_admin_email: Optional[str] = None
    seed_admin_password: Optional[str] = None

    class Config:
        env_prefix = "BANQUE_RUPT_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = BanqueRuptConfig()


def get_config() -> BanqueRuptConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BanqueRuptConfig:
    """Reload configuration from environment"""
    global config
    config = BanqueRuptConfig()
    return config
