"""
Error Taxonomy Module

Every failure the banking core can report is a BankingError carrying an
ErrorKind and a human-readable message. BankingError subclasses
ValueError so callers that only care about "the request was refused"
can keep catching ValueError.
"""

from enum import Enum


class ErrorKind(Enum):
    """Kinds of failure surfaced to callers"""
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_TYPE = "invalid_type"
    INVALID_PIN = "invalid_pin"
    INVALID_CARD_TYPE = "invalid_card_type"
    INVALID_STATUS = "invalid_status"
    INVALID_LIMIT = "invalid_limit"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_FUNDS_TO_REVERSE = "insufficient_funds_to_reverse"
    NON_ZERO_BALANCE = "non_zero_balance"
    HAS_TRANSACTIONS = "has_transactions"
    ALREADY_CANCELLED = "already_cancelled"
    NOT_CANCELLABLE = "not_cancellable"
    CARD_BLOCKED = "card_blocked"
    SAME_ACCOUNT = "same_account"
    BALANCE_LIMIT = "balance_limit"
    EMAIL_ALREADY_USED = "email_already_used"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_HAS_ACCOUNTS = "user_has_accounts"
    STORAGE_FAILURE = "storage_failure"


class BankingError(ValueError):
    """Base class for all structured banking failures"""
    kind: ErrorKind = ErrorKind.STORAGE_FAILURE
    default_message = "Operation failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "detail": self.message}


class Unauthenticated(BankingError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Authentication required"


class Unauthorized(BankingError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Insufficient permissions"


class NotFound(BankingError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class SourceNotFound(NotFound):
    default_message = "Source account not found"


class DestinationNotFound(NotFound):
    default_message = "Destination account not found"


class AccountNotFound(NotFound):
    default_message = "Account not found"


class InvalidAmount(BankingError):
    kind = ErrorKind.INVALID_AMOUNT
    default_message = "Amount must be a positive decimal"


class InvalidType(BankingError):
    kind = ErrorKind.INVALID_TYPE
    default_message = "Invalid account type"


class InvalidPin(BankingError):
    kind = ErrorKind.INVALID_PIN
    default_message = "PIN must contain exactly 4 digits"


class InvalidCardType(BankingError):
    kind = ErrorKind.INVALID_CARD_TYPE
    default_message = "Invalid card type"


class InvalidStatus(BankingError):
    kind = ErrorKind.INVALID_STATUS
    default_message = "Invalid card status"


class InvalidLimit(BankingError):
    kind = ErrorKind.INVALID_LIMIT
    default_message = "Daily limit must be a non-negative decimal"


class InsufficientFunds(BankingError):
    kind = ErrorKind.INSUFFICIENT_FUNDS
    default_message = "Insufficient funds"


class InsufficientFundsToReverse(BankingError):
    kind = ErrorKind.INSUFFICIENT_FUNDS_TO_REVERSE
    default_message = "Insufficient funds to reverse this transaction"


class NonZeroBalance(BankingError):
    kind = ErrorKind.NON_ZERO_BALANCE
    default_message = "Account balance is not zero"


class HasTransactions(BankingError):
    kind = ErrorKind.HAS_TRANSACTIONS
    default_message = "Account has transactions"


class AlreadyCancelled(BankingError):
    kind = ErrorKind.ALREADY_CANCELLED
    default_message = "Transaction already cancelled"


class NotCancellable(BankingError):
    kind = ErrorKind.NOT_CANCELLABLE
    default_message = "Transaction cannot be cancelled"


class CardBlocked(BankingError):
    kind = ErrorKind.CARD_BLOCKED
    default_message = "A blocked card cannot change status"


class SameAccount(BankingError):
    kind = ErrorKind.SAME_ACCOUNT
    default_message = "Source and destination accounts must differ"


class BalanceLimit(BankingError):
    kind = ErrorKind.BALANCE_LIMIT
    default_message = "Balance would exceed the maximum an account can hold"


class EmailAlreadyUsed(BankingError):
    kind = ErrorKind.EMAIL_ALREADY_USED
    default_message = "Email already used"


class InvalidCredentials(BankingError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class UserHasAccounts(BankingError):
    kind = ErrorKind.USER_HAS_ACCOUNTS
    default_message = "User still owns accounts"


class StorageFailure(BankingError):
    kind = ErrorKind.STORAGE_FAILURE
    default_message = "Storage failure"
