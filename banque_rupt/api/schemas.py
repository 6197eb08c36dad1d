"""
Pydantic schemas for API requests, and response serializers
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ..accounts import Account, AccountLedger
from ..journal import JournalEntry
from ..money import format_amount


# Auth schemas
class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    first_name: str = ""
    last_name: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


# Account schemas
class CreateAccountRequest(BaseModel):
    type: str = Field(..., description="courant, epargne or entreprise")


# Amounts are left untyped so the banking core decides what is a valid amount
class AmountRequest(BaseModel):
    amount: Any = None


class TransferRequest(BaseModel):
    from_account: str = Field(..., description="Source account number")
    to_account: str = Field(..., description="Destination account number")
    amount: Any = None
    description: Optional[str] = None


# Card schemas
class IssueCardRequest(BaseModel):
    account_id: str
    card_type: str
    pin: Any = None


class CardStatusRequest(BaseModel):
    status: str


class CardLimitRequest(BaseModel):
    daily_limit: Any = None


def account_to_response(account: Account) -> Dict[str, Any]:
    return {
        "id": account.id,
        "user_id": account.user_id,
        "account_number": account.account_number,
        "type": account.account_type.value,
        "balance": format_amount(account.balance),
        "created_at": account.created_at.isoformat()
    }


def entry_to_response(entry: JournalEntry, ledger: AccountLedger) -> Dict[str, Any]:
    """Journal entry with the account numbers it touches resolved"""
    def number(account_id):
        if not account_id:
            return None
        account = ledger.get_account(account_id)
        return account.account_number if account else None

    return {
        "id": entry.id,
        "type": entry.transaction_type.value,
        "amount": format_amount(entry.amount),
        "from_account": entry.from_account,
        "to_account": entry.to_account,
        "from_account_number": number(entry.from_account),
        "to_account_number": number(entry.to_account),
        "description": entry.description,
        "status": entry.status.value,
        "created_at": entry.created_at.isoformat()
    }
