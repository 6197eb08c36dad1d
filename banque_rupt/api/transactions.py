"""
Transaction history and transfer endpoints
"""

from fastapi import APIRouter, Depends, Query, status

from .deps import BankingSystem, get_auth_context, get_banking_system
from .schemas import TransferRequest, entry_to_response
from ..auth import AuthContext
from ..transfers import DEFAULT_DESCRIPTION


router = APIRouter()


@router.get("")
def list_transactions(
    offset: int = Query(0, ge=0),
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    """Latest transactions touching any of the caller's accounts"""
    entries = system.journal.list_for_user(
        context.user_id,
        limit=system.config.transaction_history_limit,
        offset=offset
    )
    return [entry_to_response(e, system.ledger) for e in entries]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_transfer(
    request: TransferRequest,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    entry = system.transfer_engine.transfer(
        user_id=context.user_id,
        from_account_number=request.from_account,
        to_account_number=request.to_account,
        amount=request.amount,
        description=request.description or DEFAULT_DESCRIPTION
    )
    return entry_to_response(entry, system.ledger)
