"""
Account endpoints for the signed-in user
"""

from fastapi import APIRouter, Depends, Response, status

from .deps import BankingSystem, get_auth_context, get_banking_system
from .schemas import CreateAccountRequest, account_to_response
from ..auth import AuthContext


router = APIRouter()


@router.get("")
def list_accounts(
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    """The caller's accounts, newest first"""
    return [account_to_response(a) for a in system.ledger.get_user_accounts(context.user_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_account(
    request: CreateAccountRequest,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    account = system.ledger.create_account(context.user_id, request.type)
    return account_to_response(account)


@router.get("/{account_id}")
def get_account(
    account_id: str,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    return account_to_response(system.ledger.get_owned_account(account_id, context.user_id))


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: str,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    """Close an account; its balance must be zero"""
    system.ledger.delete_account(account_id, context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
