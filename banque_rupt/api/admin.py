"""
Back-office endpoints (admin role)
"""

from fastapi import APIRouter, Depends, Query, Response, status

from .deps import BankingSystem, get_banking_system, require_admin
from .schemas import AmountRequest, account_to_response, entry_to_response
from ..auth import AuthContext
from ..errors import AccountNotFound, NotFound


router = APIRouter()


@router.get("/dashboard")
def dashboard(
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    return {
        "user_count": system.user_manager.count_users(),
        "account_count": system.storage.count(system.ledger.accounts_table)
    }


# ---- Users ----

@router.get("/users")
def list_users(
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    return [u.to_public_dict() for u in system.user_manager.list_users()]


@router.get("/users/{user_id}")
def get_user(
    user_id: str,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    """User profile with their accounts"""
    user = system.user_manager.get_user(user_id)
    if not user:
        raise NotFound("User not found")
    result = user.to_public_dict()
    result["accounts"] = [account_to_response(a) for a in system.ledger.get_user_accounts(user.id)]
    return result


@router.put("/users/{user_id}/promote")
def promote_user(
    user_id: str,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    return system.user_manager.promote(user_id, actor_id=context.user_id).to_public_dict()


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    system.user_manager.delete_user(user_id, actor_id=context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---- Accounts ----

@router.get("/accounts")
def list_accounts(
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    return [account_to_response(a) for a in system.ledger.list_accounts()]


@router.get("/accounts/{account_id}")
def get_account(
    account_id: str,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    account = system.ledger.get_account(account_id)
    if not account:
        raise AccountNotFound()
    return account_to_response(account)


@router.post("/accounts/{account_id}/credit")
def credit_account(
    account_id: str,
    request: AmountRequest,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    entry = system.adjustment_engine.credit(account_id, request.amount, actor_id=context.user_id)
    return {
        "account": account_to_response(system.ledger.get_account(account_id)),
        "transaction": entry_to_response(entry, system.ledger)
    }


@router.post("/accounts/{account_id}/debit")
def debit_account(
    account_id: str,
    request: AmountRequest,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    entry = system.adjustment_engine.debit(account_id, request.amount, actor_id=context.user_id)
    return {
        "account": account_to_response(system.ledger.get_account(account_id)),
        "transaction": entry_to_response(entry, system.ledger)
    }


@router.delete("/accounts/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: str,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    """Delete an account no transaction references"""
    system.ledger.admin_delete_account(account_id, actor_id=context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---- Transactions ----

@router.get("/transactions")
def list_transactions(
    offset: int = Query(0, ge=0),
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    entries = system.journal.list_all(limit=system.config.admin_transaction_limit, offset=offset)
    return [entry_to_response(e, system.ledger) for e in entries]


@router.post("/transactions/{transaction_id}/cancel")
def cancel_transaction(
    transaction_id: str,
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    reversal = system.adjustment_engine.cancel(transaction_id, actor_id=context.user_id)
    return {
        "cancelled": entry_to_response(system.journal.get_entry(transaction_id), system.ledger),
        "reversal": entry_to_response(reversal, system.ledger)
    }


# ---- Audit ----

@router.get("/audit/verify")
def verify_audit_trail(
    context: AuthContext = Depends(require_admin),
    system: BankingSystem = Depends(get_banking_system)
):
    return system.audit_trail.verify_integrity()
