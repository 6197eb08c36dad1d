"""
Card endpoints for the signed-in user
"""

from fastapi import APIRouter, Depends, Response, status

from .deps import BankingSystem, get_auth_context, get_banking_system
from .schemas import CardLimitRequest, CardStatusRequest, IssueCardRequest
from ..auth import AuthContext


router = APIRouter()


@router.get("")
def list_cards(
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    return [c.to_public_dict() for c in system.card_manager.list_user_cards(context.user_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def issue_card(
    request: IssueCardRequest,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    """Issue an inactive card on one of the caller's accounts"""
    card = system.card_manager.issue(
        owner_id=context.user_id,
        account_id=request.account_id,
        card_type=request.card_type,
        pin=request.pin
    )
    return card.to_public_dict()


@router.patch("/{card_id}/status")
def set_card_status(
    card_id: str,
    request: CardStatusRequest,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    card = system.card_manager.set_status(card_id, request.status, owner_id=context.user_id)
    return card.to_public_dict()


@router.patch("/{card_id}/limit")
def set_card_limit(
    card_id: str,
    request: CardLimitRequest,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    card = system.card_manager.set_daily_limit(card_id, request.daily_limit, owner_id=context.user_id)
    return card.to_public_dict()


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_card(
    card_id: str,
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    system.card_manager.delete_card(card_id, owner_id=context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
