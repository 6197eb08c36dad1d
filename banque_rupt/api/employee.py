"""
Staff card management endpoints (employee and admin roles)
"""

from fastapi import APIRouter, Depends, Response, status

from .deps import BankingSystem, get_banking_system, require_staff
from .schemas import CardLimitRequest, CardStatusRequest
from ..auth import AuthContext


router = APIRouter()


@router.get("/cards")
def list_cards(
    context: AuthContext = Depends(require_staff),
    system: BankingSystem = Depends(get_banking_system)
):
    return [c.to_public_dict() for c in system.card_manager.list_cards()]


@router.get("/cards/{card_id}")
def get_card(
    card_id: str,
    context: AuthContext = Depends(require_staff),
    system: BankingSystem = Depends(get_banking_system)
):
    return system.card_manager.get_card(card_id).to_public_dict()


@router.patch("/cards/{card_id}/status")
def set_card_status(
    card_id: str,
    request: CardStatusRequest,
    context: AuthContext = Depends(require_staff),
    system: BankingSystem = Depends(get_banking_system)
):
    card = system.card_manager.set_status(card_id, request.status, actor_id=context.user_id)
    return card.to_public_dict()


@router.patch("/cards/{card_id}/limit")
def set_card_limit(
    card_id: str,
    request: CardLimitRequest,
    context: AuthContext = Depends(require_staff),
    system: BankingSystem = Depends(get_banking_system)
):
    card = system.card_manager.set_daily_limit(card_id, request.daily_limit, actor_id=context.user_id)
    return card.to_public_dict()


@router.delete("/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_card(
    card_id: str,
    context: AuthContext = Depends(require_staff),
    system: BankingSystem = Depends(get_banking_system)
):
    system.card_manager.delete_card(card_id, actor_id=context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
