"""
Registration, login and session endpoints
"""

from fastapi import APIRouter, Depends, Response, status

from .deps import BankingSystem, get_auth_context, get_banking_system
from .schemas import LoginRequest, RegisterRequest
from ..auth import AuthContext
from ..errors import NotFound


router = APIRouter()


def _start_session(response: Response, system: BankingSystem, user) -> dict:
    token = system.token_service.issue(user)
    response.set_cookie(
        system.config.auth_cookie_name, token,
        httponly=True, max_age=system.config.jwt_expiry_minutes * 60
    )
    return {
        "success": True,
        "access_token": token,
        "token_type": "bearer",
        "user": user.to_public_dict()
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    response: Response,
    system: BankingSystem = Depends(get_banking_system)
):
    """Create a client with a default current account and log them in"""
    user = system.user_manager.register(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name
    )
    return _start_session(response, system, user)


@router.post("/login")
def login(
    request: LoginRequest,
    response: Response,
    system: BankingSystem = Depends(get_banking_system)
):
    user = system.user_manager.authenticate(request.email, request.password)
    return _start_session(response, system, user)


@router.post("/logout")
def logout(response: Response, system: BankingSystem = Depends(get_banking_system)):
    response.delete_cookie(system.config.auth_cookie_name)
    return {"success": True}


@router.get("/me")
def me(
    context: AuthContext = Depends(get_auth_context),
    system: BankingSystem = Depends(get_banking_system)
):
    user = system.user_manager.get_user(context.user_id)
    if not user:
        raise NotFound("User not found")
    return user.to_public_dict()
