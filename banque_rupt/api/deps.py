"""
Request dependencies: banking system lookup, identity and role checks
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..auth import AuthContext, authenticate_token, authorize
from ..system import BankingSystem
from ..users import Role

security = HTTPBearer(auto_error=False)


def get_banking_system(request: Request) -> BankingSystem:
    return request.app.state.system


def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: BankingSystem = Depends(get_banking_system)
) -> AuthContext:
    """Identity from the Authorization header, falling back to the session cookie"""
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(system.config.auth_cookie_name)
    return authenticate_token(token, system.token_service, system.user_manager)


def require_roles(*roles: Role):
    """Dependency factory for role checking"""
    def check(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
        return authorize(context, roles)
    return check


require_admin = require_roles(Role.ADMIN)
require_staff = require_roles(Role.EMPLOYEE, Role.ADMIN)
