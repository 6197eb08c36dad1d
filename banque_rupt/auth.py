"""
Identity and role capabilities.

authenticate_token turns a bearer token into an AuthContext or raises
Unauthenticated; authorize checks the context's role or raises
Unauthorized. Transports compose the two ahead of each handler.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt

from .errors import Unauthenticated, Unauthorized
from .users import Role, User, UserManager


@dataclass(frozen=True)
class AuthContext:
    """Verified caller identity"""
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class TokenService:
    """Issues and decodes signed session tokens"""

    def __init__(self, secret: str, algorithm: str = "HS256", expiry_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.expiry_minutes = expiry_minutes

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "role": user.role.value,
            "iat": now,
            "exp": now + timedelta(minutes=self.expiry_minutes)
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> str:
        """User id carried by a valid token"""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Token expired")
        except jwt.InvalidTokenError:
            raise Unauthenticated("Invalid token")
        user_id = payload.get("sub")
        if not user_id:
            raise Unauthenticated("Invalid token")
        return user_id


def authenticate_token(token: Optional[str], tokens: TokenService, users: UserManager) -> AuthContext:
    """
    Resolve a token to the current state of its user.

    The role is read from storage, not from the token, so a promotion or
    deletion takes effect on the next request.
    """
    if not token:
        raise Unauthenticated()
    user = users.get_user(tokens.decode(token))
    if not user:
        raise Unauthenticated("Unknown user")
    return AuthContext(user_id=user.id, role=user.role)


def authorize(context: AuthContext, roles: Iterable[Role]) -> AuthContext:
    if context.role not in set(roles):
        raise Unauthorized()
    return context
