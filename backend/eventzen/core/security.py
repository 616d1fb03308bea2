"""
Caller identity.

Tokens are issued by the external identity provider as HS256 JWTs. `sub`
(or `uid`) carries the provider's user id, with optional `email`,
`username` and `role` claims. The first authenticated request of a user
creates their `users` row, keyed by the provider id in `external_id`; the
`Principal` carries the internal `users.id` every other table references.

Requests without credentials resolve to the guest principal; routes that
need a real user depend on `require_user`.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.config import get_settings
from eventzen.core.exceptions import AuthenticationError, ForbiddenError
from eventzen.db.session import get_db
from eventzen.services.user_service import sync_user

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_GUEST = "guest"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    role: str = ROLE_USER
    email: Optional[str] = None
    username: Optional[str] = None


@dataclass(frozen=True)
class Principal:
    user_id: Optional[int]
    role: str = ROLE_USER

    @classmethod
    def guest(cls) -> "Principal":
        return cls(user_id=None, role=ROLE_GUEST)

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> TokenClaims:
    """Verify a token and return its claims. Raises AuthenticationError."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid authentication token")

    subject = payload.get("sub") or payload.get("uid")
    if not isinstance(subject, str) or not subject.strip():
        raise AuthenticationError("Invalid authentication token")

    role = payload.get("role") or ROLE_USER
    if role not in (ROLE_USER, ROLE_ADMIN):
        role = ROLE_USER
    return TokenClaims(
        subject=subject.strip(),
        role=role,
        email=payload.get("email"),
        username=payload.get("username") or payload.get("name"),
    )


async def resolve_principal(db: AsyncSession, token: str) -> Principal:
    """Verify a token and map it onto the caller's `users` row, creating it on first use."""
    claims = decode_token(token)
    user = await sync_user(db, claims)
    return Principal(user_id=user.id, role=claims.role)


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    if credentials is None:
        return Principal.guest()
    principal = await resolve_principal(db, credentials.credentials)
    structlog.contextvars.bind_contextvars(user_id=principal.user_id)
    return principal


async def require_user(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.is_guest:
        raise AuthenticationError("Not authenticated")
    return principal


async def require_admin(principal: Principal = Depends(require_user)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")
    return principal
