"""
Bearer-token verification and ownership scoping.

Sellers sign in with the external identity provider, which issues the
JWTs. Here we only check the signature, resolve the ``sub`` claim to a
local ``User`` row and turn it into an ``OwnerScope``.
``create_access_token`` exists for scripts and tests that need a token
signed with the shared secret.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.core.config import settings
from shiptrack.core.database import get_db

security_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class OwnerScope:
    """Whose records a caller may see and change."""
    user_id: uuid.UUID
    is_admin: bool = False

    def own(self) -> "OwnerScope":
        """The caller's own records only, even for admins."""
        return OwnerScope(self.user_id)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(subject),
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)),
    }
    claims.update(additional_claims or {})
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry; any failure is a 401."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise _unauthorized("Could not validate credentials")


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme)
) -> uuid.UUID:
    if credentials is None:
        raise _unauthorized("Not authenticated")

    claims = decode_token(credentials.credentials)
    if claims.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise _unauthorized("Access token required")

    try:
        return uuid.UUID(str(claims["sub"]))
    except (KeyError, ValueError):
        raise _unauthorized("Token subject is not a user id")


async def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """The local account behind the token; unknown or disabled accounts are rejected."""
    # models import core.database, which this package re-exports
    from shiptrack.models.user import User

    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized("Unknown account")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return user


async def get_owner_scope(current_user=Depends(get_current_user)) -> OwnerScope:
    """Admins read and edit every seller's records; everyone else only their own."""
    return OwnerScope(user_id=current_user.id, is_admin=current_user.is_admin)
