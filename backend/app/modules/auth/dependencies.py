from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
import uuid

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.logging_config import set_user_id
from app.core.security import decode_token
from app.models.user import User
from app.modules.auth.access import Requester, require_admin

# auto_error=False so a missing header becomes our 401 envelope, not FastAPI's 403
security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession) -> User:
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    try:
        uuid.UUID(user_id)
    except ValueError:
        raise AuthenticationError("Invalid user ID format")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if not credentials:
        raise AuthenticationError("Unauthenticated")

    user = await _user_from_token(credentials.credentials, db)

    # Logging context and per-user rate limit key
    set_user_id(str(user.id))
    request.state.user_id = str(user.id)
    return user


async def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Current user on public routes; bad or missing tokens mean anonymous"""
    if not credentials:
        return None
    try:
        user = await _user_from_token(credentials.credentials, db)
    except AuthenticationError:
        return None

    set_user_id(str(user.id))
    request.state.user_id = str(user.id)
    return user


async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Get current admin user"""
    if not current_user.is_admin:
        raise AuthorizationError()
    return current_user


async def get_requester(
    current_user: User = Depends(get_current_user)
) -> Requester:
    """Requester context for the access checks, resolved once per request"""
    return Requester.from_user(current_user)


async def get_admin_requester(
    requester: Requester = Depends(get_requester)
) -> Requester:
    require_admin(requester)
    return requester


async def get_optional_requester(
    current_user: Optional[User] = Depends(get_optional_current_user)
) -> Optional[Requester]:
    return Requester.from_user(current_user) if current_user else None
