"""
Authentication endpoints

- POST /register, POST /login, POST /refresh, POST /logout
- GET /user, PUT /user/profile, PUT /user/password

Tokens are stateless JWTs; logout is an acknowledgement and the client
discards its tokens.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel
from datetime import datetime

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_token
)
from app.core.logging_config import logger, set_user_id
from app.core.rate_limiter import rate_limit, LOGIN_LIMIT, REGISTER_LIMIT
from app.models.user import User, UserRole
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    LoginResponse,
    UserResponse,
    ProfileUpdate,
    PasswordChange,
)
from app.schemas.common import success_response
from app.modules.auth.dependencies import get_current_user


class RefreshTokenRequest(BaseModel):
    refresh_token: str


router = APIRouter(tags=["Authentication"])


def _issue_tokens(user: User) -> dict:
    token_data = {
        "sub": str(user.id),
        "email": user.email,
        "role": UserRole(user.role).value
    }
    return {
        "access_token": create_access_token(token_data),
        "refresh_token": create_refresh_token(token_data),
        "token_type": "bearer",
    }


async def _email_taken(db: AsyncSession, email: str, exclude_id: str = None) -> bool:
    query = select(User.id).where(User.email == email)
    if exclude_id:
        query = query.where(User.id != exclude_id)
    return (await db.execute(query)).first() is not None


@router.post("/register", status_code=status.HTTP_201_CREATED)
@rate_limit(REGISTER_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a citizen account (rate limited: 3/min)"""
    client_ip = request.client.host if request.client else "unknown"

    if await _email_taken(db, user_data.email):
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason="Email already registered",
            client_ip=client_ip
        )
        raise ValidationError.single("email", "The email has already been taken.")

    # Self-registration never grants admin
    user = User(
        name=user_data.name.strip(),
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        phone=user_data.phone,
        role=UserRole.USER,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user.email,
        client_ip=client_ip
    )

    return success_response(
        LoginResponse(user=UserResponse.model_validate(user), **_issue_tokens(user)),
        message="Registration successful"
    )


@router.post("/login")
@rate_limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login user (rate limited: 5/min)"""
    client_ip = request.client.host if request.client else "unknown"

    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise AuthenticationError("Account is inactive")

    user.last_login = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=UserRole(user.role).value
    )

    return success_response(
        LoginResponse(user=UserResponse.model_validate(user), **_issue_tokens(user)),
        message="Login successful"
    )


@router.post("/refresh")
async def refresh_token(
    token_request: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = decode_token(token_request.refresh_token)
    if payload.get("type") != "refresh":
        raise AuthenticationError("Invalid token type")

    user = await db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise AuthenticationError("User not found")

    logger.log_auth_event(event="refresh", success=True, user_email=user.email)
    return success_response(_issue_tokens(user))


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """Stateless logout"""
    logger.log_auth_event(event="logout", success=True, user_email=current_user.email)
    return success_response(message="Logged out successfully")


@router.get("/user")
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user info"""
    return success_response(UserResponse.model_validate(current_user))


@router.put("/user/profile")
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    changes = profile.model_dump(exclude_unset=True)

    if changes.get("email") and await _email_taken(db, changes["email"], exclude_id=current_user.id):
        raise ValidationError.single("email", "The email has already been taken.")

    for field, value in changes.items():
        if value is None and field in ("name", "email"):
            continue
        setattr(current_user, field, value.strip() if field == "name" else value)

    await db.commit()
    await db.refresh(current_user)
    return success_response(UserResponse.model_validate(current_user), message="Profile updated successfully")


@router.put("/user/password")
async def change_password(
    passwords: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not verify_password(passwords.current_password, current_user.hashed_password):
        logger.log_auth_event(
            event="password_change",
            success=False,
            user_email=current_user.email,
            reason="Wrong current password"
        )
        raise ValidationError.single("current_password", "The current password is incorrect.")

    current_user.hashed_password = get_password_hash(passwords.new_password)
    await db.commit()

    logger.log_auth_event(event="password_change", success=True, user_email=current_user.email)
    return success_response(message="Password updated successfully")
