"""
Authentication endpoints.

- Email/password registration and login
- JWT session management (logout, current session)
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import (
    clear_session_cookies,
    create_jwt,
    get_current_user,
    get_session_claims,
    hash_password,
    set_session_cookies,
    verify_password,
)
from app.core.database import get_session
from app.core.redis import revoke_jwt
from app.models.member import Member
from app.models.user import User
from vinci_shared.schemas.users import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SessionResponse,
    UserResponse,
)

log = structlog.get_logger()
router = APIRouter()

MIN_PASSWORD_LENGTH = 8


# ---------------------------------------------------------------------------
# Email/Password Registration
# ---------------------------------------------------------------------------

@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user with email/password. The user starts with no organizations."""
    email = body.email.lower()

    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    result = await session.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        name=body.name,
        email=email,
        password_hash=hash_password(body.password),
    )
    session.add(user)
    await session.flush()

    token, _jti = create_jwt(user.id)
    set_session_cookies(response, token)

    log.info("user.registered", user_id=str(user.id), email=email)
    return AuthResponse(
        user_id=str(user.id),
        email=email,
        message="Registration successful",
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    email = body.email.lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        log.warning("auth.login_failure", email=email, reason="unknown_user")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(body.password, user.password_hash):
        log.warning("auth.login_failure", email=email, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    # First membership becomes the active org, if there is one
    result = await session.execute(
        select(Member.organization_id)
        .where(Member.user_id == user.id)
        .order_by(Member.created_at)
        .limit(1)
    )
    active_org = result.scalar_one_or_none()

    token, _jti = create_jwt(user.id, active_org=active_org)
    set_session_cookies(response, token)

    log.info("auth.login_success", user_id=str(user.id), email=email)
    return AuthResponse(
        user_id=str(user.id),
        email=email,
        message="Login successful",
    )


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------

@router.post("/logout")
async def logout(request: Request, response: Response):
    """Invalidate the current session."""
    claims = await get_session_claims(request)
    if claims and claims.get("jti"):
        await revoke_jwt(claims["jti"])
        log.info("auth.logout", user_id=claims.get("sub"))

    clear_session_cookies(response)
    return {"message": "Logged out"}


@router.get("/me", response_model=Optional[SessionResponse])
async def me(
    request: Request,
    user: Optional[User] = Depends(get_current_user),
):
    """The signed-in user and active org, or null without a session."""
    if user is None:
        return None
    claims = await get_session_claims(request)
    return SessionResponse(
        user=UserResponse.model_validate(user),
        active_organization_id=claims.get("active_org") if claims else None,
    )
