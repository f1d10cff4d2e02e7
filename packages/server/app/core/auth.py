"""
Authentication for Vinci.

Password hashing and session tokens are delegated to bcrypt and PyJWT; this
module only wires them to requests:
- Password hashing (bcrypt)
- JWT session tokens with a Redis revocation list
- Identity resolution: request -> User | None
- FastAPI dependencies for the current user
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.redis import is_jwt_revoked
from app.models.user import User

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "vinci_session"
CSRF_COOKIE = "vinci_csrf"
CSRF_HEADER = "X-CSRF-Token"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(
        password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    *,
    active_org: Optional[uuid.UUID] = None,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "active_org": str(active_org) if active_org else None,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


def set_session_cookies(response: Response, token: str) -> None:
    """Set the session JWT cookie and a fresh CSRF cookie on a response."""
    max_age = settings.jwt_expire_minutes * 60
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=max_age,
    )
    response.set_cookie(
        key=CSRF_COOKIE,
        value=generate_csrf_token(),
        httponly=False,  # JS must read this
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
        max_age=max_age,
    )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------

def get_bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


def get_session_token(request: Request) -> Optional[str]:
    """Read the session token from the Bearer header, falling back to the cookie."""
    return get_bearer_token(request) or request.cookies.get(SESSION_COOKIE)


async def get_session_claims(request: Request) -> Optional[dict]:
    """Decoded, unrevoked claims of the request's session token, or None."""
    token = get_session_token(request)
    if not token:
        return None
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        log.debug("auth.invalid_token")
        return None

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        log.debug("auth.revoked_token", jti=jti)
        return None
    return payload


async def get_authenticated_user(
    request: Request, session: AsyncSession
) -> Optional[User]:
    """Resolve the caller to a User, or None if there is no valid session."""
    payload = await get_session_claims(request)
    if payload is None:
        return None

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return await session.get(User, user_id)


def is_authenticated(user: Optional[User]) -> bool:
    return user is not None


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> Optional[User]:
    """Current user or None. Authorization is left to the service layer."""
    user = await get_authenticated_user(request, session)
    request.state.user = user
    if is_authenticated(user):
        structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user

