"""User and session schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, UUID4


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(BaseModel):
    """Public view of a user record. Never includes the password hash."""
    id: UUID4
    name: str
    email: str
    email_verified: bool = False
    image: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    user_id: str
    email: str
    message: str


class SessionResponse(BaseModel):
    """The current session: the signed-in user and their active org, if any."""
    user: UserResponse
    active_organization_id: Optional[str] = None
