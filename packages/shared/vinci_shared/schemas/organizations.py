"""
Organization-related Pydantic schemas.

Covers: org CRUD request/response, membership, and invitations.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import InvitationStatus, Role


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

class OrganizationInfo(BaseModel):
    """Summary of an organization the caller belongs to."""

    id: uuid.UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}


class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    slug: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$",
        description="URL-safe org identifier",
    )
    logo: Optional[str] = None


class OrgUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    logo: Optional[str] = None
    settings: Optional[dict] = Field(
        None,
        description="Partial settings update (deep-merged via JSON Merge Patch)",
    )


class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    logo: Optional[str] = None
    settings: dict = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ActiveOrganizationResponse(BaseModel):
    active_organization_id: uuid.UUID
    message: str
    # Reissued token, returned only to Authorization-header clients
    token: Optional[str] = None


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class MemberResponse(BaseModel):
    organization_id: uuid.UUID
    user_id: uuid.UUID
    name: str
    email: str
    role: Role
    created_at: datetime


class MemberRoleUpdate(BaseModel):
    role: Role


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

class InvitationCreateRequest(BaseModel):
    email: EmailStr
    role: Role = Role.MEMBER

    @field_validator("role")
    @classmethod
    def no_owner_invites(cls, value: Role) -> Role:
        if value == Role.OWNER:
            raise ValueError("Invitations cannot grant the owner role")
        return value


class InvitationResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    email: str
    role: Role
    status: InvitationStatus
    inviter_id: uuid.UUID
    expires_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class InvitationDetail(InvitationResponse):
    """Invitation as shown to its recipient, with the org it grants access to."""

    organization_name: str
    organization_slug: str
    inviter_email: Optional[str] = None
