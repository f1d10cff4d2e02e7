"""
Recipient-side invitation endpoints.

Only the user whose email the invitation was sent to can see or answer it.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import invitations as invitation_service
from vinci_shared.schemas.organizations import (
    InvitationDetail,
    InvitationResponse,
    MemberResponse,
)

router = APIRouter()


@router.get("/{invitationId}", response_model=InvitationDetail)
async def get_invitation(
    invitationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await invitation_service.get_invitation(user, invitationId, session)


@router.post("/{invitationId}/accept", response_model=MemberResponse)
async def accept_invitation(
    invitationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Join the inviting organization with the invited role."""
    member = await invitation_service.accept_invitation(user, invitationId, session)
    return MemberResponse(
        organization_id=member.organization_id,
        user_id=member.user_id,
        name=user.name,
        email=user.email,
        role=member.role,
        created_at=member.created_at,
    )


@router.post("/{invitationId}/reject", response_model=InvitationResponse)
async def reject_invitation(
    invitationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await invitation_service.reject_invitation(user, invitationId, session)
