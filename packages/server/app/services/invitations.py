"""
Invitation service: invite an email address into an organization.

Delivery is a structured log line carrying the invite link; whatever
ships logs to a mailer picks it up from there.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.models.base import as_utc
from app.models.invitation import Invitation
from app.models.member import Member
from app.models.organization import Organization
from app.models.user import User
from app.services.access import require_org_access, require_org_role
from vinci_shared.schemas.common import InvitationStatus
from vinci_shared.schemas.organizations import InvitationCreateRequest

log = structlog.get_logger()
settings = get_settings()


def invite_link(invitation_id: uuid.UUID) -> str:
    return f"{settings.site_url.rstrip('/')}/invite/{invitation_id}"


async def create_invitation(
    user: Optional[User],
    organization_id: uuid.UUID,
    req: InvitationCreateRequest,
    session: AsyncSession,
) -> Invitation:
    """Invite an email address. A pending invite for the same address is replaced."""
    await require_org_role(user, organization_id, session)
    email = req.email.lower()

    existing_member = await session.execute(
        select(Member)
        .join(User, User.id == Member.user_id)
        .where(Member.organization_id == organization_id, func.lower(User.email) == email)
    )
    if existing_member.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="User is already a member of this organization")

    pending = await session.execute(
        select(Invitation).where(
            Invitation.organization_id == organization_id,
            Invitation.email == email,
            Invitation.status == InvitationStatus.PENDING.value,
        )
    )
    for stale in pending.scalars().all():
        stale.status = InvitationStatus.CANCELED.value
        session.add(stale)

    invitation = Invitation(
        organization_id=organization_id,
        email=email,
        role=req.role.value,
        status=InvitationStatus.PENDING.value,
        inviter_id=user.id,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.invitation_expire_hours),
    )
    session.add(invitation)
    await session.flush()

    log.info(
        "invitation.email_requested",
        invitation_id=str(invitation.id),
        org_id=str(organization_id),
        email=email,
        inviter=user.email,
        invite_link=invite_link(invitation.id),
    )
    return invitation


async def list_invitations(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> list[Invitation]:
    await require_org_access(user, organization_id, session)
    result = await session.execute(
        select(Invitation)
        .where(Invitation.organization_id == organization_id)
        .order_by(Invitation.created_at.desc())
    )
    return list(result.scalars().all())


async def cancel_invitation(
    user: Optional[User],
    organization_id: uuid.UUID,
    invitation_id: uuid.UUID,
    session: AsyncSession,
) -> Invitation:
    await require_org_role(user, organization_id, session)
    invitation = await session.get(Invitation, invitation_id)
    if not invitation or invitation.organization_id != organization_id:
        raise HTTPException(status_code=404, detail="Invitation not found")
    if invitation.status != InvitationStatus.PENDING.value:
        raise HTTPException(status_code=409, detail="Invitation is no longer pending")

    invitation.status = InvitationStatus.CANCELED.value
    session.add(invitation)
    await session.flush()
    log.info("invitation.canceled", invitation_id=str(invitation_id))
    return invitation


# ---------------------------------------------------------------------------
# Recipient side
# ---------------------------------------------------------------------------


async def get_invitation(
    user: Optional[User], invitation_id: uuid.UUID, session: AsyncSession
) -> dict:
    """Invitation details for its recipient, with org and inviter info."""
    invitation = await _get_recipient_invitation(user, invitation_id, session)
    org = await session.get(Organization, invitation.organization_id)
    inviter = await session.get(User, invitation.inviter_id)
    return {
        **_invitation_info(invitation),
        "organization_name": org.name,
        "organization_slug": org.slug,
        "inviter_email": inviter.email if inviter else None,
    }


async def accept_invitation(
    user: Optional[User], invitation_id: uuid.UUID, session: AsyncSession
) -> Member:
    invitation = await _get_recipient_invitation(user, invitation_id, session)
    _require_open(invitation)

    existing = await session.get(Member, (invitation.organization_id, user.id))
    if existing:
        raise HTTPException(status_code=409, detail="Already a member of this organization")

    member = Member(
        organization_id=invitation.organization_id,
        user_id=user.id,
        role=invitation.role,
    )
    session.add(member)
    invitation.status = InvitationStatus.ACCEPTED.value
    session.add(invitation)
    await session.flush()

    log.info(
        "invitation.accepted",
        invitation_id=str(invitation_id),
        org_id=str(invitation.organization_id),
        user_id=str(user.id),
    )
    return member


async def reject_invitation(
    user: Optional[User], invitation_id: uuid.UUID, session: AsyncSession
) -> Invitation:
    invitation = await _get_recipient_invitation(user, invitation_id, session)
    _require_open(invitation)

    invitation.status = InvitationStatus.REJECTED.value
    session.add(invitation)
    await session.flush()
    log.info("invitation.rejected", invitation_id=str(invitation_id), user_id=str(user.id))
    return invitation


async def expire_stale_invitations(session: AsyncSession) -> int:
    """Mark pending invitations past their expiry as expired. Returns the count."""
    result = await session.execute(
        update(Invitation)
        .where(
            Invitation.status == InvitationStatus.PENDING.value,
            Invitation.expires_at <= datetime.now(timezone.utc),
        )
        .values(status=InvitationStatus.EXPIRED.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _get_recipient_invitation(
    user: Optional[User], invitation_id: uuid.UUID, session: AsyncSession
) -> Invitation:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    invitation = await session.get(Invitation, invitation_id)
    # Someone else's invitation looks exactly like a missing one
    if not invitation or invitation.email != user.email.lower():
        raise HTTPException(status_code=404, detail="Invitation not found")
    return invitation


def _require_open(invitation: Invitation) -> None:
    if invitation.status == InvitationStatus.EXPIRED.value:
        raise HTTPException(status_code=410, detail="Invitation has expired")
    if invitation.status != InvitationStatus.PENDING.value:
        raise HTTPException(
            status_code=409, detail=f"Invitation is {invitation.status}"
        )
    if as_utc(invitation.expires_at) <= datetime.now(timezone.utc):
        raise HTTPException(status_code=410, detail="Invitation has expired")


def _invitation_info(invitation: Invitation) -> dict:
    return {
        "id": invitation.id,
        "organization_id": invitation.organization_id,
        "email": invitation.email,
        "role": invitation.role,
        "status": invitation.status,
        "inviter_id": invitation.inviter_id,
        "expires_at": invitation.expires_at,
        "created_at": invitation.created_at,
    }
