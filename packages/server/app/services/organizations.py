"""
Organization service: org CRUD and membership management.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.models.feature import Feature
from app.models.invitation import Invitation
from app.models.member import Member
from app.models.organization import Organization
from app.models.product import Product
from app.models.surface import Surface
from app.models.user import User
from app.services.access import require_org_access, require_org_role
from app.services.memberships import count_memberships, count_owners, get_membership
from vinci_shared.schemas.common import Role
from vinci_shared.schemas.organizations import OrgCreateRequest, OrgUpdateRequest

log = structlog.get_logger()
settings = get_settings()


def _deep_merge(base: dict, patch: dict) -> dict:
    """JSON Merge Patch style deep merge; a None value removes the key."""
    result = base.copy()
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


async def create_org(
    req: OrgCreateRequest, user: Optional[User], session: AsyncSession
) -> Organization:
    """Create an org and make the creator its owner."""
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    limit = settings.max_organizations_per_user
    if await count_memberships(user.id, session) >= limit:
        raise HTTPException(
            status_code=403,
            detail=f"You have reached the maximum number of organizations ({limit})",
        )

    existing = await session.execute(
        select(Organization).where(Organization.slug == req.slug)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Org slug already taken")

    org = Organization(name=req.name, slug=req.slug, logo=req.logo, settings={})
    session.add(org)
    await session.flush()

    session.add(Member(organization_id=org.id, user_id=user.id, role=Role.OWNER.value))
    await session.flush()

    log.info("org.created", org_id=str(org.id), slug=req.slug, creator=str(user.id))
    return org


async def get_org(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> Organization:
    """Get an org the caller belongs to."""
    await require_org_access(user, organization_id, session)
    return await _get_org_or_404(organization_id, session)


async def set_active_organization(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> Organization:
    """Check the caller may switch to this org. The caller reissues the session."""
    org = await get_org(user, organization_id, session)
    log.info("org.activated", org_id=str(org.id), user_id=str(user.id))
    return org


async def update_org(
    user: Optional[User],
    organization_id: uuid.UUID,
    req: OrgUpdateRequest,
    session: AsyncSession,
) -> Organization:
    """Update org name, logo and/or settings (deep merge). Owner or admin."""
    await require_org_role(user, organization_id, session)
    org = await _get_org_or_404(organization_id, session)

    update_data = req.model_dump(exclude_unset=True)
    if update_data.get("name") is not None:
        org.name = update_data["name"]
    if "logo" in update_data:
        org.logo = update_data["logo"]
    if update_data.get("settings") is not None:
        org.settings = _deep_merge(org.settings or {}, update_data["settings"])

    org.updated_at = datetime.now(timezone.utc)
    session.add(org)
    await session.flush()

    log.info("org.updated", org_id=str(org.id), fields=sorted(update_data))
    return org


async def delete_org(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> None:
    """Delete an org and everything it owns. Owner only."""
    await require_org_role(user, organization_id, session, roles=[Role.OWNER])
    org = await _get_org_or_404(organization_id, session)

    # Children before parents; nothing here relies on ON DELETE CASCADE
    for model in (Feature, Surface, Product, Invitation, Member):
        await session.execute(
            delete(model).where(model.organization_id == organization_id)
        )
    await session.delete(org)
    await session.flush()

    log.info("org.deleted", org_id=str(organization_id), by=str(user.id))


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


async def list_members(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """List all members of the org with their user info."""
    await require_org_access(user, organization_id, session)
    result = await session.execute(
        select(Member, User)
        .join(User, User.id == Member.user_id)
        .where(Member.organization_id == organization_id)
        .order_by(Member.created_at)
    )
    return [_member_info(member, member_user) for member, member_user in result.all()]


async def update_member_role(
    user: Optional[User],
    organization_id: uuid.UUID,
    member_user_id: uuid.UUID,
    role: Role,
    session: AsyncSession,
) -> dict:
    """Change a member's role. Only owners may grant or revoke ownership."""
    caller = await require_org_role(user, organization_id, session)
    member = await _get_member_or_404(organization_id, member_user_id, session)

    touches_owner = role == Role.OWNER or member.role == Role.OWNER.value
    if touches_owner and caller.role != Role.OWNER.value:
        raise HTTPException(status_code=403, detail="Only owners can change ownership")
    if (
        member.role == Role.OWNER.value
        and role != Role.OWNER
        and await count_owners(organization_id, session) <= 1
    ):
        raise HTTPException(status_code=409, detail="Organization must keep at least one owner")

    member.role = role.value
    session.add(member)
    await session.flush()

    log.info(
        "org.member_role_changed",
        org_id=str(organization_id),
        user_id=str(member_user_id),
        role=role.value,
    )
    member_user = await session.get(User, member_user_id)
    return _member_info(member, member_user)


async def remove_member(
    user: Optional[User],
    organization_id: uuid.UUID,
    member_user_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    """Remove a member from the org. Immediately revokes access."""
    caller = await require_org_role(user, organization_id, session)
    member = await _get_member_or_404(organization_id, member_user_id, session)

    if member.role == Role.OWNER.value:
        if caller.role != Role.OWNER.value:
            raise HTTPException(status_code=403, detail="Only owners can remove an owner")
        if await count_owners(organization_id, session) <= 1:
            raise HTTPException(
                status_code=409, detail="Organization must keep at least one owner"
            )

    await session.delete(member)
    await session.flush()
    log.info("org.member_removed", org_id=str(organization_id), user_id=str(member_user_id))


async def leave_org(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> None:
    """Remove the caller's own membership."""
    await require_org_access(user, organization_id, session)
    member = await _get_member_or_404(organization_id, user.id, session)

    if member.role == Role.OWNER.value and await count_owners(organization_id, session) <= 1:
        raise HTTPException(
            status_code=409,
            detail="The last owner cannot leave; transfer ownership or delete the organization",
        )

    await session.delete(member)
    await session.flush()
    log.info("org.member_left", org_id=str(organization_id), user_id=str(user.id))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _get_org_or_404(organization_id: uuid.UUID, session: AsyncSession) -> Organization:
    org = await session.get(Organization, organization_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


async def _get_member_or_404(
    organization_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> Member:
    member = await get_membership(organization_id, user_id, session)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


def _member_info(member: Member, user: User) -> dict:
    return {
        "organization_id": member.organization_id,
        "user_id": member.user_id,
        "name": user.name,
        "email": user.email,
        "role": member.role,
        "created_at": member.created_at,
    }
