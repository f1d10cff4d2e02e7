"""
Organization resolver: which organizations does a user belong to?
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.member import Member
from app.models.organization import Organization
from app.models.user import User
from vinci_shared.schemas.organizations import OrganizationInfo


@dataclass
class UserOrganizations:
    user: Optional[User]
    organizations: list[OrganizationInfo] = field(default_factory=list)


async def get_user_organizations(
    user: Optional[User], session: AsyncSession
) -> UserOrganizations:
    """List the user's organizations via their membership rows.

    An anonymous caller has no organizations.
    """
    if user is None:
        return UserOrganizations(user=None, organizations=[])

    result = await session.execute(
        select(Organization)
        .join(Member, Member.organization_id == Organization.id)
        .where(Member.user_id == user.id)
        .order_by(Member.created_at)
    )
    organizations = [
        OrganizationInfo(id=org.id, name=org.name, slug=org.slug)
        for org in result.scalars().all()
    ]
    return UserOrganizations(user=user, organizations=organizations)


async def has_user_organizations(user: Optional[User], session: AsyncSession) -> bool:
    result = await get_user_organizations(user, session)
    return len(result.organizations) > 0


async def get_membership(
    organization_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> Optional[Member]:
    result = await session.execute(
        select(Member).where(
            Member.organization_id == organization_id, Member.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def count_memberships(user_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count()).select_from(Member).where(Member.user_id == user_id)
    )
    return result.scalar_one()


async def count_owners(organization_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Member)
        .where(Member.organization_id == organization_id, Member.role == "owner")
    )
    return result.scalar_one()
