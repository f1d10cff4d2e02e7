"""
Tenancy guard and entity access checks.

Every product, surface and feature operation goes through these functions:
they resolve the caller's memberships, refuse callers outside the target
organization, and only hand back rows whose ``organization_id`` matches.
Surfaces and features carry their own ``organization_id`` so they are
checked without loading the parent product.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.feature import Feature
from app.models.member import Member
from app.models.product import Product
from app.models.surface import Surface
from app.models.user import User
from app.services.memberships import get_membership, get_user_organizations
from vinci_shared.schemas.common import MANAGER_ROLES, Role

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Organization membership
# ---------------------------------------------------------------------------


async def require_org_access(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> None:
    """Raise 401 for anonymous callers and 403 for non-members of the org."""
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    result = await get_user_organizations(user, session)
    if not any(org.id == organization_id for org in result.organizations):
        log.info(
            "access.denied",
            user_id=str(user.id),
            organization_id=str(organization_id),
        )
        raise HTTPException(status_code=403, detail="Access denied to organization")


async def require_org_role(
    user: Optional[User],
    organization_id: uuid.UUID,
    session: AsyncSession,
    roles: Iterable[Role] = MANAGER_ROLES,
) -> Member:
    """Run the tenancy guard, then require one of ``roles``. Returns the membership."""
    await require_org_access(user, organization_id, session)
    member = await get_membership(organization_id, user.id, session)
    if member is None:
        raise HTTPException(status_code=403, detail="Access denied to organization")
    if Role(member.role) not in set(roles):
        raise HTTPException(status_code=403, detail="Insufficient organization role")
    return member


# ---------------------------------------------------------------------------
# Entity access
# ---------------------------------------------------------------------------


async def get_product_with_access(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> Optional[Product]:
    await require_org_access(user, organization_id, session)
    product = await session.get(Product, product_id)
    if not product or product.organization_id != organization_id:
        return None
    return product


async def require_product_access(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> Product:
    product = await get_product_with_access(user, product_id, organization_id, session)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def require_surface_access(
    user: Optional[User],
    surface_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> Surface:
    await require_org_access(user, organization_id, session)
    surface = await session.get(Surface, surface_id)
    if not surface or surface.organization_id != organization_id:
        raise HTTPException(status_code=404, detail="Surface not found")
    return surface


async def require_feature_access(
    user: Optional[User],
    feature_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> Feature:
    await require_org_access(user, organization_id, session)
    feature = await session.get(Feature, feature_id)
    if not feature or feature.organization_id != organization_id:
        raise HTTPException(status_code=404, detail="Feature not found")
    return feature
