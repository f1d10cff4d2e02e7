"""
Product service layer: products and the surfaces and features they own.

Handles:
- Product CRUD, with a manual cascade to surfaces and features on removal
- Surface and feature CRUD scoped to a product
- organization_id inheritance from the verified parent product
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.feature import Feature
from app.models.product import Product
from app.models.surface import Surface
from app.models.user import User
from app.services.access import (
    get_product_with_access,
    require_feature_access,
    require_org_access,
    require_product_access,
    require_surface_access,
)
from vinci_shared.schemas.common import FeatureStatus
from vinci_shared.schemas.products import (
    FeatureCreate,
    FeatureRead,
    FeatureUpdate,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    ProductWithRelations,
    SurfaceCreate,
    SurfaceRead,
    SurfaceUpdate,
)

log = structlog.get_logger()


def _apply_patch(row, data: dict) -> None:
    for key, value in data.items():
        setattr(row, key, value)
    row.updated_at = datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


async def list_products(
    user: Optional[User], organization_id: uuid.UUID, session: AsyncSession
) -> list[Product]:
    await require_org_access(user, organization_id, session)
    result = await session.execute(
        select(Product)
        .where(Product.organization_id == organization_id)
        .order_by(Product.created_at)
    )
    return list(result.scalars().all())


async def get_product(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> Optional[Product]:
    """The product, or None if it does not exist in this organization."""
    return await get_product_with_access(user, product_id, organization_id, session)


async def get_product_with_relations(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> Optional[ProductWithRelations]:
    product = await get_product_with_access(user, product_id, organization_id, session)
    if not product:
        return None

    surfaces = await session.execute(
        select(Surface).where(Surface.product_id == product.id).order_by(Surface.created_at)
    )
    features = await session.execute(
        select(Feature).where(Feature.product_id == product.id).order_by(Feature.created_at)
    )
    return ProductWithRelations(
        **ProductRead.model_validate(product).model_dump(),
        surfaces=[SurfaceRead.model_validate(s) for s in surfaces.scalars().all()],
        features=[FeatureRead.model_validate(f) for f in features.scalars().all()],
    )


async def create_product(
    user: Optional[User],
    organization_id: uuid.UUID,
    product_in: ProductCreate,
    session: AsyncSession,
) -> Product:
    await require_org_access(user, organization_id, session)
    product = Product(
        organization_id=organization_id,
        name=product_in.name,
        description=product_in.description,
        criticality=product_in.criticality.value,
        owners=list(product_in.owners),
    )
    session.add(product)
    await session.flush()

    log.info("product.created", product_id=str(product.id), org_id=str(organization_id))
    return product


async def update_product(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    product_in: ProductUpdate,
    session: AsyncSession,
) -> Product:
    product = await require_product_access(user, product_id, organization_id, session)
    data = product_in.model_dump(mode="json", exclude_unset=True)
    _apply_patch(product, data)
    session.add(product)
    await session.flush()

    log.info("product.updated", product_id=str(product.id), fields=sorted(data))
    return product


async def remove_product(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    """Delete a product with all of its surfaces and features."""
    product = await require_product_access(user, product_id, organization_id, session)

    await session.execute(delete(Surface).where(Surface.product_id == product.id))
    await session.execute(delete(Feature).where(Feature.product_id == product.id))
    await session.delete(product)
    await session.flush()

    log.info("product.removed", product_id=str(product_id), org_id=str(organization_id))


# ---------------------------------------------------------------------------
# Surfaces
# ---------------------------------------------------------------------------


async def list_surfaces(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> list[Surface]:
    product = await require_product_access(user, product_id, organization_id, session)
    result = await session.execute(
        select(Surface).where(Surface.product_id == product.id).order_by(Surface.created_at)
    )
    return list(result.scalars().all())


async def create_surface(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    surface_in: SurfaceCreate,
    session: AsyncSession,
) -> Surface:
    product = await require_product_access(user, product_id, organization_id, session)
    environments = (
        surface_in.environments.model_dump(exclude_none=True)
        if surface_in.environments
        else {}
    )
    surface = Surface(
        product_id=product.id,
        organization_id=product.organization_id,
        name=surface_in.name,
        type=surface_in.type.value,
        location=surface_in.location,
        environments=environments,
        external_id=surface_in.external_id,
    )
    session.add(surface)
    await session.flush()

    log.info("surface.created", surface_id=str(surface.id), product_id=str(product.id))
    return surface


async def update_surface(
    user: Optional[User],
    surface_id: uuid.UUID,
    organization_id: uuid.UUID,
    surface_in: SurfaceUpdate,
    session: AsyncSession,
) -> Surface:
    surface = await require_surface_access(user, surface_id, organization_id, session)
    data = surface_in.model_dump(mode="json", exclude_unset=True)
    if "environments" in data:
        data["environments"] = {k: v for k, v in data["environments"].items() if v is not None}
    _apply_patch(surface, data)
    session.add(surface)
    await session.flush()

    log.info("surface.updated", surface_id=str(surface.id), fields=sorted(data))
    return surface


async def remove_surface(
    user: Optional[User],
    surface_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    surface = await require_surface_access(user, surface_id, organization_id, session)
    await session.delete(surface)
    await session.flush()
    log.info("surface.removed", surface_id=str(surface_id))


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------


async def list_features(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
    status: Optional[FeatureStatus] = None,
) -> list[Feature]:
    product = await require_product_access(user, product_id, organization_id, session)
    query = select(Feature).where(Feature.product_id == product.id)
    if status is not None:
        query = query.where(Feature.status == status.value)
    result = await session.execute(query.order_by(Feature.created_at))
    return list(result.scalars().all())


async def create_feature(
    user: Optional[User],
    product_id: uuid.UUID,
    organization_id: uuid.UUID,
    feature_in: FeatureCreate,
    session: AsyncSession,
) -> Feature:
    product = await require_product_access(user, product_id, organization_id, session)
    feature = Feature(
        product_id=product.id,
        organization_id=product.organization_id,
        title=feature_in.title,
        description=feature_in.description,
        acceptance_criteria=list(feature_in.acceptance_criteria),
        source=feature_in.source.value,
        source_key=feature_in.source_key,
        status=feature_in.status.value,
    )
    session.add(feature)
    await session.flush()

    log.info("feature.created", feature_id=str(feature.id), product_id=str(product.id))
    return feature


async def update_feature(
    user: Optional[User],
    feature_id: uuid.UUID,
    organization_id: uuid.UUID,
    feature_in: FeatureUpdate,
    session: AsyncSession,
) -> Feature:
    feature = await require_feature_access(user, feature_id, organization_id, session)
    data = feature_in.model_dump(mode="json", exclude_unset=True)
    _apply_patch(feature, data)
    session.add(feature)
    await session.flush()

    log.info("feature.updated", feature_id=str(feature.id), fields=sorted(data))
    return feature


async def remove_feature(
    user: Optional[User],
    feature_id: uuid.UUID,
    organization_id: uuid.UUID,
    session: AsyncSession,
) -> None:
    feature = await require_feature_access(user, feature_id, organization_id, session)
    await session.delete(feature)
    await session.flush()
    log.info("feature.removed", feature_id=str(feature_id))
