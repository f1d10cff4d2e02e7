"""
Product endpoints, plus the surface and feature collections nested under a product.

Any member of the organization may read and write its products.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import products as product_service
from vinci_shared.schemas.common import FeatureStatus
from vinci_shared.schemas.products import (
    FeatureCreate,
    FeatureRead,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    ProductWithRelations,
    SurfaceCreate,
    SurfaceRead,
)

router = APIRouter()


@router.get("", response_model=List[ProductRead])
async def list_products(
    organizationId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.list_products(user, organizationId, session)


@router.post("", response_model=ProductRead, status_code=201)
async def create_product(
    organizationId: uuid.UUID,
    body: ProductCreate,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.create_product(user, organizationId, body, session)


@router.get("/{productId}", response_model=ProductRead)
async def get_product(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    product = await product_service.get_product(user, productId, organizationId, session)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/{productId}/relations", response_model=ProductWithRelations)
async def get_product_with_relations(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Product with all of its surfaces and features."""
    product = await product_service.get_product_with_relations(
        user, productId, organizationId, session
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.patch("/{productId}", response_model=ProductRead)
async def update_product(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    body: ProductUpdate,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.update_product(user, productId, organizationId, body, session)


@router.delete("/{productId}", status_code=204)
async def remove_product(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Delete a product along with its surfaces and features."""
    await product_service.remove_product(user, productId, organizationId, session)


# ---------------------------------------------------------------------------
# Nested collections
# ---------------------------------------------------------------------------


@router.get("/{productId}/surfaces", response_model=List[SurfaceRead])
async def list_surfaces(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.list_surfaces(user, productId, organizationId, session)


@router.post("/{productId}/surfaces", response_model=SurfaceRead, status_code=201)
async def create_surface(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    body: SurfaceCreate,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.create_surface(user, productId, organizationId, body, session)


@router.get("/{productId}/features", response_model=List[FeatureRead])
async def list_features(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    status: Optional[FeatureStatus] = Query(None),
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.list_features(
        user, productId, organizationId, session, status=status
    )


@router.post("/{productId}/features", response_model=FeatureRead, status_code=201)
async def create_feature(
    organizationId: uuid.UUID,
    productId: uuid.UUID,
    body: FeatureCreate,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.create_feature(user, productId, organizationId, body, session)
