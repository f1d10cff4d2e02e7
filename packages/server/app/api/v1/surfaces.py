"""Surface endpoints addressed by surface id. Listing and creation live under products."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import products as product_service
from vinci_shared.schemas.products import SurfaceRead, SurfaceUpdate

router = APIRouter()


@router.patch("/{surfaceId}", response_model=SurfaceRead)
async def update_surface(
    organizationId: uuid.UUID,
    surfaceId: uuid.UUID,
    body: SurfaceUpdate,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.update_surface(user, surfaceId, organizationId, body, session)


@router.delete("/{surfaceId}", status_code=204)
async def remove_surface(
    organizationId: uuid.UUID,
    surfaceId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await product_service.remove_surface(user, surfaceId, organizationId, session)
