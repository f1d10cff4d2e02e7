"""Feature endpoints addressed by feature id."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import products as product_service
from vinci_shared.schemas.products import FeatureRead, FeatureUpdate

router = APIRouter()


@router.patch("/{featureId}", response_model=FeatureRead)
async def update_feature(
    organizationId: uuid.UUID,
    featureId: uuid.UUID,
    body: FeatureUpdate,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await product_service.update_feature(user, featureId, organizationId, body, session)


@router.delete("/{featureId}", status_code=204)
async def remove_feature(
    organizationId: uuid.UUID,
    featureId: uuid.UUID,
    user: Optional[User] = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await product_service.remove_feature(user, featureId, organizationId, session)
