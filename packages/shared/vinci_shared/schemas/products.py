from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from datetime import datetime
from .common import Criticality, FeatureSource, FeatureStatus, SurfaceType


def _reject_null(value):
    if value is None:
        raise ValueError("Field may be omitted but not set to null")
    return value


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    criticality: Criticality
    owners: List[str] = Field(default_factory=list)


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    """Partial patch. Omitted fields are left untouched; only description is nullable."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    criticality: Optional[Criticality] = None
    owners: Optional[List[str]] = None

    @field_validator("name", "criticality", "owners")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)


class ProductRead(ProductBase):
    id: UUID
    organization_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Surfaces
# ---------------------------------------------------------------------------


class SurfaceEnvironments(BaseModel):
    dev: Optional[str] = None
    test: Optional[str] = None
    staging: Optional[str] = None
    prod: Optional[str] = None


class SurfaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: SurfaceType
    location: Optional[str] = None
    environments: Optional[SurfaceEnvironments] = None
    external_id: Optional[str] = None


class SurfaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[SurfaceType] = None
    location: Optional[str] = None
    environments: Optional[SurfaceEnvironments] = None
    external_id: Optional[str] = None

    @field_validator("name", "type", "environments")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)


class SurfaceRead(BaseModel):
    id: UUID
    product_id: UUID
    organization_id: UUID
    name: str
    type: SurfaceType
    location: Optional[str] = None
    environments: SurfaceEnvironments
    external_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------


class FeatureCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    acceptance_criteria: List[str] = Field(default_factory=list)
    source: FeatureSource = FeatureSource.MANUAL
    source_key: Optional[str] = None
    status: FeatureStatus = FeatureStatus.DRAFT


class FeatureUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = None
    acceptance_criteria: Optional[List[str]] = None
    source: Optional[FeatureSource] = None
    source_key: Optional[str] = None
    status: Optional[FeatureStatus] = None

    @field_validator("title", "acceptance_criteria", "source", "status")
    @classmethod
    def reject_null(cls, value):
        return _reject_null(value)


class FeatureRead(BaseModel):
    id: UUID
    product_id: UUID
    organization_id: UUID
    title: str
    description: Optional[str] = None
    acceptance_criteria: List[str]
    source: FeatureSource
    source_key: Optional[str] = None
    status: FeatureStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductWithRelations(ProductRead):
    surfaces: List[SurfaceRead] = Field(default_factory=list)
    features: List[FeatureRead] = Field(default_factory=list)
