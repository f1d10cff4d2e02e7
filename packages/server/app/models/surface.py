"""Surface model: a deployable unit belonging to a product."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Surface(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "surfaces"

    product_id: uuid.UUID = Field(foreign_key="products.id", nullable=False, index=True)
    # Copied from the parent product so access checks need no join
    organization_id: uuid.UUID = Field(nullable=False, index=True)
    name: str = Field(nullable=False)
    type: str = Field(nullable=False)  # repo | service | webapp | worker | infra
    location: Optional[str] = None
    environments: dict = Field(default_factory=dict, sa_type=JSONType, nullable=False)
    external_id: Optional[str] = None
