"""Product model (tenant-scoped)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Product(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "products"
    __table_args__ = (
        sa.Index("ix_products_organization_id_name", "organization_id", "name"),
    )

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    criticality: str = Field(nullable=False)  # low | medium | high
    owners: list[str] = Field(default_factory=list, sa_type=JSONType, nullable=False)
