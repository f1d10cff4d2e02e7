"""Feature model: a tracked requirement belonging to a product."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Feature(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "features"
    __table_args__ = (
        sa.Index("ix_features_product_id_status", "product_id", "status"),
    )

    product_id: uuid.UUID = Field(foreign_key="products.id", nullable=False, index=True)
    # Copied from the parent product so access checks need no join
    organization_id: uuid.UUID = Field(nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    acceptance_criteria: list[str] = Field(default_factory=list, sa_type=JSONType, nullable=False)
    source: str = Field(default="manual", nullable=False)  # manual | jira
    source_key: Optional[str] = None
    status: str = Field(default="draft", nullable=False)
