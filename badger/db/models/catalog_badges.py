from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from badger.db.models.base import Base


class CatalogBadge(Base):
    __tablename__ = "catalog_badges"
    __table_args__ = (
        CheckConstraint(
            "category IN ('technical','organizational','softskilled')",
            name="ck_catalog_badges_category",
        ),
        CheckConstraint("level IN ('gold','silver','bronze')", name="ck_catalog_badges_level"),
        CheckConstraint("status IN ('active','inactive')", name="ck_catalog_badges_status"),
        CheckConstraint("version >= 1", name="ck_catalog_badges_version_positive"),
        Index("idx_catalog_badges_category_level", "category", "level"),
        Index("idx_catalog_badges_status_created_at", "status", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    level: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'active'"))
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    created_by: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
