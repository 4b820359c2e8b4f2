from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from badger.db.models.base import Base


class PromotionTemplate(Base):
    __tablename__ = "promotion_templates"
    __table_args__ = (
        CheckConstraint(
            "path IN ('technical','financial','management')",
            name="ck_promotion_templates_path",
        ),
        CheckConstraint("jsonb_typeof(rules) = 'array'", name="ck_promotion_templates_rules_array"),
        Index("idx_promotion_templates_path_from_to", "path", "from_level", "to_level"),
        Index(
            "uq_promotion_templates_active_path_levels",
            "path",
            "from_level",
            "to_level",
            unique=True,
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    path: Mapped[str] = mapped_column(String(32), nullable=False)
    from_level: Mapped[str] = mapped_column(String(16), nullable=False)
    to_level: Mapped[str] = mapped_column(String(16), nullable=False)
    rules: Mapped[list[dict[str, object]]] = mapped_column(JSONB, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_by: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
