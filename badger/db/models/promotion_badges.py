from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from badger.db.models.base import Base

UNCONSUMED_RESERVATION_INDEX = "uq_promotion_badges_badge_application_unconsumed"
PROMOTION_BADGE_PAIR_CONSTRAINT = "uq_promotion_badges_promotion_badge_application"


class PromotionBadge(Base):
    __tablename__ = "promotion_badges"
    __table_args__ = (
        UniqueConstraint(
            "promotion_id",
            "badge_application_id",
            name=PROMOTION_BADGE_PAIR_CONSTRAINT,
        ),
        Index("idx_promotion_badges_promotion", "promotion_id"),
        Index(
            UNCONSUMED_RESERVATION_INDEX,
            "badge_application_id",
            unique=True,
            postgresql_where=text("consumed = false"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    promotion_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("promotions.id", ondelete="CASCADE"),
        nullable=False,
    )
    badge_application_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("badge_applications.id", ondelete="RESTRICT"),
        nullable=False,
    )
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    assigned_by: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False)
    consumed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
