from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from badger.db.models.base import Base


class BadgeApplication(Base):
    __tablename__ = "badge_applications"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft','submitted','accepted','rejected','used_in_promotion')",
            name="ck_badge_applications_status",
        ),
        CheckConstraint(
            "badge_category IN ('technical','organizational','softskilled')",
            name="ck_badge_applications_badge_category",
        ),
        CheckConstraint(
            "badge_level IN ('gold','silver','bronze')",
            name="ck_badge_applications_badge_level",
        ),
        CheckConstraint(
            "date_of_fulfillment IS NULL OR date_of_application IS NULL "
            "OR date_of_fulfillment >= date_of_application",
            name="ck_badge_applications_fulfillment_after_application",
        ),
        CheckConstraint(
            "status = 'draft' OR date_of_application IS NOT NULL",
            name="ck_badge_applications_submitted_has_application_date",
        ),
        Index("idx_badge_applications_applicant", "applicant_id"),
        Index("idx_badge_applications_catalog_badge", "catalog_badge_id"),
        Index("idx_badge_applications_status", "status"),
        Index("idx_badge_applications_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    applicant_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False)
    catalog_badge_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("catalog_badges.id"),
        nullable=False,
    )
    catalog_badge_version: Mapped[int] = mapped_column(Integer, nullable=False)
    badge_category: Mapped[str] = mapped_column(String(32), nullable=False)
    badge_level: Mapped[str] = mapped_column(String(16), nullable=False)
    date_of_application: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_of_fulfillment: Mapped[date | None] = mapped_column(Date, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
