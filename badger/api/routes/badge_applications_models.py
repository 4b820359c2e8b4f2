from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from badger.badges.constants import BADGE_REASON_MAX_LENGTH, BADGE_REVIEW_NOTE_MAX_LENGTH


class BadgeApplicationCreateRequest(BaseModel):
    catalog_badge_id: UUID
    date_of_application: date | None = None
    date_of_fulfillment: date | None = None
    reason: str | None = Field(default=None, max_length=BADGE_REASON_MAX_LENGTH)


class BadgeApplicationUpdateRequest(BaseModel):
    catalog_badge_id: UUID | None = None
    date_of_application: date | None = None
    date_of_fulfillment: date | None = None
    reason: str | None = Field(default=None, max_length=BADGE_REASON_MAX_LENGTH)


class BadgeApplicationReviewRequest(BaseModel):
    decision_note: str | None = Field(default=None, max_length=BADGE_REVIEW_NOTE_MAX_LENGTH)


class BadgeApplicationResponse(BaseModel):
    id: UUID
    applicant_id: UUID
    catalog_badge_id: UUID
    catalog_badge_version: int
    badge_category: str
    badge_level: str
    date_of_application: date | None = None
    date_of_fulfillment: date | None = None
    reason: str | None = None
    status: str
    submitted_at: datetime | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    review_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class BadgeApplicationDeletedResponse(BaseModel):
    id: UUID
    deleted: bool = True


class BadgeApplicationListResponse(BaseModel):
    items: list[BadgeApplicationResponse]
