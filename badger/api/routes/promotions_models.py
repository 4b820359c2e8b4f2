from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PromotionCreateRequest(BaseModel):
    template_id: UUID


class PromotionBadgesRequest(BaseModel):
    badge_application_ids: list[UUID]


class PromotionRejectRequest(BaseModel):
    reject_reason: str


class PromotionRuleModel(BaseModel):
    category: str
    level: str
    count: int


class PromotionReservedBadgeResponse(BaseModel):
    badge_application_id: UUID
    catalog_badge_id: UUID
    category: str
    level: str
    status: str
    assigned_at: datetime
    assigned_by: UUID
    consumed: bool


class PromotionResponse(BaseModel):
    id: UUID
    template_id: UUID
    created_by: UUID
    path: str
    from_level: str
    to_level: str
    rules: list[PromotionRuleModel]
    status: str
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by: UUID | None = None
    rejected_at: datetime | None = None
    rejected_by: UUID | None = None
    reject_reason: str | None = None
    created_at: datetime
    updated_at: datetime
    badges: list[PromotionReservedBadgeResponse] | None = None


class PromotionListResponse(BaseModel):
    items: list[PromotionResponse]


class PromotionBadgesChangeResponse(BaseModel):
    promotion_id: UUID
    badge_application_ids: list[UUID]
    unchanged_ids: list[UUID] = Field(default_factory=list)


class PromotionDeletedResponse(BaseModel):
    id: UUID
    deleted: bool = True


class PromotionRequirementResponse(BaseModel):
    category: str
    level: str
    required: int = Field(ge=1)
    current: int = Field(ge=0)
    satisfied: bool


class PromotionMissingResponse(BaseModel):
    category: str
    level: str
    count: int = Field(ge=1)


class PromotionValidationResponse(BaseModel):
    promotion_id: UUID
    is_valid: bool
    requirements: list[PromotionRequirementResponse]
    missing: list[PromotionMissingResponse]


class PromotionTemplateCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    path: str = Field(min_length=1, max_length=32)
    from_level: str = Field(min_length=1, max_length=16)
    to_level: str = Field(min_length=1, max_length=16)
    rules: list[PromotionRuleModel] = Field(min_length=1)


class PromotionTemplateResponse(BaseModel):
    id: UUID
    name: str
    path: str
    from_level: str
    to_level: str
    rules: list[PromotionRuleModel]
    is_active: bool
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class PromotionTemplateUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    path: str | None = Field(default=None, min_length=1, max_length=32)
    from_level: str | None = Field(default=None, min_length=1, max_length=16)
    to_level: str | None = Field(default=None, min_length=1, max_length=16)
    rules: list[PromotionRuleModel] | None = Field(default=None, min_length=1)


class PromotionTemplateListResponse(BaseModel):
    items: list[PromotionTemplateResponse]


class PromotionTemplateDeletedResponse(BaseModel):
    id: UUID
    deleted: bool = True


class AdminDashboardResponse(BaseModel):
    generated_at: datetime
    badge_applications_total: int = Field(ge=0)
    badge_applications_by_status: dict[str, int]
    promotions_total: int = Field(ge=0)
    promotions_by_status: dict[str, int]
    active_reservations_total: int = Field(ge=0)
