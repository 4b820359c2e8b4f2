from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from badger.db.models.promotion_badges import PromotionBadge
from badger.db.models.promotions import Promotion
from badger.promotions.rules import ValidationReport


@dataclass(slots=True)
class ReservedBadgeSummary:
    badge_application_id: UUID
    catalog_badge_id: UUID
    category: str
    level: str
    status: str
    assigned_at: datetime
    assigned_by: UUID
    consumed: bool


@dataclass(slots=True)
class PromotionDetails:
    promotion: Promotion
    badges: list[ReservedBadgeSummary] = field(default_factory=list)


@dataclass(slots=True)
class PromotionValidationResult:
    promotion_id: UUID
    report: ValidationReport


@dataclass(slots=True)
class PromotionBadgesChange:
    promotion_id: UUID
    badge_application_ids: list[UUID]
    unchanged_ids: list[UUID] = field(default_factory=list)


@dataclass(slots=True)
class ReservationResult:
    reservation: PromotionBadge
    created: bool
