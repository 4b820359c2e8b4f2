from __future__ import annotations

from enum import Enum


class PromotionStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class PromotionAction(str, Enum):
    ADD_BADGE = "add_badge"
    REMOVE_BADGE = "remove_badge"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    DELETE = "delete"


class PromotionPath(str, Enum):
    TECHNICAL = "technical"
    FINANCIAL = "financial"
    MANAGEMENT = "management"


WILDCARD_CATEGORY = "any"
PROMOTION_REJECT_REASON_MAX_LENGTH = 2000
PROMOTION_BADGE_BATCH_MAX_SIZE = 100
PROMOTION_LIST_DEFAULT_LIMIT = 20
PROMOTION_LIST_MAX_LIMIT = 100
PROMOTION_LEVEL_MAX_LENGTH = 16
