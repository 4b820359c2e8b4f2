from __future__ import annotations

from enum import Enum


class BadgeCategory(str, Enum):
    TECHNICAL = "technical"
    ORGANIZATIONAL = "organizational"
    SOFTSKILLED = "softskilled"


class BadgeLevel(str, Enum):
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


class CatalogBadgeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BadgeApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    USED_IN_PROMOTION = "used_in_promotion"


class BadgeApplicationAction(str, Enum):
    EDIT = "edit"
    SUBMIT = "submit"
    ACCEPT = "accept"
    REJECT = "reject"
    REOPEN = "reopen"
    DELETE = "delete"
    MARK_USED_IN_PROMOTION = "mark_used_in_promotion"


BADGE_REVIEW_NOTE_MAX_LENGTH = 2000
BADGE_REASON_MAX_LENGTH = 2000
BADGE_APPLICATION_LIST_DEFAULT_LIMIT = 20
BADGE_APPLICATION_LIST_MAX_LIMIT = 100
