from __future__ import annotations

from uuid import UUID

from badger.core.errors import (
    ConflictError,
    ForbiddenError,
    InputValidationError,
    InvalidStatusError,
    NotFoundError,
)


class BadgeApplicationNotFoundError(NotFoundError):
    default_message = "Badge application not found"


class BadgeApplicationForbiddenError(ForbiddenError):
    pass


class BadgeApplicationInvalidStatusError(InvalidStatusError):
    pass


class BadgeApplicationIncompleteError(InputValidationError):
    default_message = "Badge application is missing required fields"


class BadgeApplicationReferencedError(ConflictError):
    code = "badge_application_referenced"
    default_message = "Badge application is reserved by a promotion"

    def __init__(self, *, badge_application_id: UUID, promotion_id: UUID | None) -> None:
        super().__init__()
        self.badge_application_id = badge_application_id
        self.promotion_id = promotion_id

    def extras(self) -> dict[str, object]:
        return {
            "badge_application_id": str(self.badge_application_id),
            "promotion_id": str(self.promotion_id) if self.promotion_id is not None else None,
        }


class CatalogBadgeNotFoundError(NotFoundError):
    default_message = "Catalog badge not found"


class CatalogBadgeInactiveError(InvalidStatusError):
    def __init__(self) -> None:
        super().__init__(
            current_status="inactive",
            action="apply",
            message="Catalog badge is not active",
        )
