from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from badger.core.errors import (
    ConflictError,
    ForbiddenError,
    InputValidationError,
    InvalidStatusError,
    NotFoundError,
)


class PromotionNotFoundError(NotFoundError):
    default_message = "Promotion not found"


class PromotionForbiddenError(ForbiddenError):
    pass


class PromotionInvalidStatusError(InvalidStatusError):
    pass


class PromotionTemplateNotFoundError(NotFoundError):
    default_message = "Promotion template not found"


class PromotionTemplateInactiveError(InvalidStatusError):
    def __init__(self) -> None:
        super().__init__(
            current_status="inactive",
            action="create_promotion",
            message="Promotion template is not active",
        )


class PromotionTemplateConflictError(ConflictError):
    code = "template_conflict"
    default_message = "An active template already exists for this path and level range"


class ReservationNotFoundError(NotFoundError):
    default_message = "Badge application is not reserved by this promotion"

    def __init__(self, *, badge_application_id: UUID) -> None:
        super().__init__()
        self.badge_application_id = badge_application_id

    def extras(self) -> dict[str, object]:
        return {"badge_application_id": str(self.badge_application_id)}


class ReservationConflictError(ConflictError):
    code = "reservation_conflict"
    default_message = "Badge application is already reserved by another promotion"

    def __init__(
        self,
        *,
        badge_application_id: UUID,
        owning_promotion_id: UUID | None,
    ) -> None:
        super().__init__()
        self.badge_application_id = badge_application_id
        self.owning_promotion_id = owning_promotion_id

    def extras(self) -> dict[str, object]:
        return {
            "badge_application_id": str(self.badge_application_id),
            "owning_promotion_id": (
                str(self.owning_promotion_id) if self.owning_promotion_id is not None else None
            ),
        }


class ValidationFailedError(ConflictError):
    code = "validation_failed"
    default_message = "Promotion does not satisfy its template requirements"

    def __init__(self, *, missing: Sequence[dict[str, object]]) -> None:
        super().__init__()
        self.missing = list(missing)

    def extras(self) -> dict[str, object]:
        return {"missing": self.missing}


class RuleFormatError(InputValidationError):
    default_message = "Invalid promotion rules"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, field="rules")


class PromotionTemplateInUseError(ConflictError):
    code = "template_in_use"
    default_message = "Promotion template is referenced by promotions; deactivate it instead"

    def __init__(self, *, template_id: UUID, promotions_total: int) -> None:
        super().__init__()
        self.template_id = template_id
        self.promotions_total = promotions_total

    def extras(self) -> dict[str, object]:
        return {"template_id": str(self.template_id), "promotions_total": self.promotions_total}
