from __future__ import annotations

from badger.core.actors import ActorRole
from badger.promotions.constants import PromotionAction, PromotionStatus
from badger.promotions.errors import PromotionInvalidStatusError

# (current status, action) -> next status; None means the row is removed.
PROMOTION_TRANSITIONS: dict[tuple[PromotionStatus, PromotionAction], PromotionStatus | None] = {
    (PromotionStatus.DRAFT, PromotionAction.ADD_BADGE): PromotionStatus.DRAFT,
    (PromotionStatus.DRAFT, PromotionAction.REMOVE_BADGE): PromotionStatus.DRAFT,
    (PromotionStatus.DRAFT, PromotionAction.SUBMIT): PromotionStatus.SUBMITTED,
    (PromotionStatus.DRAFT, PromotionAction.DELETE): None,
    (PromotionStatus.SUBMITTED, PromotionAction.APPROVE): PromotionStatus.APPROVED,
    (PromotionStatus.SUBMITTED, PromotionAction.REJECT): PromotionStatus.REJECTED,
}

PROMOTION_ACTION_ROLES: dict[PromotionAction, ActorRole] = {
    PromotionAction.ADD_BADGE: ActorRole.OWNER_OR_ADMIN,
    PromotionAction.REMOVE_BADGE: ActorRole.OWNER_OR_ADMIN,
    PromotionAction.SUBMIT: ActorRole.OWNER,
    PromotionAction.DELETE: ActorRole.OWNER,
    PromotionAction.APPROVE: ActorRole.ADMIN,
    PromotionAction.REJECT: ActorRole.ADMIN,
}


def next_promotion_status(current_status: str, action: PromotionAction) -> PromotionStatus | None:
    try:
        key = (PromotionStatus(current_status), action)
    except ValueError as exc:
        raise PromotionInvalidStatusError(
            current_status=current_status,
            action=action.value,
        ) from exc

    if key not in PROMOTION_TRANSITIONS:
        raise PromotionInvalidStatusError(current_status=current_status, action=action.value)
    return PROMOTION_TRANSITIONS[key]
