from __future__ import annotations

from badger.badges.constants import BadgeApplicationAction, BadgeApplicationStatus
from badger.badges.errors import BadgeApplicationInvalidStatusError
from badger.core.actors import ActorRole

# (current status, action) -> next status; None means the row is removed.
BADGE_APPLICATION_TRANSITIONS: dict[
    tuple[BadgeApplicationStatus, BadgeApplicationAction], BadgeApplicationStatus | None
] = {
    (BadgeApplicationStatus.DRAFT, BadgeApplicationAction.EDIT): BadgeApplicationStatus.DRAFT,
    (BadgeApplicationStatus.DRAFT, BadgeApplicationAction.SUBMIT): BadgeApplicationStatus.SUBMITTED,
    (BadgeApplicationStatus.DRAFT, BadgeApplicationAction.DELETE): None,
    (BadgeApplicationStatus.SUBMITTED, BadgeApplicationAction.ACCEPT): BadgeApplicationStatus.ACCEPTED,
    (BadgeApplicationStatus.SUBMITTED, BadgeApplicationAction.REJECT): BadgeApplicationStatus.REJECTED,
    (
        BadgeApplicationStatus.ACCEPTED,
        BadgeApplicationAction.MARK_USED_IN_PROMOTION,
    ): BadgeApplicationStatus.USED_IN_PROMOTION,
}

# Only consulted when rejected applications may be resubmitted.
BADGE_APPLICATION_REOPEN_TRANSITIONS: dict[
    tuple[BadgeApplicationStatus, BadgeApplicationAction], BadgeApplicationStatus | None
] = {
    (BadgeApplicationStatus.REJECTED, BadgeApplicationAction.REOPEN): BadgeApplicationStatus.DRAFT,
}

BADGE_APPLICATION_ACTION_ROLES: dict[BadgeApplicationAction, ActorRole] = {
    BadgeApplicationAction.EDIT: ActorRole.OWNER,
    BadgeApplicationAction.SUBMIT: ActorRole.OWNER,
    BadgeApplicationAction.DELETE: ActorRole.OWNER_OR_ADMIN,
    BadgeApplicationAction.ACCEPT: ActorRole.ADMIN,
    BadgeApplicationAction.REJECT: ActorRole.ADMIN,
    BadgeApplicationAction.REOPEN: ActorRole.OWNER,
    BadgeApplicationAction.MARK_USED_IN_PROMOTION: ActorRole.SYSTEM,
}


def next_badge_application_status(
    current_status: str,
    action: BadgeApplicationAction,
    *,
    allow_reopen: bool = False,
) -> BadgeApplicationStatus | None:
    try:
        key = (BadgeApplicationStatus(current_status), action)
    except ValueError as exc:
        raise BadgeApplicationInvalidStatusError(
            current_status=current_status,
            action=action.value,
        ) from exc

    if key in BADGE_APPLICATION_TRANSITIONS:
        return BADGE_APPLICATION_TRANSITIONS[key]
    if allow_reopen and key in BADGE_APPLICATION_REOPEN_TRANSITIONS:
        return BADGE_APPLICATION_REOPEN_TRANSITIONS[key]
    raise BadgeApplicationInvalidStatusError(current_status=current_status, action=action.value)
