from __future__ import annotations

import secrets
from uuid import UUID

from fastapi import Request

from badger.core.actors import Actor
from badger.core.errors import UnauthorizedError

INTERNAL_TOKEN_HEADER = "X-Internal-Token"
ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_IS_ADMIN_HEADER = "X-Actor-Is-Admin"
TRUTHY_HEADER_VALUES = {"1", "true", "yes"}
FALSY_HEADER_VALUES = {"", "0", "false", "no"}


def is_valid_internal_token(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token, received_token)


def _parse_admin_flag(value: str | None) -> bool:
    normalized = (value or "").strip().lower()
    if normalized in TRUTHY_HEADER_VALUES:
        return True
    if normalized in FALSY_HEADER_VALUES:
        return False
    raise UnauthorizedError(f"Invalid {ACTOR_IS_ADMIN_HEADER} header")


def resolve_actor(request: Request, *, expected_token: str) -> Actor:
    """Build the acting user from headers set by the authenticating gateway."""
    if not is_valid_internal_token(
        expected_token=expected_token,
        received_token=request.headers.get(INTERNAL_TOKEN_HEADER),
    ):
        raise UnauthorizedError("Invalid internal credentials")

    raw_actor_id = request.headers.get(ACTOR_ID_HEADER)
    if not raw_actor_id:
        raise UnauthorizedError(f"Missing {ACTOR_ID_HEADER} header")
    try:
        user_id = UUID(raw_actor_id.strip())
    except ValueError as exc:
        raise UnauthorizedError(f"Invalid {ACTOR_ID_HEADER} header") from exc

    return Actor(
        user_id=user_id,
        is_admin=_parse_admin_flag(request.headers.get(ACTOR_IS_ADMIN_HEADER)),
    )
