from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ActorRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    OWNER_OR_ADMIN = "owner_or_admin"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class Actor:
    user_id: UUID
    is_admin: bool = False


def is_actor_allowed(role: ActorRole, *, actor: Actor, owner_id: UUID | None) -> bool:
    is_owner = owner_id is not None and actor.user_id == owner_id
    if role == ActorRole.OWNER:
        return is_owner
    if role == ActorRole.ADMIN:
        return actor.is_admin
    if role == ActorRole.OWNER_OR_ADMIN:
        return is_owner or actor.is_admin
    # system-only actions are never triggered by a request actor
    return False
