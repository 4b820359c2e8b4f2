from __future__ import annotations

from uuid import uuid4

from badger.core.actors import Actor, ActorRole, is_actor_allowed


def test_is_actor_allowed_by_role() -> None:
    owner_id = uuid4()
    owner = Actor(user_id=owner_id)
    admin = Actor(user_id=uuid4(), is_admin=True)
    stranger = Actor(user_id=uuid4())

    assert is_actor_allowed(ActorRole.OWNER, actor=owner, owner_id=owner_id) is True
    assert is_actor_allowed(ActorRole.OWNER, actor=admin, owner_id=owner_id) is False
    assert is_actor_allowed(ActorRole.ADMIN, actor=admin, owner_id=owner_id) is True
    assert is_actor_allowed(ActorRole.ADMIN, actor=owner, owner_id=owner_id) is False
    assert is_actor_allowed(ActorRole.OWNER_OR_ADMIN, actor=owner, owner_id=owner_id) is True
    assert is_actor_allowed(ActorRole.OWNER_OR_ADMIN, actor=admin, owner_id=owner_id) is True
    assert is_actor_allowed(ActorRole.OWNER_OR_ADMIN, actor=stranger, owner_id=owner_id) is False


def test_system_role_is_never_granted_to_request_actors() -> None:
    owner_id = uuid4()
    admin_owner = Actor(user_id=owner_id, is_admin=True)

    assert is_actor_allowed(ActorRole.SYSTEM, actor=admin_owner, owner_id=owner_id) is False
