from __future__ import annotations

from contextlib import asynccontextmanager
from types import SimpleNamespace
from uuid import UUID

import pytest

from badger.api.routes import helpers as route_helpers

INTERNAL_TOKEN = "internal-secret"
OWNER_ID = UUID("00000000-0000-0000-0000-000000000101")
ADMIN_ID = UUID("00000000-0000-0000-0000-00000000a001")


class _FakeSessionFactory:
    def __init__(self) -> None:
        self.sessions_opened = 0

    @asynccontextmanager
    async def begin(self):
        self.sessions_opened += 1
        yield SimpleNamespace()


def headers(*, actor_id: UUID = OWNER_ID, is_admin: bool = False) -> dict[str, str]:
    return {
        "X-Internal-Token": INTERNAL_TOKEN,
        "X-Actor-Id": str(actor_id),
        "X-Actor-Is-Admin": "true" if is_admin else "false",
    }


def admin_headers() -> dict[str, str]:
    return headers(actor_id=ADMIN_ID, is_admin=True)


@pytest.fixture
def fake_sessions(monkeypatch) -> _FakeSessionFactory:
    factory = _FakeSessionFactory()
    monkeypatch.setattr(route_helpers, "SessionLocal", factory)
    monkeypatch.setattr(
        route_helpers,
        "get_settings",
        lambda: SimpleNamespace(internal_api_token=INTERNAL_TOKEN),
    )
    return factory
