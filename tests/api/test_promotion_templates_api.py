from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient

from badger.api.routes import promotion_templates as promotion_templates_routes
from badger.main import app
from badger.promotions.constants import PromotionPath
from badger.promotions.errors import (
    PromotionTemplateConflictError,
    PromotionTemplateInUseError,
    RuleFormatError,
)
from tests.api.api_fixtures import ADMIN_ID, admin_headers, fake_sessions, headers  # noqa: F401

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
RULES = [
    {"category": "technical", "level": "gold", "count": 2},
    {"category": "any", "level": "gold", "count": 1},
]
PAYLOAD = {
    "name": "Technical S1 to S2",
    "path": "technical",
    "from_level": "S1",
    "to_level": "S2",
    "rules": RULES,
}


def _patch_service(monkeypatch, **methods) -> None:
    monkeypatch.setattr(
        promotion_templates_routes,
        "PromotionTemplateService",
        SimpleNamespace(**methods),
    )


def test_create_template_returns_201(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _create(session, *, actor, name, path, from_level, to_level, rules):
        return SimpleNamespace(
            id=uuid4(),
            name=name,
            path=path,
            from_level=from_level,
            to_level=to_level,
            rules=rules,
            is_active=True,
            created_by=actor.user_id,
            created_at=NOW,
            updated_at=NOW,
        )

    _patch_service(monkeypatch, create=_create)
    client = TestClient(app)

    response = client.post("/promotion-templates", json=PAYLOAD, headers=admin_headers())

    assert response.status_code == 201
    assert response.json()["rules"] == RULES
    assert response.json()["is_active"] is True
    assert response.json()["created_by"] == str(ADMIN_ID)


def test_create_template_conflict(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _create(session, **kwargs):
        raise PromotionTemplateConflictError

    _patch_service(monkeypatch, create=_create)
    client = TestClient(app)

    response = client.post("/promotion-templates", json=PAYLOAD, headers=admin_headers())

    assert response.status_code == 409
    assert response.json()["error"] == "template_conflict"


def test_create_template_rule_format_error(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _create(session, **kwargs):
        raise RuleFormatError("Duplicate rule for technical/gold")

    _patch_service(monkeypatch, create=_create)
    client = TestClient(app)

    response = client.post("/promotion-templates", json=PAYLOAD, headers=admin_headers())

    assert response.status_code == 400
    assert response.json()["details"] == [
        {"field": "rules", "message": "Duplicate rule for technical/gold"}
    ]


def _template(**overrides) -> SimpleNamespace:
    values = {
        "id": uuid4(),
        "name": PAYLOAD["name"],
        "path": PAYLOAD["path"],
        "from_level": PAYLOAD["from_level"],
        "to_level": PAYLOAD["to_level"],
        "rules": RULES,
        "is_active": True,
        "created_by": ADMIN_ID,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_list_templates_passes_filters(monkeypatch, fake_sessions) -> None:  # noqa: F811
    captured: dict[str, object] = {}

    async def _list_templates(session, **kwargs):
        captured.update(kwargs)
        return [_template(), _template(name="Technical S2 to S3", from_level="S2", to_level="S3")]

    _patch_service(monkeypatch, list_templates=_list_templates)
    client = TestClient(app)

    response = client.get(
        "/promotion-templates",
        params={"path": "technical", "from_level": "S1", "limit": 5},
        headers=headers(),
    )

    assert response.status_code == 200
    assert [item["from_level"] for item in response.json()["items"]] == ["S1", "S2"]
    assert captured == {
        "path": PromotionPath.TECHNICAL,
        "from_level": "S1",
        "to_level": None,
        "is_active": True,
        "limit": 5,
    }


def test_list_templates_rejects_unknown_path(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _list_templates(session, **kwargs):
        raise AssertionError("service must not be called")

    _patch_service(monkeypatch, list_templates=_list_templates)
    client = TestClient(app)

    response = client.get("/promotion-templates", params={"path": "sales"}, headers=headers())

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["details"][0]["field"] == "path"


def test_list_templates_limit_is_bounded(monkeypatch, fake_sessions) -> None:  # noqa: F811
    _patch_service(monkeypatch)
    client = TestClient(app)

    response = client.get("/promotion-templates", params={"limit": 101}, headers=headers())

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "limit"


def test_update_template_passes_only_given_fields(monkeypatch, fake_sessions) -> None:  # noqa: F811
    template_id = uuid4()
    captured: dict[str, object] = {}

    async def _update(session, *, template_id, actor, **fields):
        captured.update(fields)
        return _template(id=template_id, name=fields["name"])

    _patch_service(monkeypatch, update=_update)
    client = TestClient(app)

    response = client.put(
        f"/promotion-templates/{template_id}",
        json={"name": "Renamed"},
        headers=admin_headers(),
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert captured == {
        "name": "Renamed",
        "path": None,
        "from_level": None,
        "to_level": None,
        "rules": None,
    }


def test_update_template_in_use_is_conflict(monkeypatch, fake_sessions) -> None:  # noqa: F811
    template_id = uuid4()

    async def _update(session, *, template_id, **kwargs):
        raise PromotionTemplateInUseError(template_id=template_id, promotions_total=2)

    _patch_service(monkeypatch, update=_update)
    client = TestClient(app)

    response = client.put(
        f"/promotion-templates/{template_id}",
        json={"rules": RULES},
        headers=admin_headers(),
    )

    assert response.status_code == 409
    assert response.json()["error"] == "template_in_use"
    assert response.json()["template_id"] == str(template_id)
    assert response.json()["promotions_total"] == 2


def test_delete_template_returns_deleted_id(monkeypatch, fake_sessions) -> None:  # noqa: F811
    template_id = uuid4()

    async def _delete(session, *, template_id, actor):
        return template_id

    _patch_service(monkeypatch, delete=_delete)
    client = TestClient(app)

    response = client.delete(f"/promotion-templates/{template_id}", headers=admin_headers())

    assert response.status_code == 200
    assert response.json() == {"id": str(template_id), "deleted": True}
