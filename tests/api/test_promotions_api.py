from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient

from badger.api.routes import promotions as promotions_routes
from badger.core.errors import InputValidationError
from badger.main import app
from badger.promotions.constants import PromotionPath, PromotionStatus
from badger.promotions.errors import (
    PromotionForbiddenError,
    PromotionInvalidStatusError,
    ReservationConflictError,
    ValidationFailedError,
)
from badger.promotions.rules import evaluate_rules, parse_rules
from badger.promotions.types import PromotionBadgesChange, PromotionValidationResult
from tests.api.api_fixtures import (  # noqa: F401
    ADMIN_ID,
    OWNER_ID,
    admin_headers,
    fake_sessions,
    headers,
)

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
RULES = [
    {"category": "technical", "level": "gold", "count": 2},
    {"category": "any", "level": "gold", "count": 1},
]


def _promotion(**overrides) -> SimpleNamespace:
    values = {
        "id": uuid4(),
        "template_id": uuid4(),
        "created_by": OWNER_ID,
        "path": "technical",
        "from_level": "S1",
        "to_level": "S2",
        "rules_snapshot": RULES,
        "status": "draft",
        "submitted_at": None,
        "approved_at": None,
        "approved_by": None,
        "rejected_at": None,
        "rejected_by": None,
        "reject_reason": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _patch_service(monkeypatch, **methods) -> None:
    service = SimpleNamespace(**methods)
    monkeypatch.setattr(promotions_routes, "PromotionService", service)


def test_add_badges_conflict_payload(monkeypatch, fake_sessions) -> None:  # noqa: F811
    badge_application_id = uuid4()
    owning_promotion_id = uuid4()

    async def _add_badges(session, **kwargs):
        raise ReservationConflictError(
            badge_application_id=badge_application_id,
            owning_promotion_id=owning_promotion_id,
        )

    _patch_service(monkeypatch, add_badges=_add_badges)
    client = TestClient(app)

    response = client.post(
        f"/promotions/{uuid4()}/badges",
        json={"badge_application_ids": [str(badge_application_id)]},
        headers=headers(),
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "reservation_conflict",
        "message": "Badge application is already reserved by another promotion",
        "badge_application_id": str(badge_application_id),
        "owning_promotion_id": str(owning_promotion_id),
    }


def test_add_badges_success(monkeypatch, fake_sessions) -> None:  # noqa: F811
    promotion_id = uuid4()
    badge_ids = [uuid4(), uuid4()]
    captured = {}

    async def _add_badges(session, *, promotion_id, actor, badge_application_ids):
        captured["actor"] = actor
        return PromotionBadgesChange(
            promotion_id=promotion_id,
            badge_application_ids=list(badge_application_ids),
        )

    _patch_service(monkeypatch, add_badges=_add_badges)
    client = TestClient(app)

    response = client.post(
        f"/promotions/{promotion_id}/badges",
        json={"badge_application_ids": [str(badge_id) for badge_id in badge_ids]},
        headers=headers(),
    )

    assert response.status_code == 200
    assert response.json()["badge_application_ids"] == [str(badge_id) for badge_id in badge_ids]
    assert captured["actor"].user_id == OWNER_ID
    assert captured["actor"].is_admin is False


def test_remove_badges_uses_delete_body(monkeypatch, fake_sessions) -> None:  # noqa: F811
    badge_id = uuid4()

    async def _remove_badges(session, *, promotion_id, actor, badge_application_ids):
        return PromotionBadgesChange(
            promotion_id=promotion_id,
            badge_application_ids=list(badge_application_ids),
        )

    _patch_service(monkeypatch, remove_badges=_remove_badges)
    client = TestClient(app)

    response = client.request(
        "DELETE",
        f"/promotions/{uuid4()}/badges",
        json={"badge_application_ids": [str(badge_id)]},
        headers=headers(),
    )

    assert response.status_code == 200
    assert response.json()["badge_application_ids"] == [str(badge_id)]


def test_add_badges_batch_limit_is_validation_error(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _add_badges(session, **kwargs):
        raise InputValidationError(
            "At most 100 badge application ids are allowed",
            field="badge_application_ids",
        )

    _patch_service(monkeypatch, add_badges=_add_badges)
    client = TestClient(app)

    response = client.post(
        f"/promotions/{uuid4()}/badges",
        json={"badge_application_ids": [str(uuid4()) for _ in range(101)]},
        headers=headers(),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["details"][0]["field"] == "badge_application_ids"


def test_validation_endpoint_reports_requirements(monkeypatch, fake_sessions) -> None:  # noqa: F811
    promotion_id = uuid4()

    async def _validate(session, *, promotion_id, actor):
        return PromotionValidationResult(
            promotion_id=promotion_id,
            report=evaluate_rules(parse_rules(RULES), []),
        )

    _patch_service(monkeypatch, validate=_validate)
    client = TestClient(app)

    response = client.get(f"/promotions/{promotion_id}/validation", headers=headers())

    assert response.status_code == 200
    payload = response.json()
    assert payload["promotion_id"] == str(promotion_id)
    assert payload["is_valid"] is False
    assert payload["requirements"][1] == {
        "category": "any",
        "level": "gold",
        "required": 1,
        "current": 0,
        "satisfied": False,
    }
    assert payload["missing"] == [
        {"category": "technical", "level": "gold", "count": 2},
        {"category": "any", "level": "gold", "count": 1},
    ]


def test_submit_validation_failed_payload(monkeypatch, fake_sessions) -> None:  # noqa: F811
    missing = [{"category": "technical", "level": "gold", "count": 1}]

    async def _submit(session, **kwargs):
        raise ValidationFailedError(missing=missing)

    _patch_service(monkeypatch, submit=_submit)
    client = TestClient(app)

    response = client.post(f"/promotions/{uuid4()}/submit", headers=headers())

    assert response.status_code == 409
    assert response.json()["error"] == "validation_failed"
    assert response.json()["missing"] == missing


def test_approve_returns_approved_promotion(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _approve(session, *, promotion_id, actor):
        assert actor.is_admin is True
        return _promotion(
            id=promotion_id,
            status="approved",
            approved_at=NOW,
            approved_by=actor.user_id,
        )

    _patch_service(monkeypatch, approve=_approve)
    client = TestClient(app)

    response = client.post(f"/promotions/{uuid4()}/approve", headers=admin_headers())

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approved_by"] == str(ADMIN_ID)
    assert response.json()["rules"] == RULES


def test_reject_on_approved_promotion_is_invalid_status(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _reject(session, **kwargs):
        raise PromotionInvalidStatusError(current_status="approved", action="reject")

    _patch_service(monkeypatch, reject=_reject)
    client = TestClient(app)

    response = client.post(
        f"/promotions/{uuid4()}/reject",
        json={"reject_reason": "Too late"},
        headers=admin_headers(),
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "invalid_status",
        "message": "Cannot reject while status is approved",
        "current_status": "approved",
    }


def test_unexpected_error_is_internal_error(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _delete(session, **kwargs):
        raise RuntimeError("boom")

    _patch_service(monkeypatch, delete=_delete)
    client = TestClient(app)

    response = client.delete(f"/promotions/{uuid4()}", headers=headers())

    assert response.status_code == 500
    assert response.json() == {
        "error": "internal_error",
        "message": "An unexpected error occurred",
    }


def test_create_promotion_returns_201(monkeypatch, fake_sessions) -> None:  # noqa: F811
    template_id = uuid4()

    async def _create(session, *, actor, template_id):
        return _promotion(template_id=template_id, created_by=actor.user_id)

    _patch_service(monkeypatch, create=_create)
    client = TestClient(app)

    response = client.post("/promotions", json={"template_id": str(template_id)}, headers=headers())

    assert response.status_code == 201
    assert response.json()["template_id"] == str(template_id)
    assert response.json()["status"] == "draft"
    assert response.json()["badges"] == []


def test_reject_without_reason_is_validation_error(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _reject(session, **kwargs):
        raise AssertionError("service must not run without a reject reason")

    _patch_service(monkeypatch, reject=_reject)
    client = TestClient(app)

    response = client.post(f"/promotions/{uuid4()}/reject", json={}, headers=admin_headers())

    assert response.status_code == 400
    assert response.json() == {
        "error": "validation_error",
        "message": "Invalid request",
        "details": [{"field": "reject_reason", "message": "Field required"}],
    }


def test_reject_without_body_is_validation_error(fake_sessions) -> None:  # noqa: F811
    client = TestClient(app)

    response = client.post(f"/promotions/{uuid4()}/reject", headers=admin_headers())

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert fake_sessions.sessions_opened == 0


def test_list_promotions_returns_items_without_badges(monkeypatch, fake_sessions) -> None:  # noqa: F811
    captured: dict[str, object] = {}
    listed = [_promotion(status="submitted"), _promotion(status="submitted")]

    async def _list_for_actor(session, *, actor, **filters):
        captured["actor_id"] = actor.user_id
        captured.update(filters)
        return listed

    _patch_service(monkeypatch, list_for_actor=_list_for_actor)
    client = TestClient(app)

    response = client.get(
        "/promotions",
        params={"status": "submitted", "path": "technical"},
        headers=headers(),
    )

    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["id"] for item in items] == [str(promotion.id) for promotion in listed]
    assert all(item["badges"] is None for item in items)
    assert captured == {
        "actor_id": OWNER_ID,
        "status": PromotionStatus.SUBMITTED,
        "created_by": None,
        "path": PromotionPath.TECHNICAL,
        "template_id": None,
        "limit": 20,
    }


def test_list_promotions_of_other_user_is_forbidden(monkeypatch, fake_sessions) -> None:  # noqa: F811
    async def _list_for_actor(session, **kwargs):
        raise PromotionForbiddenError("Only administrators can list other users' promotions")

    _patch_service(monkeypatch, list_for_actor=_list_for_actor)
    client = TestClient(app)

    response = client.get("/promotions", params={"created_by": str(ADMIN_ID)}, headers=headers())

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_list_promotions_rejects_unknown_status(monkeypatch, fake_sessions) -> None:  # noqa: F811
    _patch_service(monkeypatch)
    client = TestClient(app)

    response = client.get("/promotions", params={"status": "archived"}, headers=headers())

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["details"][0]["field"] == "status"
    assert fake_sessions.sessions_opened == 0
