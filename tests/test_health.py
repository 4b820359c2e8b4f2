import asyncio

from fastapi.testclient import TestClient

from badger.api.routes import health as health_routes
from badger.main import app


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


async def _failed_database() -> dict[str, str]:
    return {"status": "failed", "error": "database down"}


def test_live_ok() -> None:
    client = TestClient(app)
    response = client.get("/live")

    assert response.status_code == 200
    assert response.json() == {"status": "live"}


def test_health_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_database", _ok_check)

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {"database": {"status": "ok"}},
    }


def test_health_returns_503_when_database_failed(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_database", _failed_database)

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {
        "status": "degraded",
        "checks": {"database": {"status": "failed", "error": "database down"}},
    }


def test_ready_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_check_reservation_index", _ok_check)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"
    assert set(response.json()["checks"]) == {"database", "reservation_index"}


def test_ready_skips_schema_check_when_database_failed(monkeypatch) -> None:
    async def _unexpected() -> dict[str, str]:
        raise AssertionError("schema check must not run without a database")

    monkeypatch.setattr(health_routes, "_check_database", _failed_database)
    monkeypatch.setattr(health_routes, "_check_reservation_index", _unexpected)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_ready_reports_missing_reservation_index(monkeypatch) -> None:
    async def _missing_index() -> str | None:
        return "index uq_promotion_badges_badge_application_unconsumed is missing"

    monkeypatch.setattr(health_routes, "_check_database", _ok_check)
    monkeypatch.setattr(health_routes, "_probe_reservation_index", _missing_index)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["reservation_index"] == {
        "status": "failed",
        "error": "index uq_promotion_badges_badge_application_unconsumed is missing",
    }


async def test_run_check_reports_timeout(monkeypatch) -> None:
    async def _slow() -> str | None:
        await asyncio.sleep(1)
        return None

    monkeypatch.setattr(health_routes, "CHECK_TIMEOUT_SECONDS", 0.01)

    result = await health_routes._run_check("slow", _slow)

    assert result["status"] == "failed"
    assert "timed out" in result["error"]
