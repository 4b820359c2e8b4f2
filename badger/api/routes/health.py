from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from badger.db.models.promotion_badges import UNCONSUMED_RESERVATION_INDEX
from badger.db.session import SessionLocal

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

CHECK_TIMEOUT_SECONDS = 2.0
INDEX_EXISTS_SQL = text("SELECT 1 FROM pg_indexes WHERE indexname = :index_name")


def _check_result(error: str | None = None) -> dict[str, Any]:
    if error is None:
        return {"status": "ok"}
    return {"status": "failed", "error": error}


async def _run_check(name: str, probe: Callable[[], Awaitable[str | None]]) -> dict[str, Any]:
    try:
        error = await asyncio.wait_for(probe(), timeout=CHECK_TIMEOUT_SECONDS)
    except TimeoutError:
        error = f"timed out after {CHECK_TIMEOUT_SECONDS}s"
    except Exception as exc:
        error = str(exc)
    if error is not None:
        logger.warning("health_check_failed", check=name, error=error)
    return _check_result(error)


async def _probe_database() -> str | None:
    async with SessionLocal() as session:
        await session.execute(text("SELECT 1"))
    return None


async def _probe_reservation_index() -> str | None:
    async with SessionLocal() as session:
        found = await session.scalar(INDEX_EXISTS_SQL, {"index_name": UNCONSUMED_RESERVATION_INDEX})
    if found is None:
        return f"index {UNCONSUMED_RESERVATION_INDEX} is missing"
    return None


async def _check_database() -> dict[str, Any]:
    return await _run_check("database", _probe_database)


async def _check_reservation_index() -> dict[str, Any]:
    return await _run_check("reservation_index", _probe_reservation_index)


async def _collect_checks(*, include_schema: bool) -> dict[str, dict[str, Any]]:
    checks = {"database": await _check_database()}
    if include_schema and checks["database"]["status"] == "ok":
        checks["reservation_index"] = await _check_reservation_index()
    return checks


def _report(checks: dict[str, dict[str, Any]], *, ok_label: str, failed_label: str) -> JSONResponse:
    healthy = all(check["status"] == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_label if healthy else failed_label, "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    checks = await _collect_checks(include_schema=False)
    return _report(checks, ok_label="ok", failed_label="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    # readiness also requires the migrated schema that reservation exclusivity relies on
    checks = await _collect_checks(include_schema=True)
    return _report(checks, ok_label="ready", failed_label="not_ready")
