from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from badger.core.actors import Actor
from badger.core.config import get_settings
from badger.core.errors import BadgerError, InputValidationError, UnauthorizedError
from badger.db.session import SessionLocal
from badger.services.actor_auth import resolve_actor

logger = structlog.get_logger(__name__)

ResponseT = TypeVar("ResponseT")
Operation = Callable[[AsyncSession, Actor], Awaitable[ResponseT]]


def _resolve_request_actor(request: Request) -> Actor:
    try:
        return resolve_actor(request, expected_token=get_settings().internal_api_token)
    except UnauthorizedError as exc:
        logger.warning(
            "api_auth_failed",
            path=request.url.path,
            reason=exc.message,
        )
        raise


def error_response(exc: BadgerError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_payload())


def _error_field(location: Sequence[str | int]) -> str:
    # drop the "body" / "path" / "query" prefix FastAPI puts in front of the field
    parts = [str(part) for part in location[1:]] or [str(part) for part in location]
    return ".".join(parts)


async def request_validation_error_response(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {"field": _error_field(error.get("loc", ())), "message": str(error.get("msg", ""))}
        for error in exc.errors()
    ]
    logger.info(
        "api_request_invalid",
        path=request.url.path,
        fields=[detail["field"] for detail in details],
    )
    return error_response(InputValidationError("Invalid request", details=details))


async def run_operation(
    request: Request,
    operation: Operation[ResponseT],
    *,
    operation_name: str,
) -> ResponseT | JSONResponse:
    """Run ``operation`` for the request actor inside one transaction.

    Domain errors roll the transaction back and are rendered with their code;
    anything else is logged and reported as ``internal_error``.
    """
    try:
        actor = _resolve_request_actor(request)
        async with SessionLocal.begin() as session:
            return await operation(session, actor)
    except BadgerError as exc:
        if exc.http_status >= 500:
            logger.error("api_operation_failed", operation=operation_name, error=exc.code)
        else:
            logger.info("api_operation_rejected", operation=operation_name, error=exc.code)
        return error_response(exc)
    except Exception:
        logger.exception("api_operation_crashed", operation=operation_name)
        return error_response(BadgerError())
