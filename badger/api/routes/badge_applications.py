from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from badger.badges.constants import (
    BADGE_APPLICATION_LIST_DEFAULT_LIMIT,
    BADGE_APPLICATION_LIST_MAX_LIMIT,
    BadgeApplicationStatus,
)
from badger.badges.service import BadgeApplicationService
from badger.core.actors import Actor
from badger.db.models.badge_applications import BadgeApplication

from .badge_applications_models import (
    BadgeApplicationCreateRequest,
    BadgeApplicationDeletedResponse,
    BadgeApplicationListResponse,
    BadgeApplicationResponse,
    BadgeApplicationReviewRequest,
    BadgeApplicationUpdateRequest,
)
from .helpers import run_operation

router = APIRouter(tags=["badge-applications"])


def _as_response(application: BadgeApplication) -> BadgeApplicationResponse:
    return BadgeApplicationResponse(
        id=application.id,
        applicant_id=application.applicant_id,
        catalog_badge_id=application.catalog_badge_id,
        catalog_badge_version=application.catalog_badge_version,
        badge_category=application.badge_category,
        badge_level=application.badge_level,
        date_of_application=application.date_of_application,
        date_of_fulfillment=application.date_of_fulfillment,
        reason=application.reason,
        status=application.status,
        submitted_at=application.submitted_at,
        reviewed_by=application.reviewed_by,
        reviewed_at=application.reviewed_at,
        review_reason=application.review_reason,
        created_at=application.created_at,
        updated_at=application.updated_at,
    )


@router.post(
    "/badge-applications",
    response_model=BadgeApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_badge_application(
    payload: BadgeApplicationCreateRequest,
    request: Request,
) -> BadgeApplicationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationResponse:
        application = await BadgeApplicationService.create_draft(
            session,
            actor=actor,
            catalog_badge_id=payload.catalog_badge_id,
            date_of_application=payload.date_of_application,
            date_of_fulfillment=payload.date_of_fulfillment,
            reason=payload.reason,
        )
        return _as_response(application)

    return await run_operation(request, _operation, operation_name="badge_application_create")


@router.get("/badge-applications", response_model=BadgeApplicationListResponse)
async def list_badge_applications(
    request: Request,
    status_filter: BadgeApplicationStatus | None = Query(default=None, alias="status"),
    applicant_id: UUID | None = None,
    catalog_badge_id: UUID | None = None,
    limit: int = Query(
        default=BADGE_APPLICATION_LIST_DEFAULT_LIMIT,
        ge=1,
        le=BADGE_APPLICATION_LIST_MAX_LIMIT,
    ),
) -> BadgeApplicationListResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationListResponse:
        applications = await BadgeApplicationService.list_for_actor(
            session,
            actor=actor,
            status=status_filter,
            applicant_id=applicant_id,
            catalog_badge_id=catalog_badge_id,
            limit=limit,
        )
        return BadgeApplicationListResponse(
            items=[_as_response(application) for application in applications]
        )

    return await run_operation(request, _operation, operation_name="badge_application_list")


@router.get("/badge-applications/{application_id}", response_model=BadgeApplicationResponse)
async def get_badge_application(
    application_id: UUID,
    request: Request,
) -> BadgeApplicationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationResponse:
        application = await BadgeApplicationService.get(
            session,
            application_id=application_id,
            actor=actor,
        )
        return _as_response(application)

    return await run_operation(request, _operation, operation_name="badge_application_get")


@router.patch("/badge-applications/{application_id}", response_model=BadgeApplicationResponse)
async def update_badge_application(
    application_id: UUID,
    payload: BadgeApplicationUpdateRequest,
    request: Request,
) -> BadgeApplicationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationResponse:
        application = await BadgeApplicationService.update_draft(
            session,
            application_id=application_id,
            actor=actor,
            catalog_badge_id=payload.catalog_badge_id,
            date_of_application=payload.date_of_application,
            date_of_fulfillment=payload.date_of_fulfillment,
            reason=payload.reason,
        )
        return _as_response(application)

    return await run_operation(request, _operation, operation_name="badge_application_update")


@router.delete(
    "/badge-applications/{application_id}",
    response_model=BadgeApplicationDeletedResponse,
)
async def delete_badge_application(
    application_id: UUID,
    request: Request,
) -> BadgeApplicationDeletedResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationDeletedResponse:
        deleted_id = await BadgeApplicationService.delete(
            session,
            application_id=application_id,
            actor=actor,
        )
        return BadgeApplicationDeletedResponse(id=deleted_id)

    return await run_operation(request, _operation, operation_name="badge_application_delete")


@router.post(
    "/badge-applications/{application_id}/submit",
    response_model=BadgeApplicationResponse,
)
async def submit_badge_application(
    application_id: UUID,
    request: Request,
) -> BadgeApplicationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationResponse:
        application = await BadgeApplicationService.submit(
            session,
            application_id=application_id,
            actor=actor,
        )
        return _as_response(application)

    return await run_operation(request, _operation, operation_name="badge_application_submit")


@router.post(
    "/badge-applications/{application_id}/accept",
    response_model=BadgeApplicationResponse,
)
async def accept_badge_application(
    application_id: UUID,
    request: Request,
    payload: BadgeApplicationReviewRequest | None = None,
) -> BadgeApplicationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationResponse:
        application = await BadgeApplicationService.accept(
            session,
            application_id=application_id,
            actor=actor,
            note=payload.decision_note if payload is not None else None,
        )
        return _as_response(application)

    return await run_operation(request, _operation, operation_name="badge_application_accept")


@router.post(
    "/badge-applications/{application_id}/reject",
    response_model=BadgeApplicationResponse,
)
async def reject_badge_application(
    application_id: UUID,
    request: Request,
    payload: BadgeApplicationReviewRequest | None = None,
) -> BadgeApplicationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationResponse:
        application = await BadgeApplicationService.reject(
            session,
            application_id=application_id,
            actor=actor,
            note=payload.decision_note if payload is not None else None,
        )
        return _as_response(application)

    return await run_operation(request, _operation, operation_name="badge_application_reject")


@router.post(
    "/badge-applications/{application_id}/reopen",
    response_model=BadgeApplicationResponse,
)
async def reopen_badge_application(
    application_id: UUID,
    request: Request,
) -> BadgeApplicationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> BadgeApplicationResponse:
        application = await BadgeApplicationService.reopen(
            session,
            application_id=application_id,
            actor=actor,
        )
        return _as_response(application)

    return await run_operation(request, _operation, operation_name="badge_application_reopen")
