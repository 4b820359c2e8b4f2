from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from badger.core.actors import Actor
from badger.db.models.promotions import Promotion
from badger.promotions.constants import (
    PROMOTION_LIST_DEFAULT_LIMIT,
    PROMOTION_LIST_MAX_LIMIT,
    PromotionPath,
    PromotionStatus,
)
from badger.promotions.service import PromotionService
from badger.promotions.types import (
    PromotionBadgesChange,
    PromotionValidationResult,
    ReservedBadgeSummary,
)

from .helpers import run_operation
from .promotions_models import (
    PromotionBadgesChangeResponse,
    PromotionBadgesRequest,
    PromotionCreateRequest,
    PromotionDeletedResponse,
    PromotionListResponse,
    PromotionMissingResponse,
    PromotionRejectRequest,
    PromotionRequirementResponse,
    PromotionReservedBadgeResponse,
    PromotionResponse,
    PromotionRuleModel,
    PromotionValidationResponse,
)

router = APIRouter(tags=["promotions"])


def _badge_as_response(summary: ReservedBadgeSummary) -> PromotionReservedBadgeResponse:
    return PromotionReservedBadgeResponse(
        badge_application_id=summary.badge_application_id,
        catalog_badge_id=summary.catalog_badge_id,
        category=summary.category,
        level=summary.level,
        status=summary.status,
        assigned_at=summary.assigned_at,
        assigned_by=summary.assigned_by,
        consumed=summary.consumed,
    )


def _as_response(
    promotion: Promotion,
    *,
    badges: list[ReservedBadgeSummary] | None = None,
) -> PromotionResponse:
    return PromotionResponse(
        id=promotion.id,
        template_id=promotion.template_id,
        created_by=promotion.created_by,
        path=promotion.path,
        from_level=promotion.from_level,
        to_level=promotion.to_level,
        rules=[PromotionRuleModel.model_validate(rule) for rule in promotion.rules_snapshot],
        status=promotion.status,
        submitted_at=promotion.submitted_at,
        approved_at=promotion.approved_at,
        approved_by=promotion.approved_by,
        rejected_at=promotion.rejected_at,
        rejected_by=promotion.rejected_by,
        reject_reason=promotion.reject_reason,
        created_at=promotion.created_at,
        updated_at=promotion.updated_at,
        badges=[_badge_as_response(badge) for badge in badges] if badges is not None else None,
    )


def _change_as_response(change: PromotionBadgesChange) -> PromotionBadgesChangeResponse:
    return PromotionBadgesChangeResponse(
        promotion_id=change.promotion_id,
        badge_application_ids=change.badge_application_ids,
        unchanged_ids=change.unchanged_ids,
    )


def _validation_as_response(result: PromotionValidationResult) -> PromotionValidationResponse:
    return PromotionValidationResponse(
        promotion_id=result.promotion_id,
        is_valid=result.report.is_valid,
        requirements=[
            PromotionRequirementResponse.model_validate(outcome.as_dict())
            for outcome in result.report.requirements
        ],
        missing=[
            PromotionMissingResponse.model_validate(shortfall)
            for shortfall in result.report.missing
        ],
    )


@router.post("/promotions", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED)
async def create_promotion(
    payload: PromotionCreateRequest,
    request: Request,
) -> PromotionResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionResponse:
        promotion = await PromotionService.create(
            session,
            actor=actor,
            template_id=payload.template_id,
        )
        return _as_response(promotion, badges=[])

    return await run_operation(request, _operation, operation_name="promotion_create")


@router.get("/promotions", response_model=PromotionListResponse)
async def list_promotions(
    request: Request,
    status_filter: PromotionStatus | None = Query(default=None, alias="status"),
    created_by: UUID | None = None,
    path: PromotionPath | None = None,
    template_id: UUID | None = None,
    limit: int = Query(default=PROMOTION_LIST_DEFAULT_LIMIT, ge=1, le=PROMOTION_LIST_MAX_LIMIT),
) -> PromotionListResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionListResponse:
        promotions = await PromotionService.list_for_actor(
            session,
            actor=actor,
            status=status_filter,
            created_by=created_by,
            path=path,
            template_id=template_id,
            limit=limit,
        )
        return PromotionListResponse(items=[_as_response(promotion) for promotion in promotions])

    return await run_operation(request, _operation, operation_name="promotion_list")


@router.get("/promotions/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(promotion_id: UUID, request: Request) -> PromotionResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionResponse:
        details = await PromotionService.get(session, promotion_id=promotion_id, actor=actor)
        return _as_response(details.promotion, badges=details.badges)

    return await run_operation(request, _operation, operation_name="promotion_get")


@router.delete("/promotions/{promotion_id}", response_model=PromotionDeletedResponse)
async def delete_promotion(
    promotion_id: UUID,
    request: Request,
) -> PromotionDeletedResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionDeletedResponse:
        deleted_id = await PromotionService.delete(
            session,
            promotion_id=promotion_id,
            actor=actor,
        )
        return PromotionDeletedResponse(id=deleted_id)

    return await run_operation(request, _operation, operation_name="promotion_delete")


@router.post("/promotions/{promotion_id}/badges", response_model=PromotionBadgesChangeResponse)
async def add_promotion_badges(
    promotion_id: UUID,
    payload: PromotionBadgesRequest,
    request: Request,
) -> PromotionBadgesChangeResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionBadgesChangeResponse:
        change = await PromotionService.add_badges(
            session,
            promotion_id=promotion_id,
            actor=actor,
            badge_application_ids=payload.badge_application_ids,
        )
        return _change_as_response(change)

    return await run_operation(request, _operation, operation_name="promotion_add_badges")


@router.delete("/promotions/{promotion_id}/badges", response_model=PromotionBadgesChangeResponse)
async def remove_promotion_badges(
    promotion_id: UUID,
    payload: PromotionBadgesRequest,
    request: Request,
) -> PromotionBadgesChangeResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionBadgesChangeResponse:
        change = await PromotionService.remove_badges(
            session,
            promotion_id=promotion_id,
            actor=actor,
            badge_application_ids=payload.badge_application_ids,
        )
        return _change_as_response(change)

    return await run_operation(request, _operation, operation_name="promotion_remove_badges")


@router.get("/promotions/{promotion_id}/validation", response_model=PromotionValidationResponse)
async def validate_promotion(
    promotion_id: UUID,
    request: Request,
) -> PromotionValidationResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionValidationResponse:
        result = await PromotionService.validate(
            session,
            promotion_id=promotion_id,
            actor=actor,
        )
        return _validation_as_response(result)

    return await run_operation(request, _operation, operation_name="promotion_validate")


@router.post("/promotions/{promotion_id}/submit", response_model=PromotionResponse)
async def submit_promotion(
    promotion_id: UUID,
    request: Request,
) -> PromotionResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionResponse:
        promotion = await PromotionService.submit(
            session,
            promotion_id=promotion_id,
            actor=actor,
        )
        return _as_response(promotion)

    return await run_operation(request, _operation, operation_name="promotion_submit")


@router.post("/promotions/{promotion_id}/approve", response_model=PromotionResponse)
async def approve_promotion(
    promotion_id: UUID,
    request: Request,
) -> PromotionResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionResponse:
        promotion = await PromotionService.approve(
            session,
            promotion_id=promotion_id,
            actor=actor,
        )
        return _as_response(promotion)

    return await run_operation(request, _operation, operation_name="promotion_approve")


@router.post("/promotions/{promotion_id}/reject", response_model=PromotionResponse)
async def reject_promotion(
    promotion_id: UUID,
    payload: PromotionRejectRequest,
    request: Request,
) -> PromotionResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionResponse:
        promotion = await PromotionService.reject(
            session,
            promotion_id=promotion_id,
            actor=actor,
            reason=payload.reject_reason,
        )
        return _as_response(promotion)

    return await run_operation(request, _operation, operation_name="promotion_reject")
