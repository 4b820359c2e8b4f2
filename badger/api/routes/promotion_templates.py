from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from badger.core.actors import Actor
from badger.db.models.promotion_templates import PromotionTemplate
from badger.promotions.constants import (
    PROMOTION_LIST_DEFAULT_LIMIT,
    PROMOTION_LIST_MAX_LIMIT,
    PromotionPath,
)
from badger.promotions.templates import PromotionTemplateService

from .helpers import run_operation
from .promotions_models import (
    PromotionRuleModel,
    PromotionTemplateCreateRequest,
    PromotionTemplateDeletedResponse,
    PromotionTemplateListResponse,
    PromotionTemplateResponse,
    PromotionTemplateUpdateRequest,
)

router = APIRouter(tags=["promotion-templates"])


def _as_response(template: PromotionTemplate) -> PromotionTemplateResponse:
    return PromotionTemplateResponse(
        id=template.id,
        name=template.name,
        path=template.path,
        from_level=template.from_level,
        to_level=template.to_level,
        rules=[PromotionRuleModel.model_validate(rule) for rule in template.rules],
        is_active=template.is_active,
        created_by=template.created_by,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


@router.post(
    "/promotion-templates",
    response_model=PromotionTemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_promotion_template(
    payload: PromotionTemplateCreateRequest,
    request: Request,
) -> PromotionTemplateResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionTemplateResponse:
        template = await PromotionTemplateService.create(
            session,
            actor=actor,
            name=payload.name,
            path=payload.path,
            from_level=payload.from_level,
            to_level=payload.to_level,
            rules=[rule.model_dump() for rule in payload.rules],
        )
        return _as_response(template)

    return await run_operation(request, _operation, operation_name="promotion_template_create")


@router.get("/promotion-templates", response_model=PromotionTemplateListResponse)
async def list_promotion_templates(
    request: Request,
    path: PromotionPath | None = None,
    from_level: str | None = Query(default=None, min_length=1, max_length=16),
    to_level: str | None = Query(default=None, min_length=1, max_length=16),
    is_active: bool = True,
    limit: int = Query(default=PROMOTION_LIST_DEFAULT_LIMIT, ge=1, le=PROMOTION_LIST_MAX_LIMIT),
) -> PromotionTemplateListResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionTemplateListResponse:
        templates = await PromotionTemplateService.list_templates(
            session,
            path=path,
            from_level=from_level,
            to_level=to_level,
            is_active=is_active,
            limit=limit,
        )
        return PromotionTemplateListResponse(
            items=[_as_response(template) for template in templates]
        )

    return await run_operation(request, _operation, operation_name="promotion_template_list")


@router.get("/promotion-templates/{template_id}", response_model=PromotionTemplateResponse)
async def get_promotion_template(
    template_id: UUID,
    request: Request,
) -> PromotionTemplateResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionTemplateResponse:
        template = await PromotionTemplateService.get(session, template_id=template_id)
        return _as_response(template)

    return await run_operation(request, _operation, operation_name="promotion_template_get")


@router.put("/promotion-templates/{template_id}", response_model=PromotionTemplateResponse)
async def update_promotion_template(
    template_id: UUID,
    payload: PromotionTemplateUpdateRequest,
    request: Request,
) -> PromotionTemplateResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionTemplateResponse:
        template = await PromotionTemplateService.update(
            session,
            template_id=template_id,
            actor=actor,
            name=payload.name,
            path=payload.path,
            from_level=payload.from_level,
            to_level=payload.to_level,
            rules=(
                [rule.model_dump() for rule in payload.rules]
                if payload.rules is not None
                else None
            ),
        )
        return _as_response(template)

    return await run_operation(request, _operation, operation_name="promotion_template_update")


@router.delete(
    "/promotion-templates/{template_id}",
    response_model=PromotionTemplateDeletedResponse,
)
async def delete_promotion_template(
    template_id: UUID,
    request: Request,
) -> PromotionTemplateDeletedResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionTemplateDeletedResponse:
        deleted_id = await PromotionTemplateService.delete(
            session,
            template_id=template_id,
            actor=actor,
        )
        return PromotionTemplateDeletedResponse(id=deleted_id)

    return await run_operation(request, _operation, operation_name="promotion_template_delete")


@router.post(
    "/promotion-templates/{template_id}/deactivate",
    response_model=PromotionTemplateResponse,
)
async def deactivate_promotion_template(
    template_id: UUID,
    request: Request,
) -> PromotionTemplateResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> PromotionTemplateResponse:
        template = await PromotionTemplateService.deactivate(
            session,
            template_id=template_id,
            actor=actor,
        )
        return _as_response(template)

    return await run_operation(
        request, _operation, operation_name="promotion_template_deactivate"
    )
