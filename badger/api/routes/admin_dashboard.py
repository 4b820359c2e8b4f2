from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from badger.badges.constants import BadgeApplicationStatus
from badger.core.actors import Actor
from badger.core.errors import ForbiddenError
from badger.db.repo.badge_applications_repo import BadgeApplicationsRepo
from badger.db.repo.promotion_badges_repo import PromotionBadgesRepo
from badger.db.repo.promotions_repo import PromotionsRepo
from badger.promotions.constants import PromotionStatus

from .helpers import run_operation
from .promotions_models import AdminDashboardResponse

router = APIRouter(tags=["admin"])


def _with_all_statuses(counts: dict[str, int], statuses: type[Enum]) -> dict[str, int]:
    return {status.value: counts.get(status.value, 0) for status in statuses}


@router.get("/admin/dashboard", response_model=AdminDashboardResponse)
async def get_admin_dashboard(request: Request) -> AdminDashboardResponse | JSONResponse:
    async def _operation(session: AsyncSession, actor: Actor) -> AdminDashboardResponse:
        if not actor.is_admin:
            raise ForbiddenError("Only administrators can view the dashboard")

        application_counts = await BadgeApplicationsRepo.count_by_status(session)
        promotion_counts = await PromotionsRepo.count_by_status(session)
        active_reservations = await PromotionBadgesRepo.count_unconsumed(session)

        return AdminDashboardResponse(
            generated_at=datetime.now(timezone.utc),
            badge_applications_total=sum(application_counts.values()),
            badge_applications_by_status=_with_all_statuses(
                application_counts, BadgeApplicationStatus
            ),
            promotions_total=sum(promotion_counts.values()),
            promotions_by_status=_with_all_statuses(promotion_counts, PromotionStatus),
            active_reservations_total=active_reservations,
        )

    return await run_operation(request, _operation, operation_name="admin_dashboard")
