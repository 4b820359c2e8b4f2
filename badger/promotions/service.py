from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Literal
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from badger.badges.service import BadgeApplicationService
from badger.core.actors import Actor, ActorRole, is_actor_allowed
from badger.core.errors import InputValidationError
from badger.db.models.promotions import Promotion
from badger.db.repo.promotion_badges_repo import PromotionBadgesRepo
from badger.db.repo.promotion_templates_repo import PromotionTemplatesRepo
from badger.db.repo.promotions_repo import PromotionsRepo
from badger.promotions.constants import (
    PROMOTION_BADGE_BATCH_MAX_SIZE,
    PROMOTION_LIST_DEFAULT_LIMIT,
    PROMOTION_REJECT_REASON_MAX_LENGTH,
    PromotionAction,
    PromotionPath,
    PromotionStatus,
)
from badger.promotions.errors import (
    PromotionForbiddenError,
    PromotionNotFoundError,
    PromotionTemplateInactiveError,
    PromotionTemplateNotFoundError,
    ValidationFailedError,
)
from badger.promotions.ledger import ReservationLedger
from badger.promotions.rules import ReservedBadge, evaluate_rules, load_snapshot_rules
from badger.promotions.transitions import PROMOTION_ACTION_ROLES, next_promotion_status
from badger.promotions.types import (
    PromotionBadgesChange,
    PromotionDetails,
    PromotionValidationResult,
    ReservedBadgeSummary,
)

logger = structlog.get_logger(__name__)

LockMode = Literal["none", "share", "update"]


def _normalize_batch(badge_application_ids: Sequence[UUID]) -> list[UUID]:
    unique_ids = list(dict.fromkeys(badge_application_ids))
    if not unique_ids:
        raise InputValidationError(
            "At least one badge application id is required",
            field="badge_application_ids",
        )
    if len(unique_ids) > PROMOTION_BADGE_BATCH_MAX_SIZE:
        raise InputValidationError(
            f"At most {PROMOTION_BADGE_BATCH_MAX_SIZE} badge application ids are allowed",
            field="badge_application_ids",
        )
    return unique_ids


class PromotionService:
    @staticmethod
    async def _load(
        session: AsyncSession,
        promotion_id: UUID,
        *,
        lock: LockMode,
    ) -> Promotion:
        if lock == "update":
            promotion = await PromotionsRepo.get_by_id_for_update(session, promotion_id)
        elif lock == "share":
            promotion = await PromotionsRepo.get_by_id_for_share(session, promotion_id)
        else:
            promotion = await PromotionsRepo.get_by_id(session, promotion_id)
        if promotion is None:
            raise PromotionNotFoundError
        return promotion

    @staticmethod
    def _authorize(promotion: Promotion, *, actor: Actor, role: ActorRole, action: str) -> None:
        if not is_actor_allowed(role, actor=actor, owner_id=promotion.created_by):
            raise PromotionForbiddenError(f"Not allowed to {action} this promotion")

    @staticmethod
    async def _prepare(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
        action: PromotionAction,
        lock: LockMode,
    ) -> tuple[Promotion, PromotionStatus | None]:
        promotion = await PromotionService._load(session, promotion_id, lock=lock)
        PromotionService._authorize(
            promotion,
            actor=actor,
            role=PROMOTION_ACTION_ROLES[action],
            action=action.value,
        )
        return promotion, next_promotion_status(promotion.status, action)

    @staticmethod
    async def _evaluate(session: AsyncSession, promotion: Promotion) -> PromotionValidationResult:
        reserved = await ReservationLedger.list_for_promotion(session, promotion_id=promotion.id)
        badges = [
            ReservedBadge(
                badge_application_id=application.id,
                category=application.badge_category,
                level=application.badge_level,
            )
            for reservation, application in reserved
            if not reservation.consumed
        ]
        report = evaluate_rules(load_snapshot_rules(promotion.rules_snapshot), badges)
        return PromotionValidationResult(promotion_id=promotion.id, report=report)

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        actor: Actor,
        template_id: UUID,
        now_utc: datetime | None = None,
    ) -> Promotion:
        now_utc = now_utc or datetime.now(timezone.utc)
        template = await PromotionTemplatesRepo.get_by_id_for_share(session, template_id)
        if template is None:
            raise PromotionTemplateNotFoundError
        if not template.is_active:
            raise PromotionTemplateInactiveError

        promotion = Promotion(
            id=uuid4(),
            template_id=template.id,
            created_by=actor.user_id,
            path=template.path,
            from_level=template.from_level,
            to_level=template.to_level,
            rules_snapshot=list(template.rules),
            status=PromotionStatus.DRAFT.value,
            created_at=now_utc,
            updated_at=now_utc,
        )
        await PromotionsRepo.create(session, promotion=promotion)
        logger.info(
            "promotion_created",
            promotion_id=str(promotion.id),
            template_id=str(template.id),
            actor_id=str(actor.user_id),
        )
        return promotion

    @staticmethod
    async def get(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
    ) -> PromotionDetails:
        promotion = await PromotionService._load(session, promotion_id, lock="none")
        PromotionService._authorize(
            promotion, actor=actor, role=ActorRole.OWNER_OR_ADMIN, action="view"
        )
        reserved = await ReservationLedger.list_for_promotion(session, promotion_id=promotion.id)
        return PromotionDetails(
            promotion=promotion,
            badges=[
                ReservedBadgeSummary(
                    badge_application_id=application.id,
                    catalog_badge_id=application.catalog_badge_id,
                    category=application.badge_category,
                    level=application.badge_level,
                    status=application.status,
                    assigned_at=reservation.assigned_at,
                    assigned_by=reservation.assigned_by,
                    consumed=reservation.consumed,
                )
                for reservation, application in reserved
            ],
        )

    @staticmethod
    async def list_for_actor(
        session: AsyncSession,
        *,
        actor: Actor,
        status: PromotionStatus | None = None,
        created_by: UUID | None = None,
        path: PromotionPath | None = None,
        template_id: UUID | None = None,
        limit: int = PROMOTION_LIST_DEFAULT_LIMIT,
    ) -> list[Promotion]:
        if not actor.is_admin:
            if created_by is not None and created_by != actor.user_id:
                raise PromotionForbiddenError(
                    "Only administrators can list other users' promotions"
                )
            created_by = actor.user_id
        return await PromotionsRepo.list_filtered(
            session,
            created_by=created_by,
            status=status.value if status is not None else None,
            path=path.value if path is not None else None,
            template_id=template_id,
            limit=limit,
        )

    @staticmethod
    async def add_badges(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
        badge_application_ids: Sequence[UUID],
        now_utc: datetime | None = None,
    ) -> PromotionBadgesChange:
        """Reserve every listed badge application or none of them.

        Ids already reserved by this promotion are reported as unchanged. Any
        failure propagates and the caller's transaction rolls the batch back.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        promotion, _ = await PromotionService._prepare(
            session,
            promotion_id=promotion_id,
            actor=actor,
            action=PromotionAction.ADD_BADGE,
            lock="share",
        )
        requested_ids = _normalize_batch(badge_application_ids)

        added_ids: list[UUID] = []
        unchanged_ids: list[UUID] = []
        for badge_application_id in requested_ids:
            existing = await PromotionBadgesRepo.get_for_promotion_and_badge(
                session,
                promotion_id=promotion.id,
                badge_application_id=badge_application_id,
            )
            if existing is not None:
                unchanged_ids.append(badge_application_id)
                continue
            result = await ReservationLedger.reserve(
                session,
                promotion=promotion,
                badge_application_id=badge_application_id,
                actor=actor,
                now_utc=now_utc,
            )
            if result.created:
                added_ids.append(badge_application_id)
            else:
                unchanged_ids.append(badge_application_id)

        promotion.updated_at = now_utc
        await session.flush()
        return PromotionBadgesChange(
            promotion_id=promotion.id,
            badge_application_ids=added_ids,
            unchanged_ids=unchanged_ids,
        )

    @staticmethod
    async def remove_badges(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
        badge_application_ids: Sequence[UUID],
        now_utc: datetime | None = None,
    ) -> PromotionBadgesChange:
        now_utc = now_utc or datetime.now(timezone.utc)
        promotion, _ = await PromotionService._prepare(
            session,
            promotion_id=promotion_id,
            actor=actor,
            action=PromotionAction.REMOVE_BADGE,
            lock="share",
        )
        requested_ids = _normalize_batch(badge_application_ids)

        for badge_application_id in requested_ids:
            await ReservationLedger.release(
                session,
                promotion=promotion,
                badge_application_id=badge_application_id,
            )

        promotion.updated_at = now_utc
        await session.flush()
        return PromotionBadgesChange(promotion_id=promotion.id, badge_application_ids=requested_ids)

    @staticmethod
    async def validate(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
    ) -> PromotionValidationResult:
        promotion = await PromotionService._load(session, promotion_id, lock="none")
        PromotionService._authorize(
            promotion, actor=actor, role=ActorRole.OWNER_OR_ADMIN, action="validate"
        )
        return await PromotionService._evaluate(session, promotion)

    @staticmethod
    async def submit(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
        now_utc: datetime | None = None,
    ) -> Promotion:
        now_utc = now_utc or datetime.now(timezone.utc)
        promotion, next_status = await PromotionService._prepare(
            session,
            promotion_id=promotion_id,
            actor=actor,
            action=PromotionAction.SUBMIT,
            lock="update",
        )
        result = await PromotionService._evaluate(session, promotion)
        if not result.report.is_valid:
            logger.info(
                "promotion_submit_validation_failed",
                promotion_id=str(promotion.id),
                missing=result.report.missing,
            )
            raise ValidationFailedError(missing=result.report.missing)

        promotion.status = next_status.value
        promotion.submitted_at = now_utc
        promotion.updated_at = now_utc
        await session.flush()
        logger.info(
            "promotion_submitted",
            promotion_id=str(promotion.id),
            actor_id=str(actor.user_id),
        )
        return promotion

    @staticmethod
    async def approve(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
        now_utc: datetime | None = None,
    ) -> Promotion:
        """Approve a submitted promotion and consume its reservations.

        Every step runs in the caller's transaction; an error at any point
        leaves badges, reservations and the promotion untouched.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        promotion, next_status = await PromotionService._prepare(
            session,
            promotion_id=promotion_id,
            actor=actor,
            action=PromotionAction.APPROVE,
            lock="update",
        )

        reserved = await ReservationLedger.list_for_promotion(session, promotion_id=promotion.id)
        application_ids = [
            application.id for reservation, application in reserved if not reservation.consumed
        ]
        await BadgeApplicationService.mark_used_in_promotion(
            session,
            application_ids=application_ids,
            now_utc=now_utc,
        )
        await ReservationLedger.consume_all(session, promotion_id=promotion.id)

        promotion.status = next_status.value
        promotion.approved_at = now_utc
        promotion.approved_by = actor.user_id
        promotion.updated_at = now_utc
        await session.flush()
        logger.info(
            "promotion_approved",
            promotion_id=str(promotion.id),
            approver_id=str(actor.user_id),
            badges_total=len(application_ids),
        )
        return promotion

    @staticmethod
    async def reject(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
        reason: str,
        now_utc: datetime | None = None,
    ) -> Promotion:
        now_utc = now_utc or datetime.now(timezone.utc)
        promotion, next_status = await PromotionService._prepare(
            session,
            promotion_id=promotion_id,
            actor=actor,
            action=PromotionAction.REJECT,
            lock="update",
        )
        normalized_reason = reason.strip()
        if not normalized_reason:
            raise InputValidationError("Reject reason is required", field="reject_reason")
        if len(normalized_reason) > PROMOTION_REJECT_REASON_MAX_LENGTH:
            raise InputValidationError(
                f"Reject reason must not exceed {PROMOTION_REJECT_REASON_MAX_LENGTH} characters",
                field="reject_reason",
            )

        promotion.status = next_status.value
        promotion.rejected_at = now_utc
        promotion.rejected_by = actor.user_id
        promotion.reject_reason = normalized_reason
        promotion.updated_at = now_utc
        await session.flush()
        released_ids = await ReservationLedger.release_all(session, promotion_id=promotion.id)
        logger.info(
            "promotion_rejected",
            promotion_id=str(promotion.id),
            reviewer_id=str(actor.user_id),
            released_total=len(released_ids),
        )
        return promotion

    @staticmethod
    async def delete(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        actor: Actor,
    ) -> UUID:
        promotion, _ = await PromotionService._prepare(
            session,
            promotion_id=promotion_id,
            actor=actor,
            action=PromotionAction.DELETE,
            lock="update",
        )
        released_ids = await ReservationLedger.release_all(session, promotion_id=promotion.id)
        await PromotionsRepo.delete(session, promotion=promotion)
        logger.info(
            "promotion_deleted",
            promotion_id=str(promotion_id),
            actor_id=str(actor.user_id),
            released_total=len(released_ids),
        )
        return promotion_id
