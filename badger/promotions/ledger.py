"""Reservation bookkeeping between promotions and accepted badge applications.

Exclusivity lives in the database: the partial unique index on
``promotion_badges(badge_application_id) WHERE consumed = false`` admits at
most one open reservation per badge application, so concurrent reserves are
resolved by the storage layer and the loser sees ``ReservationConflictError``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from badger.badges.constants import BadgeApplicationStatus
from badger.badges.errors import (
    BadgeApplicationInvalidStatusError,
    BadgeApplicationNotFoundError,
)
from badger.core.actors import Actor
from badger.db.models.badge_applications import BadgeApplication
from badger.db.models.promotion_badges import (
    PROMOTION_BADGE_PAIR_CONSTRAINT,
    UNCONSUMED_RESERVATION_INDEX,
    PromotionBadge,
)
from badger.db.models.promotions import Promotion
from badger.db.repo.badge_applications_repo import BadgeApplicationsRepo
from badger.db.repo.promotion_badges_repo import PromotionBadgesRepo
from badger.promotions.constants import PromotionStatus
from badger.promotions.errors import (
    PromotionInvalidStatusError,
    ReservationConflictError,
    ReservationNotFoundError,
)
from badger.promotions.types import ReservationResult

logger = structlog.get_logger(__name__)

RESERVATION_CONSTRAINTS = (UNCONSUMED_RESERVATION_INDEX, PROMOTION_BADGE_PAIR_CONSTRAINT)


def _violated_constraint(exc: IntegrityError) -> str | None:
    constraint_name = getattr(getattr(exc.orig, "__cause__", None), "constraint_name", None)
    if constraint_name is not None:
        return constraint_name
    message = str(exc.orig)
    for known_name in RESERVATION_CONSTRAINTS:
        if known_name in message:
            return known_name
    return None


def _assert_draft(promotion: Promotion, *, action: str) -> None:
    if promotion.status != PromotionStatus.DRAFT.value:
        raise PromotionInvalidStatusError(current_status=promotion.status, action=action)


class ReservationLedger:
    @staticmethod
    async def reserve(
        session: AsyncSession,
        *,
        promotion: Promotion,
        badge_application_id: UUID,
        actor: Actor,
        now_utc: datetime | None = None,
    ) -> ReservationResult:
        """Reserve one accepted badge application for a draft promotion.

        The caller is expected to hold a lock on the promotion row and to have
        checked that ``actor`` may modify it. Reserving a badge this promotion
        already holds returns the existing row with ``created=False``.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        _assert_draft(promotion, action="add_badge")

        applications = await BadgeApplicationsRepo.list_by_ids_for_share(
            session, [badge_application_id]
        )
        if not applications:
            raise BadgeApplicationNotFoundError
        application = applications[0]
        if application.status != BadgeApplicationStatus.ACCEPTED.value:
            raise BadgeApplicationInvalidStatusError(
                current_status=application.status,
                action="reserve",
                message="Only accepted badge applications can be reserved",
            )

        reservation = PromotionBadge(
            id=uuid4(),
            promotion_id=promotion.id,
            badge_application_id=badge_application_id,
            assigned_at=now_utc,
            assigned_by=actor.user_id,
            consumed=False,
        )
        try:
            async with session.begin_nested():
                await PromotionBadgesRepo.create(session, reservation=reservation)
        except IntegrityError as exc:
            constraint_name = _violated_constraint(exc)
            if constraint_name not in RESERVATION_CONSTRAINTS:
                raise
            # a concurrent request of the same promotion may have inserted the row first
            existing = await PromotionBadgesRepo.get_for_promotion_and_badge(
                session,
                promotion_id=promotion.id,
                badge_application_id=badge_application_id,
            )
            if existing is not None:
                logger.info(
                    "reservation_already_held",
                    promotion_id=str(promotion.id),
                    badge_application_id=str(badge_application_id),
                )
                return ReservationResult(reservation=existing, created=False)
            if constraint_name != UNCONSUMED_RESERVATION_INDEX:
                raise
            owning_promotion_id = await ReservationLedger.holder_of(
                session, badge_application_id=badge_application_id
            )
            logger.info(
                "reservation_conflict",
                promotion_id=str(promotion.id),
                badge_application_id=str(badge_application_id),
                owning_promotion_id=str(owning_promotion_id) if owning_promotion_id else None,
            )
            raise ReservationConflictError(
                badge_application_id=badge_application_id,
                owning_promotion_id=owning_promotion_id,
            ) from exc

        logger.info(
            "reservation_created",
            promotion_id=str(promotion.id),
            badge_application_id=str(badge_application_id),
            actor_id=str(actor.user_id),
        )
        return ReservationResult(reservation=reservation, created=True)

    @staticmethod
    async def release(
        session: AsyncSession,
        *,
        promotion: Promotion,
        badge_application_id: UUID,
    ) -> None:
        _assert_draft(promotion, action="remove_badge")
        deleted = await PromotionBadgesRepo.delete_for_promotion_and_badge(
            session,
            promotion_id=promotion.id,
            badge_application_id=badge_application_id,
        )
        if deleted == 0:
            raise ReservationNotFoundError(badge_application_id=badge_application_id)
        logger.info(
            "reservation_released",
            promotion_id=str(promotion.id),
            badge_application_id=str(badge_application_id),
        )

    @staticmethod
    async def consume_all(session: AsyncSession, *, promotion_id: UUID) -> list[UUID]:
        consumed_ids = await PromotionBadgesRepo.mark_consumed_for_promotion(
            session, promotion_id=promotion_id
        )
        logger.info(
            "reservations_consumed",
            promotion_id=str(promotion_id),
            consumed_total=len(consumed_ids),
        )
        return consumed_ids

    @staticmethod
    async def release_all(session: AsyncSession, *, promotion_id: UUID) -> list[UUID]:
        released_ids = await PromotionBadgesRepo.delete_unconsumed_for_promotion(
            session, promotion_id=promotion_id
        )
        logger.info(
            "reservations_released",
            promotion_id=str(promotion_id),
            released_total=len(released_ids),
        )
        return released_ids

    @staticmethod
    async def list_for_promotion(
        session: AsyncSession,
        *,
        promotion_id: UUID,
    ) -> list[tuple[PromotionBadge, BadgeApplication]]:
        return await PromotionBadgesRepo.list_reserved_applications(
            session, promotion_id=promotion_id
        )

    @staticmethod
    async def holder_of(session: AsyncSession, *, badge_application_id: UUID) -> UUID | None:
        return await PromotionBadgesRepo.get_unconsumed_holder_promotion_id(
            session, badge_application_id=badge_application_id
        )
