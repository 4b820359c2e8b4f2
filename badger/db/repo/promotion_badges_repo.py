from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from badger.db.models.badge_applications import BadgeApplication
from badger.db.models.promotion_badges import PromotionBadge


class PromotionBadgesRepo:
    @staticmethod
    async def create(session: AsyncSession, *, reservation: PromotionBadge) -> PromotionBadge:
        session.add(reservation)
        await session.flush()
        return reservation

    @staticmethod
    async def get_for_promotion_and_badge(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        badge_application_id: UUID,
    ) -> PromotionBadge | None:
        stmt = select(PromotionBadge).where(
            PromotionBadge.promotion_id == promotion_id,
            PromotionBadge.badge_application_id == badge_application_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_unconsumed_holder_promotion_id(
        session: AsyncSession,
        *,
        badge_application_id: UUID,
    ) -> UUID | None:
        stmt = select(PromotionBadge.promotion_id).where(
            PromotionBadge.badge_application_id == badge_application_id,
            PromotionBadge.consumed.is_(False),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_reserved_applications(
        session: AsyncSession,
        *,
        promotion_id: UUID,
    ) -> list[tuple[PromotionBadge, BadgeApplication]]:
        stmt = (
            select(PromotionBadge, BadgeApplication)
            .join(BadgeApplication, BadgeApplication.id == PromotionBadge.badge_application_id)
            .where(PromotionBadge.promotion_id == promotion_id)
            .order_by(PromotionBadge.assigned_at.asc(), PromotionBadge.id.asc())
        )
        result = await session.execute(stmt)
        return [(reservation, application) for reservation, application in result.all()]

    @staticmethod
    async def delete_for_promotion_and_badge(
        session: AsyncSession,
        *,
        promotion_id: UUID,
        badge_application_id: UUID,
    ) -> int:
        stmt = delete(PromotionBadge).where(
            PromotionBadge.promotion_id == promotion_id,
            PromotionBadge.badge_application_id == badge_application_id,
            PromotionBadge.consumed.is_(False),
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def mark_consumed_for_promotion(session: AsyncSession, *, promotion_id: UUID) -> list[UUID]:
        stmt = (
            update(PromotionBadge)
            .where(
                PromotionBadge.promotion_id == promotion_id,
                PromotionBadge.consumed.is_(False),
            )
            .values(consumed=True)
            .returning(PromotionBadge.badge_application_id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_unconsumed_for_promotion(
        session: AsyncSession,
        *,
        promotion_id: UUID,
    ) -> list[UUID]:
        stmt = (
            delete(PromotionBadge)
            .where(
                PromotionBadge.promotion_id == promotion_id,
                PromotionBadge.consumed.is_(False),
            )
            .returning(PromotionBadge.badge_application_id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_unconsumed(session: AsyncSession) -> int:
        stmt = select(func.count(PromotionBadge.id)).where(PromotionBadge.consumed.is_(False))
        return int((await session.scalar(stmt)) or 0)
