from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from badger.db.models.promotions import Promotion


class PromotionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, promotion_id: UUID) -> Promotion | None:
        return await session.get(Promotion, promotion_id)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        promotion_id: UUID,
    ) -> Promotion | None:
        stmt = select(Promotion).where(Promotion.id == promotion_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_share(
        session: AsyncSession,
        promotion_id: UUID,
    ) -> Promotion | None:
        stmt = select(Promotion).where(Promotion.id == promotion_id).with_for_update(read=True)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, promotion: Promotion) -> Promotion:
        session.add(promotion)
        await session.flush()
        return promotion

    @staticmethod
    async def delete(session: AsyncSession, *, promotion: Promotion) -> None:
        await session.delete(promotion)
        await session.flush()

    @staticmethod
    async def count_by_status(session: AsyncSession) -> dict[str, int]:
        stmt = select(Promotion.status, func.count(Promotion.id)).group_by(Promotion.status)
        result = await session.execute(stmt)
        return {str(status): int(count) for status, count in result.all()}

    @staticmethod
    async def count_for_template(session: AsyncSession, *, template_id: UUID) -> int:
        stmt = select(func.count(Promotion.id)).where(Promotion.template_id == template_id)
        return int(await session.scalar(stmt) or 0)

    @staticmethod
    async def list_filtered(
        session: AsyncSession,
        *,
        created_by: UUID | None = None,
        status: str | None = None,
        path: str | None = None,
        template_id: UUID | None = None,
        limit: int,
    ) -> list[Promotion]:
        stmt = select(Promotion)
        if created_by is not None:
            stmt = stmt.where(Promotion.created_by == created_by)
        if status is not None:
            stmt = stmt.where(Promotion.status == status)
        if path is not None:
            stmt = stmt.where(Promotion.path == path)
        if template_id is not None:
            stmt = stmt.where(Promotion.template_id == template_id)
        stmt = stmt.order_by(Promotion.created_at.desc(), Promotion.id.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())
