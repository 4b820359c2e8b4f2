from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from badger.db.models.promotion_templates import PromotionTemplate


class PromotionTemplatesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, template_id: UUID) -> PromotionTemplate | None:
        return await session.get(PromotionTemplate, template_id)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        template_id: UUID,
    ) -> PromotionTemplate | None:
        stmt = select(PromotionTemplate).where(PromotionTemplate.id == template_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_share(
        session: AsyncSession,
        template_id: UUID,
    ) -> PromotionTemplate | None:
        stmt = (
            select(PromotionTemplate)
            .where(PromotionTemplate.id == template_id)
            .with_for_update(read=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_for_path_levels(
        session: AsyncSession,
        *,
        path: str,
        from_level: str,
        to_level: str,
    ) -> PromotionTemplate | None:
        stmt = select(PromotionTemplate).where(
            PromotionTemplate.path == path,
            PromotionTemplate.from_level == from_level,
            PromotionTemplate.to_level == to_level,
            PromotionTemplate.is_active.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        template: PromotionTemplate,
    ) -> PromotionTemplate:
        session.add(template)
        await session.flush()
        return template

    @staticmethod
    async def list_filtered(
        session: AsyncSession,
        *,
        path: str | None = None,
        from_level: str | None = None,
        to_level: str | None = None,
        is_active: bool | None = None,
        limit: int,
    ) -> list[PromotionTemplate]:
        stmt = select(PromotionTemplate)
        if path is not None:
            stmt = stmt.where(PromotionTemplate.path == path)
        if from_level is not None:
            stmt = stmt.where(PromotionTemplate.from_level == from_level)
        if to_level is not None:
            stmt = stmt.where(PromotionTemplate.to_level == to_level)
        if is_active is not None:
            stmt = stmt.where(PromotionTemplate.is_active.is_(is_active))
        stmt = stmt.order_by(PromotionTemplate.name.asc(), PromotionTemplate.id.asc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete(session: AsyncSession, *, template: PromotionTemplate) -> None:
        await session.delete(template)
        await session.flush()
