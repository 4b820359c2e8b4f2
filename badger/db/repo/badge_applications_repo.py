from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from badger.db.models.badge_applications import BadgeApplication


class BadgeApplicationsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, application_id: UUID) -> BadgeApplication | None:
        return await session.get(BadgeApplication, application_id)

    @staticmethod
    async def get_by_id_for_update(
        session: AsyncSession,
        application_id: UUID,
    ) -> BadgeApplication | None:
        stmt = select(BadgeApplication).where(BadgeApplication.id == application_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_ids_for_share(
        session: AsyncSession,
        application_ids: Sequence[UUID],
    ) -> list[BadgeApplication]:
        if not application_ids:
            return []
        stmt = (
            select(BadgeApplication)
            .where(BadgeApplication.id.in_(application_ids))
            .order_by(BadgeApplication.id.asc())
            .with_for_update(read=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_by_ids_for_update(
        session: AsyncSession,
        application_ids: Sequence[UUID],
    ) -> list[BadgeApplication]:
        if not application_ids:
            return []
        stmt = (
            select(BadgeApplication)
            .where(BadgeApplication.id.in_(application_ids))
            .order_by(BadgeApplication.id.asc())
            .with_for_update()
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        application: BadgeApplication,
    ) -> BadgeApplication:
        session.add(application)
        await session.flush()
        return application

    @staticmethod
    async def delete(session: AsyncSession, *, application: BadgeApplication) -> None:
        await session.delete(application)
        await session.flush()

    @staticmethod
    async def count_by_status(session: AsyncSession) -> dict[str, int]:
        stmt = select(BadgeApplication.status, func.count(BadgeApplication.id)).group_by(
            BadgeApplication.status
        )
        result = await session.execute(stmt)
        return {str(status): int(count) for status, count in result.all()}

    @staticmethod
    async def list_filtered(
        session: AsyncSession,
        *,
        applicant_id: UUID | None = None,
        status: str | None = None,
        catalog_badge_id: UUID | None = None,
        limit: int,
    ) -> list[BadgeApplication]:
        stmt = select(BadgeApplication)
        if applicant_id is not None:
            stmt = stmt.where(BadgeApplication.applicant_id == applicant_id)
        if status is not None:
            stmt = stmt.where(BadgeApplication.status == status)
        if catalog_badge_id is not None:
            stmt = stmt.where(BadgeApplication.catalog_badge_id == catalog_badge_id)
        stmt = stmt.order_by(BadgeApplication.created_at.desc(), BadgeApplication.id.desc()).limit(
            limit
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
