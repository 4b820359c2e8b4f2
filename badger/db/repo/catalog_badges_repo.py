from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from badger.db.models.catalog_badges import CatalogBadge


class CatalogBadgesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, catalog_badge_id: UUID) -> CatalogBadge | None:
        return await session.get(CatalogBadge, catalog_badge_id)
