"""Category repository."""
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.models.category import Category
from ledgerflow.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category model with name lookups."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Category)

    async def get_by_user(self, user_id: UUID, type: str | None = None) -> list[Category]:
        """Get a user's categories, optionally limited to one type."""
        query = select(Category).where(Category.user_id == user_id)
        if type:
            query = query.where(Category.type == type)
        result = await self.db.execute(query.order_by(Category.type, Category.name))
        return list(result.scalars().all())

    async def find_by_name(self, user_id: UUID, name: str, type: str) -> Category | None:
        """Case-insensitive exact name match within one type."""
        result = await self.db.execute(
            select(Category)
            .where(
                Category.user_id == user_id,
                Category.type == type,
                func.lower(Category.name) == name.strip().lower(),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_containing(self, user_id: UUID, label: str, type: str) -> Category | None:
        """Case-insensitive substring match within one type (first by name)."""
        result = await self.db.execute(
            select(Category)
            .where(
                Category.user_id == user_id,
                Category.type == type,
                Category.name.ilike(f"%{label}%"),
            )
            .order_by(Category.name)
            .limit(1)
        )
        return result.scalar_one_or_none()
