"""User (profile) repository."""
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.models.user import User
from ledgerflow.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for ledger owners."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_email(self, email: str) -> User | None:
        """
        Find a user by email, ignoring case and surrounding whitespace.

        Registration and login both go through this lookup, so
        ``Owner@Example.com`` and ``owner@example.com`` are one account.
        """
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalars().first()
