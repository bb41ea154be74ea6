"""Transaction repository with filtering and pipeline queries."""
from datetime import date
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.models.transaction import Transaction, TransactionStatus
from ledgerflow.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def existing_provider_ids(self, provider_ids: list[str]) -> set[str]:
        """Return which of the given provider transaction ids are already stored."""
        if not provider_ids:
            return set()
        result = await self.db.execute(
            select(Transaction.plaid_transaction_id).where(
                Transaction.plaid_transaction_id.in_(provider_ids)
            )
        )
        return {row for row in result.scalars().all()}

    async def get_by_ids(self, user_id: UUID, ids: list[UUID]) -> list[Transaction]:
        """Get the user's transactions for the given ids, in the order requested."""
        if not ids:
            return []
        result = await self.db.execute(
            select(Transaction).where(Transaction.user_id == user_id, Transaction.id.in_(ids))
        )
        by_id = {t.id: t for t in result.scalars().all()}
        return [by_id[i] for i in ids if i in by_id]

    async def get_by_user(
        self, user_id: UUID, skip: int = 0, limit: int | None = 100
    ) -> list[Transaction]:
        """Get a user's transactions, newest first. ``limit=None`` returns all."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_uncategorized(self, user_id: UUID, limit: int = 50) -> list[Transaction]:
        """Get transactions without a category, newest first."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id, Transaction.category_id.is_(None))
            .order_by(Transaction.transaction_date.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_since(self, user_id: UUID, start_date: date) -> list[Transaction]:
        """Get live transactions dated on or after start_date, newest first.

        Soft-deleted and archived rows are left out.
        """
        result = await self.db.execute(
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                Transaction.transaction_date >= start_date,
                Transaction.deleted_at.is_(None),
                Transaction.status != TransactionStatus.ARCHIVED.value,
            )
            .order_by(Transaction.transaction_date.desc())
        )
        return list(result.scalars().all())

    async def get_for_account(
        self, user_id: UUID, account_id: UUID, start_date: date, end_date: date
    ) -> list[Transaction]:
        """Get an account's transactions within a date range, oldest first."""
        result = await self.db.execute(
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                Transaction.bank_account_id == account_id,
                Transaction.transaction_date >= start_date,
                Transaction.transaction_date <= end_date,
            )
            .order_by(Transaction.transaction_date.asc(), Transaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_matching_descriptions(
        self, user_id: UUID, patterns: tuple[str, ...], limit: int = 50
    ) -> list[Transaction]:
        """Get transactions whose description contains any pattern (case-insensitive)."""
        result = await self.db.execute(
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                or_(*[Transaction.description.ilike(f"%{p}%") for p in patterns]),
            )
            .order_by(Transaction.transaction_date.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
