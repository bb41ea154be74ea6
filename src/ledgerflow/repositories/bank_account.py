"""Bank account repository."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.models.bank_account import BankAccount
from ledgerflow.repositories.base import BaseRepository


class BankAccountRepository(BaseRepository[BankAccount]):
    """Repository for BankAccount model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, BankAccount)

    async def get_by_user(self, user_id: UUID, include_inactive: bool = False) -> list[BankAccount]:
        """Get a user's bank accounts, active ones only by default."""
        query = select(BankAccount).where(BankAccount.user_id == user_id)
        if not include_inactive:
            query = query.where(BankAccount.is_active == True)
        result = await self.db.execute(query.order_by(BankAccount.account_name))
        return list(result.scalars().all())

    async def get_syncable(self, user_id: UUID | None = None) -> list[BankAccount]:
        """Get active accounts that have stored provider credentials, optionally for one user."""
        query = select(BankAccount).where(
            BankAccount.is_active == True,
            BankAccount.access_token_encrypted.is_not(None),
        )
        if user_id is not None:
            query = query.where(BankAccount.user_id == user_id)
        result = await self.db.execute(query.order_by(BankAccount.created_at))
        return list(result.scalars().all())

    async def get_by_provider_account(self, user_id: UUID, plaid_account_id: str) -> BankAccount | None:
        """Find the user's account for a provider account id, active or not."""
        result = await self.db.execute(
            select(BankAccount).where(
                BankAccount.user_id == user_id,
                BankAccount.plaid_account_id == plaid_account_id,
            )
        )
        return result.scalars().first()

    async def get_by_item(self, user_id: UUID, plaid_item_id: str) -> list[BankAccount]:
        """Get every account of the user that shares a provider item."""
        result = await self.db.execute(
            select(BankAccount).where(
                BankAccount.user_id == user_id,
                BankAccount.plaid_item_id == plaid_item_id,
            )
        )
        return list(result.scalars().all())
