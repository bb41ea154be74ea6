"""Integration tests for repository layer."""
from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.models.bank_account import BankAccount
from ledgerflow.models.user import User
from ledgerflow.repositories.bank_account import BankAccountRepository
from ledgerflow.repositories.category import CategoryRepository
from ledgerflow.repositories.transaction import TransactionRepository
from ledgerflow.repositories.user import UserRepository


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_get_by_email(self, db_session: AsyncSession, test_user: User):
        repo = UserRepository(db_session)

        assert (await repo.get_by_email("owner@example.com")).id == test_user.id
        assert await repo.get_by_email("nobody@example.com") is None
        assert (await repo.get_by_email("  Owner@Example.COM ")).id == test_user.id


class TestOwnership:
    @pytest.mark.asyncio
    async def test_get_owned_scopes_by_user(
        self, db_session: AsyncSession, test_user: User, other_user: User, bank_account: BankAccount
    ):
        repo = BankAccountRepository(db_session)

        assert (await repo.get_owned(test_user.id, bank_account.id)).id == bank_account.id
        assert await repo.get_owned(other_user.id, bank_account.id) is None
        assert await repo.get_owned(test_user.id, uuid4()) is None


class TestBankAccountRepository:
    @pytest.mark.asyncio
    async def test_get_syncable(self, db_session: AsyncSession, test_user: User, bank_account: BankAccount):
        repo = BankAccountRepository(db_session)
        await repo.create(BankAccount(user_id=test_user.id, account_name="Cash box"))
        await repo.create(
            BankAccount(
                user_id=test_user.id,
                account_name="Closed",
                access_token_encrypted="x",
                is_active=False,
            )
        )

        syncable = await repo.get_syncable()

        assert [a.id for a in syncable] == [bank_account.id]
        assert len(await repo.get_by_user(test_user.id)) == 2
        assert len(await repo.get_by_user(test_user.id, include_inactive=True)) == 3


class TestCategoryRepository:
    @pytest.mark.asyncio
    async def test_find_by_name_respects_type(self, db_session: AsyncSession, test_user: User):
        repo = CategoryRepository(db_session)

        assert (await repo.find_by_name(test_user.id, "UTILITIES", "expense")).name == "Utilities"
        assert await repo.find_by_name(test_user.id, "Utilities", "income") is None

    @pytest.mark.asyncio
    async def test_find_containing(self, db_session: AsyncSession, test_user: User, other_user: User):
        repo = CategoryRepository(db_session)

        assert (await repo.find_containing(test_user.id, "transfer", "income")).name == "Account Transfer"
        assert await repo.find_containing(test_user.id, "transfer", "expense") is None
        assert await repo.find_containing(other_user.id, "transfer", "income") is None


class TestTransactionRepository:
    @pytest.mark.asyncio
    async def test_existing_provider_ids(self, db_session: AsyncSession, make_transaction):
        await make_transaction(plaid_transaction_id="tx-1")
        repo = TransactionRepository(db_session)

        assert await repo.existing_provider_ids(["tx-1", "tx-2"]) == {"tx-1"}
        assert await repo.existing_provider_ids([]) == set()

    @pytest.mark.asyncio
    async def test_get_by_ids_keeps_requested_order(
        self, db_session: AsyncSession, test_user: User, other_user: User, make_transaction
    ):
        first = await make_transaction(description="First")
        second = await make_transaction(description="Second")
        foreign = await make_transaction(user_id=other_user.id)
        repo = TransactionRepository(db_session)

        found = await repo.get_by_ids(test_user.id, [second.id, foreign.id, uuid4(), first.id])

        assert [t.id for t in found] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_get_uncategorized_and_since(
        self, db_session: AsyncSession, test_user: User, make_transaction
    ):
        category = await CategoryRepository(db_session).find_by_name(test_user.id, "Travel", "expense")
        await make_transaction(category_id=category.id)
        old = await make_transaction(transaction_date=date(2025, 1, 1))
        repo = TransactionRepository(db_session)

        uncategorized = await repo.get_uncategorized(test_user.id)
        recent = await repo.get_since(test_user.id, date(2026, 6, 1))

        assert [t.id for t in uncategorized] == [old.id]
        assert old.id not in {t.id for t in recent}
        assert len(recent) == 1
