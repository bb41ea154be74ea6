import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).parents[1] / "src"))

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")

os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("PLAID_CLIENT_ID", "test-client")
os.environ.setdefault("PLAID_SECRET", "test-secret")

from ledgerflow.api.deps import get_llm_client, get_plaid_client
from ledgerflow.db.session import get_db
from ledgerflow.llm.client import LLMClient
from ledgerflow.main import app
from ledgerflow.providers.plaid import PlaidClient

if TEST_DATABASE_URL.startswith("sqlite"):
    # One shared in-memory database per engine
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)

TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def setup_database():
    """Create tables for tests that need the database, and drop them after.

    Not autouse, so pure unit tests run without a database.
    """
    from ledgerflow.models.base import BaseModel

    async with test_engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)

    await test_engine.dispose()


@pytest.fixture
async def db_session(setup_database):
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """A registered user with the default category catalogue."""
    from ledgerflow.core.security import hash_password
    from ledgerflow.models.user import User
    from ledgerflow.repositories.user import UserRepository
    from ledgerflow.services.categories import CategoryService

    user = await UserRepository(db_session).create(
        User(
            email="owner@example.com",
            password_hash=hash_password("password123"),
            full_name="Test Owner",
        )
    )
    await CategoryService(db_session).seed_defaults(user.id)
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession):
    from ledgerflow.core.security import hash_password
    from ledgerflow.models.user import User
    from ledgerflow.repositories.user import UserRepository

    return await UserRepository(db_session).create(
        User(
            email="someone-else@example.com",
            password_hash=hash_password("password123"),
            full_name="Other Owner",
        )
    )


@pytest.fixture
async def auth_headers(test_user):
    from ledgerflow.core.security import create_access_token

    token = create_access_token(user_id=test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def bank_account(db_session: AsyncSession, test_user):
    """An active account linked with provider credentials."""
    from ledgerflow.core.security import encrypt_secret
    from ledgerflow.models.bank_account import BankAccount
    from ledgerflow.repositories.bank_account import BankAccountRepository

    return await BankAccountRepository(db_session).create(
        BankAccount(
            user_id=test_user.id,
            account_name="Business Checking",
            bank_name="First Bank",
            account_type="checking",
            plaid_item_id="item-1",
            plaid_account_id="acc-1",
            access_token_encrypted=encrypt_secret("access-sandbox-123"),
        )
    )


@pytest.fixture
def make_transaction(db_session: AsyncSession, test_user):
    """Factory for committed transactions owned by the test user."""
    from ledgerflow.models.transaction import Transaction

    async def _make(**overrides):
        values = {
            "user_id": test_user.id,
            "transaction_date": date(2026, 9, 1),
            "description": "Office Depot",
            "vendor_name": "Office Depot",
            "amount": Decimal("25.00"),
            "type": "expense",
        }
        values.update(overrides)
        txn = Transaction(**values)
        db_session.add(txn)
        await db_session.commit()
        return txn

    return _make


@pytest.fixture
def mock_llm():
    """Language model client whose answers are set per test."""
    llm = AsyncMock(spec=LLMClient)
    llm.configured = True
    return llm


@pytest.fixture
def mock_plaid():
    plaid = AsyncMock(spec=PlaidClient)
    plaid.get_balances.return_value = []
    plaid.get_transactions.return_value = []
    plaid.remove_item.return_value = "req-remove-1"
    return plaid


@pytest.fixture
async def client(db_session: AsyncSession, mock_llm, mock_plaid):
    """Test client with database, model and provider overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: mock_llm
    app.dependency_overrides[get_plaid_client] = lambda: mock_plaid

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
