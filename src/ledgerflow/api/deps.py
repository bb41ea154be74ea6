"""FastAPI dependency injection for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.core.security import get_user_id_from_token
from ledgerflow.db.session import get_db
from ledgerflow.llm.client import LLMClient
from ledgerflow.models.user import User
from ledgerflow.providers.plaid import PlaidClient
from ledgerflow.repositories.user import UserRepository
from ledgerflow.services.auth import AuthService
from ledgerflow.services.bank_accounts import BankAccountService
from ledgerflow.services.categorizer import CategorizationService
from ledgerflow.services.reconciler import ReconciliationService
from ledgerflow.services.review import ReviewService
from ledgerflow.services.sync import SyncService

# OAuth2 bearer token scheme
security = HTTPBearer()


async def get_user_repository(
    db: AsyncSession = Depends(get_db),
) -> UserRepository:
    return UserRepository(db)


async def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
) -> AuthService:
    return AuthService(user_repo)


def get_llm_client() -> LLMClient:
    """Language model client; overridden in tests."""
    return LLMClient()


def get_plaid_client() -> PlaidClient:
    """Banking-data provider client; overridden in tests."""
    return PlaidClient()


async def get_categorization_service(
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
) -> CategorizationService:
    return CategorizationService(db, llm)


async def get_sync_service(
    db: AsyncSession = Depends(get_db),
    provider: PlaidClient = Depends(get_plaid_client),
    categorizer: CategorizationService = Depends(get_categorization_service),
) -> SyncService:
    return SyncService(db, provider, categorizer)


async def get_bank_account_service(
    db: AsyncSession = Depends(get_db),
    provider: PlaidClient = Depends(get_plaid_client),
) -> BankAccountService:
    return BankAccountService(db, provider)


async def get_reconciliation_service(
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
) -> ReconciliationService:
    return ReconciliationService(db, llm)


async def get_review_service(
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
) -> ReviewService:
    return ReviewService(db, llm)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    user_repo: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Extract and validate user from a JWT access token.

    Raises:
        HTTPException: If token is invalid, expired, or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user_id = get_user_id_from_token(credentials.credentials, expected_type="access")
    except (JWTError, ValueError):
        raise credentials_exception

    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user
