"""Authentication service with business logic."""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from jose import JWTError

from ledgerflow.core.security import (
    create_access_token,
    create_refresh_token,
    get_user_id_from_token,
    hash_password,
    verify_password,
)
from ledgerflow.models.user import User
from ledgerflow.repositories.user import UserRepository
from ledgerflow.schemas.auth import TokenPair
from ledgerflow.services.audit import log_event
from ledgerflow.services.categories import CategoryService

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, user_repo: UserRepository):
        """
        Initialize authentication service.

        Args:
            user_repo: User repository for database operations
        """
        self.user_repo = user_repo
        self.category_service = CategoryService(user_repo.db)

    def _issue_tokens(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
        )

    def _ensure_active(self, user: User) -> None:
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User account is deactivated",
            )

    async def register(self, email: str, password: str, full_name: str) -> User:
        """
        Register a new user and give them the default category catalogue.

        Raises:
            HTTPException: If email already exists
        """
        if await self.user_repo.get_by_email(email) is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )

        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
        )
        created_user = await self.user_repo.create(user)
        await self.category_service.seed_defaults(created_user.id)
        logger.info("User registered", extra={"user_id": str(created_user.id)})
        return created_user

    async def login(self, email: str, password: str) -> TokenPair:
        """
        Authenticate user and return JWT tokens.

        Raises:
            HTTPException: If credentials are invalid or the account is deactivated
        """
        user = await self.user_repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
            )

        self._ensure_active(user)
        await log_event(self.user_repo.db, user.id, "login", "user", user.id)
        return self._issue_tokens(user)

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """
        Generate a new token pair from a refresh token.

        Raises:
            HTTPException: If the refresh token is invalid or the user is gone
        """
        try:
            user_id = get_user_id_from_token(refresh_token, expected_type="refresh")
        except (JWTError, ValueError):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )

        user = await self.get_current_user(user_id)
        return self._issue_tokens(user)

    async def get_current_user(self, user_id: UUID) -> User:
        """
        Get user by ID for authenticated requests.

        Raises:
            HTTPException: If user not found or inactive
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
            )

        self._ensure_active(user)
        return user
