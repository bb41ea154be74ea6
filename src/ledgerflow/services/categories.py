"""Category catalogue service."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.classification.rules import category_style
from ledgerflow.core.exceptions import NotFoundError, ValidationError
from ledgerflow.models.category import Category
from ledgerflow.models.transaction import TransactionType
from ledgerflow.repositories.category import CategoryRepository
from ledgerflow.services.audit import log_event

logger = logging.getLogger(__name__)

TRANSFER_CATEGORY = "Account Transfer"

# (name, type, deductible)
DEFAULT_CATEGORIES: list[tuple[str, TransactionType, bool]] = [
    ("Sales", TransactionType.INCOME, False),
    ("Service Revenue", TransactionType.INCOME, False),
    ("Interest Income", TransactionType.INCOME, False),
    (TRANSFER_CATEGORY, TransactionType.INCOME, False),
    ("Office Supplies", TransactionType.EXPENSE, True),
    ("Software & Subscriptions", TransactionType.EXPENSE, True),
    ("Rent & Lease", TransactionType.EXPENSE, True),
    ("Utilities", TransactionType.EXPENSE, True),
    ("Travel", TransactionType.EXPENSE, True),
    ("Meals & Entertainment", TransactionType.EXPENSE, True),
    ("Bank Fees & Charges", TransactionType.EXPENSE, True),
    ("Other Expenses", TransactionType.EXPENSE, False),
]


class CategoryService:
    """Service for the user's category catalogue."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.category_repo = CategoryRepository(db)

    def _build(
        self,
        user_id: UUID,
        name: str,
        type: TransactionType,
        is_deductible: bool = False,
        tax_code: str | None = None,
        is_default: bool = False,
    ) -> Category:
        color, icon = category_style(name, type)
        return Category(
            user_id=user_id,
            name=name.strip(),
            type=type.value,
            is_deductible=is_deductible,
            tax_code=tax_code,
            color=color,
            icon=icon,
            is_default=is_default,
        )

    async def seed_defaults(self, user_id: UUID) -> list[Category]:
        """Give a new user the default catalogue."""
        rows = [
            self._build(user_id, name, type, is_deductible=deductible, is_default=True)
            for name, type, deductible in DEFAULT_CATEGORIES
        ]
        self.db.add_all(rows)
        await self.db.commit()
        return rows

    async def list_for_user(self, user_id: UUID, type: TransactionType | None = None) -> list[Category]:
        return await self.category_repo.get_by_user(user_id, type.value if type else None)

    async def create(
        self,
        user_id: UUID,
        name: str,
        type: TransactionType,
        is_deductible: bool = False,
        tax_code: str | None = None,
    ) -> Category:
        """Create a category, rejecting a duplicate name within the same type."""
        if await self.category_repo.find_by_name(user_id, name, type.value):
            raise ValidationError("API_005", {"name": name, "type": type.value})
        category = self._build(user_id, name, type, is_deductible=is_deductible, tax_code=tax_code)
        return await self.category_repo.create(category)

    async def find_or_create(self, user_id: UUID, name: str, type: TransactionType) -> tuple[Category, bool]:
        """Resolve a category by name within a type, creating it when missing.

        Returns:
            (category, created). The new row is flushed, not committed.
        """
        existing = await self.category_repo.find_by_name(user_id, name, type.value)
        if existing:
            return existing, False

        logger.info("Creating category", extra={"category_type": type.value})
        category = self._build(user_id, name, type)
        self.db.add(category)
        await self.db.flush()
        return category, True

    async def get_assignable(self, user_id: UUID, category_id: UUID, type: str) -> Category:
        """Return the user's category if it may be assigned to a transaction of ``type``.

        Raises:
            NotFoundError: Category doesn't exist or belongs to another user
            ValidationError: Category type differs from the transaction type
        """
        category = await self.category_repo.get_owned(user_id, category_id)
        if category is None:
            raise NotFoundError("API_002", {"category_id": str(category_id)})
        if category.type != type:
            raise ValidationError(
                "API_003", {"category_type": category.type, "transaction_type": type}
            )
        return category

    async def restore_transfer_category(self, user_id: UUID) -> tuple[Category, bool]:
        """Recreate the "Account Transfer" income category if it was removed.

        Returns:
            (category, restored)
        """
        existing = await self.category_repo.find_by_name(
            user_id, TRANSFER_CATEGORY, TransactionType.INCOME.value
        )
        if existing:
            return existing, False

        category = self._build(user_id, TRANSFER_CATEGORY, TransactionType.INCOME)
        category.color = "#3B82F6"
        self.db.add(category)
        await self.db.flush()
        await log_event(
            self.db, user_id, "category_restored", "category", category.id, {"name": TRANSFER_CATEGORY}
        )
        await self.db.refresh(category)
        logger.info("Account Transfer category restored", extra={"user_id": str(user_id)})
        return category, True
