"""Transaction service: manual entry, category assignment and listing."""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.core.exceptions import NotFoundError, ValidationError
from ledgerflow.models.transaction import Transaction, TransactionStatus, TransactionType
from ledgerflow.repositories.bank_account import BankAccountRepository
from ledgerflow.repositories.transaction import TransactionRepository
from ledgerflow.schemas.transaction import (
    PaginationMeta,
    TransactionCreate,
    TransactionListResult,
    TransactionResponse,
)
from ledgerflow.services.audit import log_event
from ledgerflow.services.categories import CategoryService

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for user-initiated transaction operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = TransactionRepository(db)
        self.account_repo = BankAccountRepository(db)
        self.category_service = CategoryService(db)

    async def create(self, user_id: UUID, payload: TransactionCreate) -> Transaction:
        """
        Record a manual transaction.

        Raises:
            ValidationError: If the amount is negative or the category type differs
            NotFoundError: If the category or bank account doesn't belong to the user
        """
        if payload.amount < 0:
            raise ValidationError("VAL_001", {"field": "amount"})

        if payload.category_id is not None:
            await self.category_service.get_assignable(user_id, payload.category_id, payload.type.value)

        if payload.bank_account_id is not None:
            if await self.account_repo.get_owned(user_id, payload.bank_account_id) is None:
                raise NotFoundError("API_004", {"bank_account_id": str(payload.bank_account_id)})

        txn = Transaction(
            user_id=user_id,
            bank_account_id=payload.bank_account_id,
            transaction_date=payload.transaction_date,
            description=payload.description,
            vendor_name=payload.vendor_name,
            amount=payload.amount,
            type=payload.type.value,
            category_id=payload.category_id,
            status=TransactionStatus.COMPLETED.value,
            tax_deductible=payload.tax_deductible,
            notes=payload.notes,
        )
        txn = await self.transaction_repo.create(txn)
        logger.info("Manual transaction recorded", extra={"transaction_id": str(txn.id)})
        return txn

    async def assign_category(self, user_id: UUID, transaction_id: UUID, category_id: UUID | None) -> Transaction:
        """
        Set or clear a transaction's category.

        Raises:
            NotFoundError: If the transaction or category doesn't belong to the user
            ValidationError: If the category type differs from the transaction type
        """
        txn = await self.transaction_repo.get_owned(user_id, transaction_id)
        if txn is None:
            raise NotFoundError("API_001", {"transaction_id": str(transaction_id)})

        if category_id is not None:
            await self.category_service.get_assignable(user_id, category_id, txn.type)

        previous = txn.category_id
        txn.category_id = category_id
        txn.needs_review = False
        await self.db.commit()
        await log_event(
            self.db,
            user_id,
            "transaction_category_assigned",
            "transaction",
            txn.id,
            {
                "from": str(previous) if previous else None,
                "to": str(category_id) if category_id else None,
            },
        )
        await self.db.refresh(txn)
        return txn

    async def list_transactions(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        type: TransactionType | None = None,
        category_id: UUID | None = None,
        bank_account_id: UUID | None = None,
        needs_review: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        search: str | None = None,
    ) -> TransactionListResult:
        """List a user's transactions with filters, newest first."""
        query = select(Transaction).where(Transaction.user_id == user_id, Transaction.deleted_at.is_(None))

        if type:
            query = query.where(Transaction.type == type.value)

        if category_id:
            query = query.where(Transaction.category_id == category_id)

        if bank_account_id:
            query = query.where(Transaction.bank_account_id == bank_account_id)

        if needs_review is not None:
            query = query.where(Transaction.needs_review == needs_review)

        if start_date:
            query = query.where(Transaction.transaction_date >= start_date)

        if end_date:
            query = query.where(Transaction.transaction_date <= end_date)

        if search:
            query = query.where(
                or_(
                    Transaction.description.ilike(f"%{search}%"),
                    Transaction.vendor_name.ilike(f"%{search}%"),
                )
            )

        total_result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        query = (
            query.order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        transactions = result.scalars().all()

        return TransactionListResult(
            transactions=[TransactionResponse.model_validate(t) for t in transactions],
            pagination=PaginationMeta(
                page=page,
                limit=limit,
                total=total,
                total_pages=(total + limit - 1) // limit if total > 0 else 0,
            ),
        )
