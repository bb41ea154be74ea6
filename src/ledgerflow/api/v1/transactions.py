"""Transaction endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.api.deps import get_current_user, get_db
from ledgerflow.models.transaction import TransactionType
from ledgerflow.models.user import User
from ledgerflow.schemas.transaction import (
    CategoryAssignRequest,
    TransactionCreate,
    TransactionListResult,
    TransactionResponse,
)
from ledgerflow.services.transactions import TransactionService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get(
    "",
    response_model=TransactionListResult,
    summary="List transactions with filters",
    description="""
    ## Filters
    - **type**: income or expense
    - **category_id**, **bank_account_id**
    - **needs_review**: only rows flagged (or not flagged) for review
    - **start_date**, **end_date**: Date range (inclusive)
    - **search**: Case-insensitive match on description and vendor

    Results are sorted newest first and paginated.
    """,
)
async def list_transactions(
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page (1-100)")] = 20,
    type: Annotated[TransactionType | None, Query(description="Filter by type")] = None,
    category_id: Annotated[UUID | None, Query()] = None,
    bank_account_id: Annotated[UUID | None, Query()] = None,
    needs_review: Annotated[bool | None, Query()] = None,
    start_date: Annotated[date | None, Query(description="From date (inclusive)")] = None,
    end_date: Annotated[date | None, Query(description="To date (inclusive)")] = None,
    search: Annotated[str | None, Query(description="Search description and vendor")] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionListResult:
    return await TransactionService(db).list_transactions(
        current_user.id,
        page=page,
        limit=limit,
        type=type,
        category_id=category_id,
        bank_account_id=bank_account_id,
        needs_review=needs_review,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a manual transaction",
)
async def create_transaction(
    data: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """
    Record a transaction by hand.

    Raises:
        400: Negative amount, or category type differs from the transaction type
        404: Category or bank account not found
    """
    txn = await TransactionService(db).create(current_user.id, data)
    return TransactionResponse.model_validate(txn)


@router.put(
    "/{transaction_id}/category",
    response_model=TransactionResponse,
    summary="Assign a category",
)
async def assign_category(
    transaction_id: UUID,
    data: CategoryAssignRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionResponse:
    """
    Set or clear a transaction's category.

    Raises:
        400: Category type differs from the transaction type
        404: Transaction or category not found
    """
    txn = await TransactionService(db).assign_category(current_user.id, transaction_id, data.category_id)
    return TransactionResponse.model_validate(txn)
