"""Schemas for AI categorization requests and results."""

from uuid import UUID

from pydantic import BaseModel, Field

from ledgerflow.models.transaction import TransactionType


class CategorizeRequest(BaseModel):
    """Request to categorize specific transactions."""

    transaction_ids: list[UUID] = Field(..., min_length=1, description="Transactions to categorize, in order")


class CategorizationItemResult(BaseModel):
    """Outcome for one transaction in a categorization batch."""

    transaction_id: UUID
    success: bool
    category: str | None = None
    category_id: UUID | None = None
    type: TransactionType | None = None
    is_new_category: bool = False
    tax_deductible: bool = False
    confidence: float | None = None
    error: str | None = None


class CategorizationResult(BaseModel):
    """Outcome of a whole categorization batch."""

    results: list[CategorizationItemResult]
    categorized: int = Field(description="Transactions that received a category")
    new_categories: int = Field(description="Categories created by this batch")
    total: int = Field(description="Transactions sent to the model")
