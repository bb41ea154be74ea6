"""Transaction request/response schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledgerflow.models.transaction import TransactionStatus, TransactionType


class TransactionCreate(BaseModel):
    """Manual transaction entry. The amount is a positive magnitude; direction is ``type``."""

    transaction_date: date
    description: str = Field(..., min_length=1, max_length=500)
    vendor_name: str | None = Field(None, max_length=255)
    amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    type: TransactionType
    category_id: UUID | None = None
    bank_account_id: UUID | None = None
    tax_deductible: bool = False
    notes: str | None = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Description cannot be blank")
        return v.strip()


class CategoryAssignRequest(BaseModel):
    """Assign a category to a transaction. ``null`` clears it."""

    category_id: UUID | None = Field(..., description="Category of the same type as the transaction, or null")


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bank_account_id: UUID | None
    plaid_transaction_id: str | None
    transaction_date: date
    description: str
    vendor_name: str | None
    amount: Decimal
    type: TransactionType
    category_id: UUID | None
    status: TransactionStatus
    tax_deductible: bool
    needs_review: bool
    is_internal_transfer: bool
    notes: str | None
    ai_confidence_score: float | None
    ai_processed_at: datetime | None
    created_at: datetime


class PaginationMeta(BaseModel):
    page: int = Field(description="Current page number (1-indexed)")
    limit: int = Field(description="Items per page")
    total: int = Field(description="Total matching transactions")
    total_pages: int


class TransactionListResult(BaseModel):
    transactions: list[TransactionResponse]
    pagination: PaginationMeta
