"""Schemas for reconciliation passes and reports."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class ReconciliationResult(BaseModel):
    """Outcome of an AI reconciliation pass."""

    transactions_analyzed: int
    duplicates_found: int = Field(description="Duplicate groups reported by the model")
    duplicates_flagged: int = Field(description="Transactions flagged for review as duplicates")
    transfers_found: int = Field(description="Transfer groups reported by the model")
    transfers_marked: int = Field(description="Transactions marked as internal transfers")


class StatusCounts(BaseModel):
    pending: int = 0
    completed: int = 0
    cancelled: int = 0
    archived: int = 0


class CategoryTotal(BaseModel):
    category: str
    count: int
    total: Decimal


class VendorTotal(BaseModel):
    vendor: str
    count: int
    total: Decimal


class DuplicateGroup(BaseModel):
    key: str = Field(description="amount_date_vendor")
    transaction_ids: list[UUID]


class UncategorizedItem(BaseModel):
    id: UUID
    description: str
    amount: Decimal


class ReconciliationReport(BaseModel):
    """Deterministic account health report for a date window."""

    bank_account_id: UUID
    start_date: date
    end_date: date
    total_transactions: int
    total_income: Decimal
    total_expenses: Decimal
    net: Decimal
    status_counts: StatusCounts
    categories: list[CategoryTotal]
    vendors: list[VendorTotal]
    duplicates: list[DuplicateGroup]
    uncategorized_count: int
    uncategorized_sample: list[UncategorizedItem]
    health_score: int = Field(ge=0, le=100)
    recommendations: list[str]
