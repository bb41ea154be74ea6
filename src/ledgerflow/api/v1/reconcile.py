"""Reconciliation endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ledgerflow.api.deps import get_current_user, get_reconciliation_service
from ledgerflow.core.exceptions import ValidationError
from ledgerflow.models.user import User
from ledgerflow.schemas.reconciliation import ReconciliationReport, ReconciliationResult
from ledgerflow.services.reconciler import ReconciliationService

router = APIRouter(prefix="/reconcile", tags=["reconciliation"])


@router.post(
    "",
    response_model=ReconciliationResult,
    summary="Detect duplicates and internal transfers",
    description="""
    Analyze the last 90 days of transactions with the AI reconciler.

    Only high-confidence findings are applied: duplicates are flagged for
    review (the first transaction of each group is kept as is), and
    matching transfer pairs are marked as internal transfers.
    """,
)
async def reconcile(
    current_user: User = Depends(get_current_user),
    reconciler: ReconciliationService = Depends(get_reconciliation_service),
) -> ReconciliationResult:
    return await reconciler.reconcile(current_user.id)


@router.get("/report", response_model=ReconciliationReport, summary="Account reconciliation report")
async def reconciliation_report(
    bank_account_id: Annotated[UUID, Query()],
    start_date: Annotated[date, Query(description="From date (inclusive)")],
    end_date: Annotated[date, Query(description="To date (inclusive)")],
    current_user: User = Depends(get_current_user),
    reconciler: ReconciliationService = Depends(get_reconciliation_service),
) -> ReconciliationReport:
    """
    Build a reconciliation report for one account and date range.

    Raises:
        400: start_date is after end_date
        404: Bank account not found
    """
    if start_date > end_date:
        raise ValidationError("VAL_001", {"start_date": str(start_date), "end_date": str(end_date)})
    return await reconciler.report(current_user.id, bank_account_id, start_date, end_date)
