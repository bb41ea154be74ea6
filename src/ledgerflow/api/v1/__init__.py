"""API version 1 routes."""

from fastapi import APIRouter

from ledgerflow.api.v1 import (
    auth,
    bank_accounts,
    categories,
    categorize,
    reconcile,
    retention,
    review,
    sync,
    transactions,
)

router = APIRouter(prefix="/api/v1")

router.include_router(auth.router)
router.include_router(bank_accounts.router)
router.include_router(sync.router)
router.include_router(transactions.router)
router.include_router(categories.router)
router.include_router(categorize.router)
router.include_router(reconcile.router)
router.include_router(review.router)
router.include_router(retention.router)
