"""Transaction type review endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends

from ledgerflow.api.deps import get_current_user, get_review_service
from ledgerflow.models.user import User
from ledgerflow.schemas.review import ReclassifyResult, ReviewQueue, TypeFixResult
from ledgerflow.schemas.transaction import TransactionResponse
from ledgerflow.services.review import ReviewService

router = APIRouter(prefix="/review", tags=["review"])


@router.get(
    "",
    response_model=ReviewQueue,
    summary="Transactions to review",
    description="Transactions whose description mentions Venmo, a transfer or a payment.",
)
async def review_queue(
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewQueue:
    transactions = await review_service.candidates(current_user.id)
    return ReviewQueue(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        count=len(transactions),
    )


@router.post("/{transaction_id}/flip", response_model=TransactionResponse, summary="Flip income/expense")
async def flip_type(
    transaction_id: UUID,
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service),
) -> TransactionResponse:
    """Toggle the transaction's type. Its category is cleared."""
    txn = await review_service.flip_type(current_user.id, transaction_id)
    return TransactionResponse.model_validate(txn)


@router.post("/{transaction_id}/accept", response_model=TransactionResponse, summary="Mark type as correct")
async def accept_type(
    transaction_id: UUID,
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service),
) -> TransactionResponse:
    txn = await review_service.mark_correct(current_user.id, transaction_id)
    return TransactionResponse.model_validate(txn)


@router.post("/fix-types", response_model=TypeFixResult, summary="Fix types from description patterns")
async def fix_types(
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service),
) -> TypeFixResult:
    return await review_service.fix_types(current_user.id)


@router.post("/reclassify", response_model=ReclassifyResult, summary="Verify types with AI")
async def reclassify_types(
    current_user: User = Depends(get_current_user),
    review_service: ReviewService = Depends(get_review_service),
) -> ReclassifyResult:
    return await review_service.reclassify_types(current_user.id)
