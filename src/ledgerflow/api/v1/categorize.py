"""AI categorization endpoints."""

from fastapi import APIRouter, Depends, Query

from ledgerflow.api.deps import get_categorization_service, get_current_user
from ledgerflow.config import settings
from ledgerflow.models.user import User
from ledgerflow.schemas.categorization import CategorizationResult, CategorizeRequest
from ledgerflow.services.categorizer import CategorizationService

router = APIRouter(prefix="/categorize", tags=["categorization"])


@router.post(
    "",
    response_model=CategorizationResult,
    summary="Categorize transactions",
    description="""
    Send the given transactions to the AI categorizer in one batch.

    Each transaction keeps its type; its category is chosen among the
    categories of that type and created if missing. If the model call fails
    the whole batch is abandoned and nothing is written.
    """,
)
async def categorize_transactions(
    data: CategorizeRequest,
    current_user: User = Depends(get_current_user),
    categorizer: CategorizationService = Depends(get_categorization_service),
) -> CategorizationResult:
    return await categorizer.categorize_ids(current_user.id, data.transaction_ids)


@router.post(
    "/uncategorized",
    response_model=CategorizationResult,
    summary="Categorize the next uncategorized batch",
)
async def categorize_uncategorized(
    limit: int = Query(settings.categorize_batch_size, ge=1, le=200, description="Batch size"),
    current_user: User = Depends(get_current_user),
    categorizer: CategorizationService = Depends(get_categorization_service),
) -> CategorizationResult:
    return await categorizer.categorize_uncategorized(current_user.id, limit)
