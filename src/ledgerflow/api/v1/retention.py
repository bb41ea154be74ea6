"""Data retention endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.api.deps import get_current_user, get_db
from ledgerflow.models.user import User
from ledgerflow.schemas.retention import RetentionResult
from ledgerflow.services.retention import RetentionService

router = APIRouter(prefix="/retention", tags=["retention"])


@router.post("/enforce", response_model=RetentionResult, summary="Apply the data retention policy")
async def enforce_retention(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RetentionResult:
    return await RetentionService(db).enforce(current_user.id)
