"""Category endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.api.deps import get_current_user, get_db
from ledgerflow.models.transaction import TransactionType
from ledgerflow.models.user import User
from ledgerflow.schemas.category import CategoryCreate, CategoryResponse, CategoryRestoreResponse
from ledgerflow.services.categories import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse], summary="List categories")
async def list_categories(
    type: TransactionType | None = Query(None, description="Only income or only expense categories"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[CategoryResponse]:
    categories = await CategoryService(db).list_for_user(current_user.id, type)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    """
    Create a category.

    Raises:
        400: A category with this name and type already exists
    """
    category = await CategoryService(db).create(
        current_user.id, data.name, data.type, is_deductible=data.is_deductible, tax_code=data.tax_code
    )
    return CategoryResponse.model_validate(category)


@router.post(
    "/restore-transfer",
    response_model=CategoryRestoreResponse,
    summary="Restore the Account Transfer category",
)
async def restore_transfer_category(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryRestoreResponse:
    category, restored = await CategoryService(db).restore_transfer_category(current_user.id)
    return CategoryRestoreResponse(category=CategoryResponse.model_validate(category), restored=restored)
