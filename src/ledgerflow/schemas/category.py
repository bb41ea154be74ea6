"""Category request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledgerflow.models.transaction import TransactionType


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    is_deductible: bool = False
    tax_code: str | None = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Category name cannot be blank")
        return v.strip()


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    type: TransactionType
    is_deductible: bool
    tax_code: str | None
    color: str | None
    icon: str | None
    is_default: bool


class CategoryRestoreResponse(BaseModel):
    category: CategoryResponse
    restored: bool = Field(description="False when the category already existed")
