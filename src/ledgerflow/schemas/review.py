"""Schemas for the transaction type review queue."""

from pydantic import BaseModel, Field

from ledgerflow.schemas.transaction import TransactionResponse


class ReviewQueue(BaseModel):
    transactions: list[TransactionResponse]
    count: int


class TypeFixResult(BaseModel):
    """Outcome of the pattern-based type correction pass."""

    checked: int
    fixed: int
    categories_cleared: int = Field(description="Categories removed because their type no longer matched")


class ReclassifyResult(BaseModel):
    """Outcome of an AI type reclassification pass."""

    analyzed: int
    changed: int
    unchanged: int
