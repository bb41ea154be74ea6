"""Schemas for bank sync results."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class AccountSyncResult(BaseModel):
    """Outcome of syncing one bank account."""

    account_id: UUID
    account_name: str
    status: Literal["success", "skipped", "error"]
    transactions_added: int = 0
    transactions_skipped: int = Field(0, description="Provider rows already stored")
    categorized: int = Field(0, description="New rows categorized right after sync")
    balance_updated: bool = False
    error: str | None = None


class SyncRunResult(BaseModel):
    """Outcome of a scheduled sync over every due account."""

    started_at: datetime
    accounts_processed: int
    accounts_synced: int
    accounts_skipped: int
    accounts_failed: int
    transactions_added: int
    results: list[AccountSyncResult]
