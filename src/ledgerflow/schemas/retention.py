"""Schemas for data retention runs."""

from datetime import datetime

from pydantic import BaseModel


class RetentionResult(BaseModel):
    run_at: datetime
    transactions_deleted: int
    audit_logs_deleted: int
    accounts_purged: int
