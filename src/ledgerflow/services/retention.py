"""Data retention enforcement."""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.config import settings
from ledgerflow.models.audit_log import AuditLog
from ledgerflow.models.bank_account import BankAccount
from ledgerflow.models.transaction import Transaction, TransactionStatus
from ledgerflow.schemas.retention import RetentionResult
from ledgerflow.services.audit import log_event

logger = logging.getLogger(__name__)

# Kept regardless of age.
CRITICAL_AUDIT_ACTIONS = ("login", "plaid_item_removed", "bank_account_deactivated")

PURGED_NOTE = "Data purged per retention policy"


class RetentionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def enforce(self, user_id: UUID, now: datetime | None = None) -> RetentionResult:
        """
        Apply the retention policy to one user's data.

        - Archived transactions older than ``RETENTION_TRANSACTION_DAYS`` are deleted.
        - Audit logs older than ``RETENTION_AUDIT_DAYS`` are deleted, except
          critical actions.
        - Inactive bank accounts untouched for ``RETENTION_INACTIVE_ACCOUNT_DAYS``
          lose their stored credentials.
        """
        now = now or datetime.now(timezone.utc)

        txn_result = await self.db.execute(
            delete(Transaction).where(
                Transaction.user_id == user_id,
                Transaction.status == TransactionStatus.ARCHIVED.value,
                Transaction.created_at < now - timedelta(days=settings.retention_transaction_days),
            )
        )

        audit_result = await self.db.execute(
            delete(AuditLog).where(
                AuditLog.user_id == user_id,
                AuditLog.action.not_in(CRITICAL_AUDIT_ACTIONS),
                AuditLog.created_at < now - timedelta(days=settings.retention_audit_days),
            )
        )

        account_result = await self.db.execute(
            update(BankAccount)
            .where(
                BankAccount.user_id == user_id,
                BankAccount.is_active == False,
                BankAccount.updated_at < now - timedelta(days=settings.retention_inactive_account_days),
            )
            .values(access_token_encrypted=None, plaid_item_id=None, notes=PURGED_NOTE)
            .execution_options(synchronize_session=False)
        )

        result = RetentionResult(
            run_at=now,
            transactions_deleted=txn_result.rowcount or 0,
            audit_logs_deleted=audit_result.rowcount or 0,
            accounts_purged=account_result.rowcount or 0,
        )
        await self.db.commit()
        await log_event(
            self.db,
            user_id,
            "data_retention_enforced",
            "user",
            user_id,
            {
                "policy": {
                    "transaction_days": settings.retention_transaction_days,
                    "audit_days": settings.retention_audit_days,
                    "inactive_account_days": settings.retention_inactive_account_days,
                },
                "results": result.model_dump(mode="json", exclude={"run_at"}),
            },
        )
        logger.info(
            "Retention policy enforced",
            extra={
                "transactions_deleted": result.transactions_deleted,
                "audit_logs_deleted": result.audit_logs_deleted,
                "accounts_purged": result.accounts_purged,
            },
        )
        return result
