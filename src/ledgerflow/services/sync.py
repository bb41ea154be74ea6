"""Bank sync job.

Pulls balances and transactions for linked bank accounts from the
banking-data provider and stores new transactions with positive amounts and
an inferred type. Provider transaction ids are unique in the ledger, so
re-running a sync never duplicates rows.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.classification.rules import infer_type, normalize_amount, provider_label
from ledgerflow.config import settings
from ledgerflow.core.exceptions import LedgerError, ProviderError
from ledgerflow.core.security import decrypt_secret
from ledgerflow.models.bank_account import BankAccount
from ledgerflow.models.base import as_utc
from ledgerflow.models.category import Category
from ledgerflow.models.transaction import Transaction, TransactionStatus, TransactionType
from ledgerflow.providers.plaid import PlaidClient
from ledgerflow.repositories.bank_account import BankAccountRepository
from ledgerflow.repositories.category import CategoryRepository
from ledgerflow.repositories.transaction import TransactionRepository
from ledgerflow.schemas.internal import ProviderTransaction
from ledgerflow.schemas.sync import AccountSyncResult, SyncRunResult
from ledgerflow.services.audit import log_event
from ledgerflow.services.categorizer import CategorizationService

logger = logging.getLogger(__name__)


class SyncService:
    """Service that imports provider data into the ledger."""

    def __init__(
        self,
        db: AsyncSession,
        provider: PlaidClient | None = None,
        categorizer: CategorizationService | None = None,
    ):
        """
        Initialize the sync service.

        Args:
            db: Database session
            provider: Banking-data provider client (defaults to one built from settings)
            categorizer: Categorizer run on newly imported rows
        """
        self.db = db
        self.provider = provider or PlaidClient()
        self.categorizer = categorizer or CategorizationService(db)
        self.account_repo = BankAccountRepository(db)
        self.category_repo = CategoryRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def sync_account(
        self, account: BankAccount, now: datetime | None = None, raise_on_error: bool = False
    ) -> AccountSyncResult:
        """
        Sync one bank account.

        Args:
            account: Active account with stored credentials
            now: Sync time (defaults to current UTC time)
            raise_on_error: Re-raise provider failures after recording them

        Returns:
            Sync result for the account

        Raises:
            LedgerError: SYNC_002 if the account has no credentials
            ProviderError: If the provider fails and raise_on_error is set
        """
        if not account.has_credentials:
            raise LedgerError("SYNC_002", {"account_id": str(account.id)}, http_status=400)

        now = now or datetime.now(timezone.utc)
        logger.info("Syncing bank account", extra={"account_id": str(account.id)})

        try:
            try:
                access_token = decrypt_secret(account.access_token_encrypted)
            except ValueError as e:
                raise ProviderError(str(e)) from e

            balances = await self.provider.get_balances(access_token)
            end_date = now.date()
            start_date = end_date - timedelta(days=settings.sync_lookback_days)
            fetched = await self.provider.get_transactions(access_token, start_date, end_date)
        except ProviderError as e:
            await self._record_failure(account, e)
            if raise_on_error:
                raise
            return AccountSyncResult(
                account_id=account.id,
                account_name=account.account_name,
                status="error",
                error=e.message,
            )

        balance_updated = False
        for provider_account in balances:
            if (
                account.plaid_account_id
                and provider_account.account_id == account.plaid_account_id
                and provider_account.balances.current is not None
            ):
                account.current_balance = provider_account.balances.current
                balance_updated = True

        if account.plaid_account_id:
            fetched = [t for t in fetched if t.account_id in (None, account.plaid_account_id)]

        existing = await self.transaction_repo.existing_provider_ids([t.transaction_id for t in fetched])
        inserted = await self._insert_new(account, fetched, existing)
        skipped = len(fetched) - len(inserted)

        account.last_synced_at = now
        await self.db.commit()
        await log_event(
            self.db,
            account.user_id,
            "bank_sync",
            "bank_account",
            account.id,
            {"transactions_added": len(inserted), "transactions_skipped": skipped},
        )
        logger.info(
            "Bank account synced",
            extra={"account_id": str(account.id), "added": len(inserted), "skipped": skipped},
        )

        categorized = await self._categorize_new(account, inserted)

        return AccountSyncResult(
            account_id=account.id,
            account_name=account.account_name,
            status="success",
            transactions_added=len(inserted),
            transactions_skipped=skipped,
            categorized=categorized,
            balance_updated=balance_updated,
        )

    async def _insert_new(
        self, account: BankAccount, fetched: list[ProviderTransaction], existing: set[str]
    ) -> list[Transaction]:
        seen = set(existing)
        categories: dict[tuple[str, TransactionType], Category | None] = {}
        inserted: list[Transaction] = []

        for item in fetched:
            if item.transaction_id in seen:
                continue
            seen.add(item.transaction_id)

            txn_type = infer_type(item.amount)
            label = provider_label(item.category)
            key = (label.lower(), txn_type)
            if key not in categories:
                categories[key] = await self.category_repo.find_containing(
                    account.user_id, label, txn_type.value
                )
            category = categories[key]

            txn = Transaction(
                user_id=account.user_id,
                bank_account_id=account.id,
                plaid_transaction_id=item.transaction_id,
                transaction_date=item.txn_date,
                description=item.name,
                vendor_name=item.merchant_name,
                amount=normalize_amount(item.amount),
                type=txn_type.value,
                category_id=category.id if category else None,
                provider_category=item.category,
                status=(TransactionStatus.PENDING if item.pending else TransactionStatus.COMPLETED).value,
            )
            self.db.add(txn)
            inserted.append(txn)

        if inserted:
            await self.db.flush()
        return inserted

    async def _categorize_new(self, account: BankAccount, inserted: list[Transaction]) -> int:
        pending = [t for t in inserted if t.category_id is None]
        if not pending:
            return 0

        batch_size = settings.categorize_batch_size
        categorized = 0
        for start in range(0, len(pending), batch_size):
            batch = pending[start : start + batch_size]
            try:
                result = await self.categorizer.categorize(account.user_id, batch)
            except LedgerError as e:
                logger.warning(
                    "Post-sync categorization failed",
                    extra={"account_id": str(account.id), "error_code": e.error_code},
                )
                break
            categorized += result.categorized
        return categorized

    async def _record_failure(self, account: BankAccount, error: ProviderError) -> None:
        logger.error(
            "Bank sync failed; deactivating account",
            extra={"account_id": str(account.id), "provider_error": error.details.get("error_code")},
        )
        account.is_active = False
        account.notes = f"Sync error: {error.message}"
        await self.db.commit()
        await log_event(
            self.db,
            account.user_id,
            "bank_sync_failed",
            "bank_account",
            account.id,
            {"error": error.message},
        )

    async def sync_due_accounts(
        self, now: datetime | None = None, user_id: UUID | None = None
    ) -> SyncRunResult:
        """
        Sync every active account with credentials that isn't recently synced.

        Accounts synced within ``SYNC_MIN_INTERVAL_MINUTES`` are skipped. The
        run summary is written to the audit log as a system event.

        Args:
            now: Run time (defaults to current UTC time)
            user_id: Limit the run to one user's accounts
        """
        now = now or datetime.now(timezone.utc)
        threshold = now - timedelta(minutes=settings.sync_min_interval_minutes)
        accounts = await self.account_repo.get_syncable(user_id)
        logger.info("Starting scheduled sync", extra={"accounts": len(accounts)})

        results: list[AccountSyncResult] = []
        for account in accounts:
            last_synced = as_utc(account.last_synced_at)
            if last_synced is not None and last_synced > threshold:
                results.append(
                    AccountSyncResult(
                        account_id=account.id,
                        account_name=account.account_name,
                        status="skipped",
                    )
                )
                continue
            results.append(await self.sync_account(account, now=now))

        summary = SyncRunResult(
            started_at=now,
            accounts_processed=len(results),
            accounts_synced=sum(1 for r in results if r.status == "success"),
            accounts_skipped=sum(1 for r in results if r.status == "skipped"),
            accounts_failed=sum(1 for r in results if r.status == "error"),
            transactions_added=sum(r.transactions_added for r in results),
            results=results,
        )
        await log_event(
            self.db,
            None,
            "auto_sync",
            "system",
            details=summary.model_dump(mode="json", exclude={"results"}),
        )
        logger.info(
            "Scheduled sync finished",
            extra={
                "synced": summary.accounts_synced,
                "skipped": summary.accounts_skipped,
                "failed": summary.accounts_failed,
            },
        )
        return summary
