"""Bank sync endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.api.deps import get_current_user, get_db, get_sync_service
from ledgerflow.core.exceptions import NotFoundError
from ledgerflow.models.user import User
from ledgerflow.repositories.bank_account import BankAccountRepository
from ledgerflow.schemas.sync import AccountSyncResult, SyncRunResult
from ledgerflow.services.sync import SyncService

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post(
    "/accounts/{account_id}",
    response_model=AccountSyncResult,
    summary="Sync one bank account",
    description="""
    Pull balances and the last 12 months of transactions from the bank.

    Transactions already imported are skipped. New transactions without a
    category are sent to AI categorization. A provider failure deactivates
    the account and records the error in its notes.
    """,
)
async def sync_account(
    account_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
) -> AccountSyncResult:
    account = await BankAccountRepository(db).get_owned(current_user.id, account_id)
    if account is None:
        raise NotFoundError("API_004", {"bank_account_id": str(account_id)})
    return await sync_service.sync_account(account, raise_on_error=True)


@router.post(
    "/run",
    response_model=SyncRunResult,
    summary="Sync all due bank accounts",
    description="Sync the user's active accounts that weren't synced within the minimum interval.",
)
async def run_sync(
    current_user: User = Depends(get_current_user),
    sync_service: SyncService = Depends(get_sync_service),
) -> SyncRunResult:
    return await sync_service.sync_due_accounts(user_id=current_user.id)
