"""Bank account endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.api.deps import get_bank_account_service, get_current_user, get_db
from ledgerflow.models.bank_account import BankAccount
from ledgerflow.models.user import User
from ledgerflow.repositories.bank_account import BankAccountRepository
from ledgerflow.schemas.bank_account import (
    BankAccountCreate,
    BankAccountResponse,
    DisconnectResult,
    LinkTokenResponse,
    PublicTokenExchange,
)
from ledgerflow.services.audit import log_event
from ledgerflow.services.bank_accounts import BankAccountService

router = APIRouter(prefix="/bank-accounts", tags=["bank-accounts"])


@router.get("", response_model=list[BankAccountResponse], summary="List bank accounts")
async def list_bank_accounts(
    include_inactive: bool = Query(False, description="Include deactivated accounts"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[BankAccountResponse]:
    accounts = await BankAccountRepository(db).get_by_user(current_user.id, include_inactive)
    return [BankAccountResponse.model_validate(a) for a in accounts]


@router.post(
    "",
    response_model=BankAccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a manual bank account",
)
async def create_bank_account(
    data: BankAccountCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BankAccountResponse:
    """Store an account without a provider link. Provider accounts go through /exchange."""
    account = BankAccount(
        user_id=current_user.id,
        account_name=data.account_name,
        bank_name=data.bank_name,
        account_type=data.account_type,
    )
    account = await BankAccountRepository(db).create(account)
    await log_event(db, current_user.id, "bank_account_created", "bank_account", account.id)
    return BankAccountResponse.model_validate(account)


@router.post("/link-token", response_model=LinkTokenResponse, summary="Start provider account linking")
async def create_link_token(
    current_user: User = Depends(get_current_user),
    service: BankAccountService = Depends(get_bank_account_service),
) -> LinkTokenResponse:
    token = await service.create_link_token(current_user.id)
    return LinkTokenResponse(link_token=token.link_token, expiration=token.expiration)


@router.post(
    "/exchange",
    response_model=list[BankAccountResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Link the accounts of a provider item",
)
async def exchange_public_token(
    data: PublicTokenExchange,
    current_user: User = Depends(get_current_user),
    service: BankAccountService = Depends(get_bank_account_service),
) -> list[BankAccountResponse]:
    """Exchange the widget's public token. The access token is stored encrypted and never returned."""
    accounts = await service.link(current_user.id, data.public_token, data.institution_name)
    return [BankAccountResponse.model_validate(a) for a in accounts]


@router.delete("/{account_id}", response_model=DisconnectResult, summary="Disconnect a bank account")
async def disconnect_bank_account(
    account_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BankAccountService = Depends(get_bank_account_service),
) -> DisconnectResult:
    """Revoke the provider item, deactivate its accounts and archive their transactions."""
    return await service.disconnect(current_user.id, account_id)
