"""Bank account linking and disconnection through the banking-data provider.

Linking exchanges the public token from the provider's widget for item
credentials and stores one bank account per provider account on the item.
Disconnecting revokes the item at the provider, clears the stored
credentials and archives the accounts' transactions. Archived rows are kept
for the audit trail until the retention job removes them.
"""

import logging
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.core.exceptions import NotFoundError, ProviderError
from ledgerflow.core.security import decrypt_secret, encrypt_secret
from ledgerflow.models.bank_account import BankAccount
from ledgerflow.models.transaction import Transaction, TransactionStatus
from ledgerflow.providers.plaid import PlaidClient
from ledgerflow.repositories.bank_account import BankAccountRepository
from ledgerflow.schemas.bank_account import BankAccountResponse, DisconnectResult
from ledgerflow.schemas.internal import LinkToken
from ledgerflow.services.audit import log_event

logger = logging.getLogger(__name__)

DISCONNECTED_NOTE = "Account disconnected by user"
ARCHIVED_NOTE = "Bank account disconnected"
UNKNOWN_BANK = "Unknown Bank"


class BankAccountService:
    """Service for provider-linked bank accounts."""

    def __init__(self, db: AsyncSession, provider: PlaidClient | None = None):
        self.db = db
        self.provider = provider or PlaidClient()
        self.account_repo = BankAccountRepository(db)

    async def create_link_token(self, user_id: UUID) -> LinkToken:
        """Start the provider's linking flow for a user."""
        token = await self.provider.create_link_token(str(user_id))
        logger.info("Link token created", extra={"user_id": str(user_id)})
        return token

    async def link(
        self, user_id: UUID, public_token: str, institution_name: str | None = None
    ) -> list[BankAccount]:
        """
        Exchange a public token and store the item's accounts.

        An account already known by its provider account id is updated and
        reactivated instead of duplicated. The access token is stored
        encrypted.

        Raises:
            ProviderError: If the exchange or the account lookup fails
        """
        credentials = await self.provider.exchange_public_token(public_token)
        provider_accounts = await self.provider.get_accounts(credentials.access_token)
        token = encrypt_secret(credentials.access_token)

        linked: list[BankAccount] = []
        for provider_account in provider_accounts:
            account = await self.account_repo.get_by_provider_account(user_id, provider_account.account_id)
            if account is None:
                account = BankAccount(user_id=user_id, plaid_account_id=provider_account.account_id)
                self.db.add(account)
            account.account_name = (
                provider_account.name or provider_account.official_name or provider_account.account_id
            )
            account.bank_name = institution_name or UNKNOWN_BANK
            account.account_type = provider_account.subtype or provider_account.type
            account.plaid_item_id = credentials.item_id
            account.access_token_encrypted = token
            account.current_balance = provider_account.balances.current
            account.is_active = True
            account.notes = None
            linked.append(account)

        await self.db.commit()
        for account in linked:
            await self.db.refresh(account)

        await log_event(
            self.db,
            user_id,
            "bank_account_linked",
            "bank_account",
            details={"item_id": credentials.item_id, "account_ids": [str(a.id) for a in linked]},
        )
        logger.info("Bank item linked", extra={"item_id": credentials.item_id, "accounts": len(linked)})
        return linked

    async def disconnect(self, user_id: UUID, account_id: UUID) -> DisconnectResult:
        """
        Disconnect an account and every account sharing its provider item.

        The item is revoked at the provider first. A provider failure is
        logged and the local cleanup still runs, so the credentials are
        never kept for an account the user disconnected. Accounts without a
        provider link are only deactivated, with their transactions archived.

        Raises:
            NotFoundError: If the account doesn't belong to the user
        """
        account = await self.account_repo.get_owned(user_id, account_id)
        if account is None:
            raise NotFoundError("API_004", {"bank_account_id": str(account_id)})

        item_id = account.plaid_item_id
        accounts = [account]
        if item_id:
            accounts += [a for a in await self.account_repo.get_by_item(user_id, item_id) if a.id != account.id]

        linked = account.has_credentials or item_id is not None
        provider_removed = False
        request_id = None
        if account.has_credentials:
            try:
                request_id = await self.provider.remove_item(decrypt_secret(account.access_token_encrypted))
                provider_removed = True
            except (ProviderError, ValueError) as e:
                logger.warning(
                    "Provider item removal failed; clearing local credentials",
                    extra={"account_id": str(account.id), "error_type": type(e).__name__},
                )

        for a in accounts:
            a.is_active = False
            a.access_token_encrypted = None
            a.plaid_item_id = None
            a.notes = DISCONNECTED_NOTE

        archived = await self.db.execute(
            update(Transaction)
            .where(
                Transaction.user_id == user_id,
                Transaction.bank_account_id.in_([a.id for a in accounts]),
                Transaction.status != TransactionStatus.ARCHIVED.value,
            )
            .values(status=TransactionStatus.ARCHIVED.value, notes=ARCHIVED_NOTE)
            .execution_options(synchronize_session=False)
        )
        transactions_archived = archived.rowcount or 0
        await self.db.commit()
        for a in accounts:
            await self.db.refresh(a)

        await log_event(
            self.db,
            user_id,
            "plaid_item_removed" if linked else "bank_account_deactivated",
            "bank_account",
            account.id,
            {
                "item_id": item_id,
                "request_id": request_id,
                "provider_removed": provider_removed,
                "account_ids": [str(a.id) for a in accounts],
                "transactions_archived": transactions_archived,
            },
        )
        logger.info(
            "Bank account disconnected",
            extra={"account_id": str(account.id), "transactions_archived": transactions_archived},
        )
        return DisconnectResult(
            accounts=[BankAccountResponse.model_validate(a) for a in accounts],
            provider_removed=provider_removed,
            transactions_archived=transactions_archived,
        )
