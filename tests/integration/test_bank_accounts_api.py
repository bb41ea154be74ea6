"""Integration tests for bank account and sync endpoints."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.core.exceptions import NotFoundError, ProviderError
from ledgerflow.core.security import decrypt_secret, encrypt_secret
from ledgerflow.models.audit_log import AuditLog
from ledgerflow.models.bank_account import BankAccount
from ledgerflow.models.transaction import Transaction
from ledgerflow.schemas.internal import ItemCredentials, LinkToken, ProviderAccount
from ledgerflow.services.bank_accounts import BankAccountService
from ledgerflow.services.retention import RetentionService

NOW = datetime(2026, 9, 15, tzinfo=timezone.utc)
LONG_AGO = datetime(2018, 1, 1, tzinfo=timezone.utc)


def provider_account(account_id: str, name: str, current: str | None = "100.00", subtype: str = "checking"):
    return ProviderAccount.model_validate(
        {
            "account_id": account_id,
            "name": name,
            "type": "depository",
            "subtype": subtype,
            "mask": "0000",
            "balances": {"current": current},
        }
    )


async def audit_actions(db_session: AsyncSession, user_id) -> list[str]:
    result = await db_session.execute(select(AuditLog.action).where(AuditLog.user_id == user_id))
    return list(result.scalars().all())


class TestBankAccounts:
    @pytest.mark.asyncio
    async def test_manual_account_has_no_credentials(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession
    ):
        response = await client.post(
            "/api/v1/bank-accounts",
            json={"account_name": "Petty cash", "account_type": "cash", "access_token": "access-sandbox-999"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["has_credentials"] is False
        assert data["plaid_account_id"] is None

        account = (await db_session.execute(select(BankAccount))).scalar_one()
        assert account.access_token_encrypted is None

    @pytest.mark.asyncio
    async def test_link_token(self, client: AsyncClient, auth_headers: dict, test_user, mock_plaid):
        mock_plaid.create_link_token.return_value = LinkToken(
            link_token="link-sandbox-abc", expiration="2026-10-18T12:00:00Z"
        )

        response = await client.post("/api/v1/bank-accounts/link-token", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"link_token": "link-sandbox-abc", "expiration": "2026-10-18T12:00:00Z"}
        mock_plaid.create_link_token.assert_awaited_once_with(str(test_user.id))

    @pytest.mark.asyncio
    async def test_exchange_links_every_item_account(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, test_user, mock_plaid
    ):
        mock_plaid.exchange_public_token.return_value = ItemCredentials(
            access_token="access-sandbox-999", item_id="item-9"
        )
        mock_plaid.get_accounts.return_value = [
            provider_account("acc-9", "Operating"),
            provider_account("acc-10", "Reserve", current="2500.00", subtype="savings"),
        ]

        response = await client.post(
            "/api/v1/bank-accounts/exchange",
            json={"public_token": "public-sandbox-1", "institution_name": "First Bank"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert [a["account_name"] for a in data] == ["Operating", "Reserve"]
        assert all(a["has_credentials"] for a in data)
        assert all("access_token" not in a for a in data)
        mock_plaid.exchange_public_token.assert_awaited_once_with("public-sandbox-1")
        mock_plaid.get_accounts.assert_awaited_once_with("access-sandbox-999")

        accounts = (await db_session.execute(select(BankAccount).order_by(BankAccount.account_name))).scalars().all()
        assert [a.plaid_account_id for a in accounts] == ["acc-9", "acc-10"]
        assert {a.plaid_item_id for a in accounts} == {"item-9"}
        assert accounts[1].account_type == "savings"
        assert accounts[1].current_balance == Decimal("2500.00")
        assert accounts[0].bank_name == "First Bank"
        for account in accounts:
            assert account.access_token_encrypted != "access-sandbox-999"
            assert decrypt_secret(account.access_token_encrypted) == "access-sandbox-999"
        assert "bank_account_linked" in await audit_actions(db_session, test_user.id)

    @pytest.mark.asyncio
    async def test_relinking_reactivates_existing_account(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, bank_account, mock_plaid
    ):
        bank_account.is_active = False
        bank_account.access_token_encrypted = None
        await db_session.commit()
        mock_plaid.exchange_public_token.return_value = ItemCredentials(
            access_token="access-sandbox-new", item_id="item-2"
        )
        mock_plaid.get_accounts.return_value = [provider_account("acc-1", "Business Checking")]

        response = await client.post(
            "/api/v1/bank-accounts/exchange", json={"public_token": "public-sandbox-2"}, headers=auth_headers
        )

        assert response.status_code == 201
        assert response.json()[0]["id"] == str(bank_account.id)
        accounts = (await db_session.execute(select(BankAccount))).scalars().all()
        assert len(accounts) == 1
        await db_session.refresh(bank_account)
        assert bank_account.is_active is True
        assert bank_account.plaid_item_id == "item-2"
        assert bank_account.bank_name == "Unknown Bank"
        assert decrypt_secret(bank_account.access_token_encrypted) == "access-sandbox-new"

    @pytest.mark.asyncio
    async def test_exchange_provider_failure(self, client: AsyncClient, auth_headers: dict, mock_plaid):
        mock_plaid.exchange_public_token.side_effect = ProviderError(
            "the public token is expired", details={"error_code": "INVALID_PUBLIC_TOKEN"}
        )

        response = await client.post(
            "/api/v1/bank-accounts/exchange", json={"public_token": "public-sandbox-old"}, headers=auth_headers
        )

        assert response.status_code == 502
        assert response.json()["error_code"] == "SYNC_001"
        mock_plaid.get_accounts.assert_not_called()

    @pytest.mark.asyncio
    async def test_disconnect_hides_account(
        self, client: AsyncClient, auth_headers: dict, bank_account, mock_plaid
    ):
        response = await client.delete(f"/api/v1/bank-accounts/{bank_account.id}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["provider_removed"] is True
        assert data["accounts"][0]["is_active"] is False
        assert data["accounts"][0]["has_credentials"] is False
        mock_plaid.remove_item.assert_awaited_once_with("access-sandbox-123")

        active = await client.get("/api/v1/bank-accounts", headers=auth_headers)
        everything = await client.get(
            "/api/v1/bank-accounts", params={"include_inactive": "true"}, headers=auth_headers
        )
        assert active.json() == []
        assert len(everything.json()) == 1

    @pytest.mark.asyncio
    async def test_disconnect_unknown_account(self, client: AsyncClient, auth_headers: dict):
        response = await client.delete(f"/api/v1/bank-accounts/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "API_004"


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_archives_transactions_and_clears_credentials(
        self, db_session: AsyncSession, test_user, bank_account, make_transaction, mock_plaid
    ):
        synced = await make_transaction(bank_account_id=bank_account.id)
        pending = await make_transaction(bank_account_id=bank_account.id, status="pending")
        manual = await make_transaction()

        result = await BankAccountService(db_session, mock_plaid).disconnect(test_user.id, bank_account.id)

        assert result.provider_removed is True
        assert result.transactions_archived == 2
        for txn in (synced, pending, manual):
            await db_session.refresh(txn)
        assert synced.status == "archived"
        assert pending.status == "archived"
        assert synced.notes == "Bank account disconnected"
        assert manual.status == "completed"

        assert bank_account.is_active is False
        assert bank_account.access_token_encrypted is None
        assert bank_account.plaid_item_id is None
        assert bank_account.notes == "Account disconnected by user"

        log = (
            await db_session.execute(select(AuditLog).where(AuditLog.action == "plaid_item_removed"))
        ).scalar_one()
        assert log.entity_id == bank_account.id
        assert log.details["item_id"] == "item-1"
        assert log.details["request_id"] == "req-remove-1"
        assert log.details["transactions_archived"] == 2

    @pytest.mark.asyncio
    async def test_sibling_accounts_of_the_item_disconnected(
        self, db_session: AsyncSession, test_user, bank_account, make_transaction, mock_plaid
    ):
        savings = BankAccount(
            user_id=test_user.id,
            account_name="Savings",
            plaid_item_id="item-1",
            plaid_account_id="acc-2",
            access_token_encrypted=encrypt_secret("access-sandbox-123"),
        )
        elsewhere = BankAccount(
            user_id=test_user.id,
            account_name="Card",
            plaid_item_id="item-7",
            plaid_account_id="acc-7",
            access_token_encrypted=encrypt_secret("access-sandbox-777"),
        )
        db_session.add_all([savings, elsewhere])
        await db_session.commit()
        saved = await make_transaction(bank_account_id=savings.id)
        untouched = await make_transaction(bank_account_id=elsewhere.id)

        result = await BankAccountService(db_session, mock_plaid).disconnect(test_user.id, bank_account.id)

        assert [a.id for a in result.accounts] == [bank_account.id, savings.id]
        assert mock_plaid.remove_item.await_count == 1
        assert savings.is_active is False
        assert savings.access_token_encrypted is None
        assert elsewhere.is_active is True
        await db_session.refresh(saved)
        await db_session.refresh(untouched)
        assert saved.status == "archived"
        assert untouched.status == "completed"

    @pytest.mark.asyncio
    async def test_provider_failure_still_clears_credentials(
        self, db_session: AsyncSession, test_user, bank_account, mock_plaid
    ):
        mock_plaid.remove_item.side_effect = ProviderError(
            "item not found", details={"error_code": "ITEM_NOT_FOUND"}
        )

        result = await BankAccountService(db_session, mock_plaid).disconnect(test_user.id, bank_account.id)

        assert result.provider_removed is False
        assert bank_account.access_token_encrypted is None
        assert bank_account.is_active is False
        assert "plaid_item_removed" in await audit_actions(db_session, test_user.id)

    @pytest.mark.asyncio
    async def test_manual_account_only_deactivated(
        self, db_session: AsyncSession, test_user, make_transaction, mock_plaid
    ):
        cash = BankAccount(user_id=test_user.id, account_name="Petty cash")
        db_session.add(cash)
        await db_session.commit()
        txn = await make_transaction(bank_account_id=cash.id)

        result = await BankAccountService(db_session, mock_plaid).disconnect(test_user.id, cash.id)

        assert result.provider_removed is False
        assert result.transactions_archived == 1
        mock_plaid.remove_item.assert_not_called()
        await db_session.refresh(txn)
        assert txn.status == "archived"
        actions = await audit_actions(db_session, test_user.id)
        assert "bank_account_deactivated" in actions
        assert "plaid_item_removed" not in actions

    @pytest.mark.asyncio
    async def test_other_users_account_not_found(
        self, db_session: AsyncSession, other_user, bank_account, mock_plaid
    ):
        with pytest.raises(NotFoundError):
            await BankAccountService(db_session, mock_plaid).disconnect(other_user.id, bank_account.id)

        mock_plaid.remove_item.assert_not_called()
        assert bank_account.is_active is True

    @pytest.mark.asyncio
    async def test_archived_rows_reach_retention(
        self, db_session: AsyncSession, test_user, bank_account, make_transaction, mock_plaid
    ):
        txn = await make_transaction(bank_account_id=bank_account.id, created_at=LONG_AGO)
        txn_id = txn.id
        await BankAccountService(db_session, mock_plaid).disconnect(test_user.id, bank_account.id)

        result = await RetentionService(db_session).enforce(test_user.id, now=NOW)

        assert result.transactions_deleted == 1
        assert "plaid_item_removed" in await audit_actions(db_session, test_user.id)
        db_session.expunge_all()
        assert await db_session.get(Transaction, txn_id) is None


class TestSyncApi:
    @pytest.mark.asyncio
    async def test_sync_account(self, client: AsyncClient, auth_headers: dict, bank_account):
        response = await client.post(f"/api/v1/sync/accounts/{bank_account.id}", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["transactions_added"] == 0

    @pytest.mark.asyncio
    async def test_sync_provider_failure(self, client: AsyncClient, auth_headers: dict, bank_account, mock_plaid):
        mock_plaid.get_balances.side_effect = ProviderError("ITEM_LOGIN_REQUIRED")

        response = await client.post(f"/api/v1/sync/accounts/{bank_account.id}", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["error_code"] == "SYNC_001"
        assert response.json()["message"] == "ITEM_LOGIN_REQUIRED"

    @pytest.mark.asyncio
    async def test_sync_without_credentials(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, test_user
    ):
        manual = BankAccount(user_id=test_user.id, account_name="Petty cash")
        db_session.add(manual)
        await db_session.commit()

        response = await client.post(f"/api/v1/sync/accounts/{manual.id}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "SYNC_002"

    @pytest.mark.asyncio
    async def test_run_due_accounts(self, client: AsyncClient, auth_headers: dict, bank_account):
        response = await client.post("/api/v1/sync/run", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["accounts_synced"] == 1
        assert data["results"][0]["account_name"] == "Business Checking"
