"""Banking-data provider client (Plaid REST API).

Every Plaid endpoint is a JSON POST that carries the client credentials in
the body. Errors come back as a body with ``error_code`` and
``error_message``; both those and transport failures surface as
ProviderError so the sync job can record them on the bank account.
"""

import logging
from datetime import date
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ledgerflow.config import settings
from ledgerflow.core.exceptions import ProviderError
from ledgerflow.schemas.internal import ItemCredentials, LinkToken, ProviderAccount, ProviderTransaction

logger = logging.getLogger(__name__)

# Plaid caps /transactions/get pages at 500 rows.
PAGE_SIZE = 500

LINK_PRODUCTS = ["transactions"]
LINK_COUNTRY_CODES = ["US"]


class PlaidClient:
    """Thin async wrapper over the provider endpoints for linking and sync."""

    def __init__(
        self,
        client_id: str | None = None,
        secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            client_id: Provider client id (defaults to settings)
            secret: Provider secret (defaults to settings)
            base_url: Environment URL (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            transport: Optional httpx transport (used by tests)
        """
        self.client_id = client_id if client_id is not None else settings.plaid_client_id
        self.secret = secret if secret is not None else settings.plaid_secret
        self.base_url = (base_url or settings.plaid_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._transport = transport

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = {"client_id": self.client_id, "secret": self.secret, **payload}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.error("Provider request failed", extra={"path": path, "error_type": type(e).__name__})
            raise ProviderError(f"Provider request failed: {type(e).__name__}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Provider returned non-JSON response (HTTP {response.status_code})"
            ) from e

        if not isinstance(data, dict):
            raise ProviderError("Provider returned an unexpected response shape")

        if data.get("error_code") or response.status_code >= 400:
            message = data.get("error_message") or f"HTTP {response.status_code}"
            logger.warning(
                "Provider returned error",
                extra={"path": path, "error_code": data.get("error_code"), "status_code": response.status_code},
            )
            raise ProviderError(message, details={"error_code": data.get("error_code")})

        return data

    async def create_link_token(self, client_user_id: str) -> LinkToken:
        """
        Create a link token for the provider's account-linking widget.

        Args:
            client_user_id: Stable id of the user linking the account

        Returns:
            Link token and its expiration
        """
        payload: dict[str, Any] = {
            "user": {"client_user_id": client_user_id},
            "client_name": settings.plaid_client_name,
            "products": LINK_PRODUCTS,
            "country_codes": LINK_COUNTRY_CODES,
            "language": "en",
        }
        if settings.plaid_webhook_url:
            payload["webhook"] = settings.plaid_webhook_url

        data = await self._post("/link/token/create", payload)
        try:
            return LinkToken.model_validate(data)
        except PydanticValidationError as e:
            raise ProviderError("Provider returned no link token") from e

    async def exchange_public_token(self, public_token: str) -> ItemCredentials:
        """Swap the public token from the linking widget for item credentials."""
        data = await self._post("/item/public_token/exchange", {"public_token": public_token})
        try:
            credentials = ItemCredentials.model_validate(data)
        except PydanticValidationError as e:
            raise ProviderError("Provider returned incomplete item credentials") from e
        logger.info("Exchanged public token", extra={"item_id": credentials.item_id})
        return credentials

    async def remove_item(self, access_token: str) -> str | None:
        """Revoke an item's access token at the provider. Returns the provider request id."""
        data = await self._post("/item/remove", {"access_token": access_token})
        return data.get("request_id")

    async def get_accounts(self, access_token: str) -> list[ProviderAccount]:
        """List the accounts on an item with their cached balances."""
        return await self._accounts("/accounts/get", access_token)

    async def get_balances(self, access_token: str) -> list[ProviderAccount]:
        """Fetch current balances for every account on the item."""
        return await self._accounts("/accounts/balance/get", access_token)

    async def _accounts(self, path: str, access_token: str) -> list[ProviderAccount]:
        data = await self._post(path, {"access_token": access_token})
        try:
            return [ProviderAccount.model_validate(a) for a in data.get("accounts") or []]
        except PydanticValidationError as e:
            raise ProviderError("Provider returned malformed account data") from e

    async def get_transactions(
        self, access_token: str, start_date: date, end_date: date
    ) -> list[ProviderTransaction]:
        """
        Fetch all transactions in a date window, following pagination.

        Args:
            access_token: Decrypted item access token
            start_date: First day of the window (inclusive)
            end_date: Last day of the window (inclusive)

        Returns:
            Provider transactions, in provider order
        """
        transactions: list[ProviderTransaction] = []
        offset = 0
        while True:
            data = await self._post(
                "/transactions/get",
                {
                    "access_token": access_token,
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "options": {"count": PAGE_SIZE, "offset": offset},
                },
            )
            page = data.get("transactions") or []
            try:
                transactions.extend(ProviderTransaction.model_validate(t) for t in page)
            except PydanticValidationError as e:
                raise ProviderError("Provider returned malformed transaction data") from e

            total = int(data.get("total_transactions") or 0)
            offset += len(page)
            if not page or offset >= total:
                break

        logger.info("Fetched provider transactions", extra={"count": len(transactions)})
        return transactions
