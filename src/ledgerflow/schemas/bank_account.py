"""Bank account request/response schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BankAccountCreate(BaseModel):
    """A manually kept account (petty cash, a card without a provider link)."""

    account_name: str = Field(..., min_length=1, max_length=255)
    bank_name: str | None = Field(None, max_length=255)
    account_type: str | None = Field(None, max_length=50)


class LinkTokenResponse(BaseModel):
    link_token: str
    expiration: str | None = None


class PublicTokenExchange(BaseModel):
    """Result of the provider's linking widget, sent back by the client."""

    public_token: str = Field(..., min_length=1)
    institution_name: str | None = Field(None, max_length=255)


class BankAccountResponse(BaseModel):
    """Bank account as returned by the API. Credentials are never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_name: str
    bank_name: str | None
    account_type: str | None
    plaid_account_id: str | None
    current_balance: Decimal | None
    last_synced_at: datetime | None
    is_active: bool
    notes: str | None
    has_credentials: bool
    created_at: datetime


class DisconnectResult(BaseModel):
    """Outcome of disconnecting an account from the provider."""

    accounts: list[BankAccountResponse]
    provider_removed: bool = Field(..., description="Whether the provider revoked the item")
    transactions_archived: int
