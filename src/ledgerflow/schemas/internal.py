"""Internal data schemas for provider and model payloads.

These models validate what comes back from the banking-data provider and the
language model before anything is written to the ledger.
"""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderTransaction(BaseModel):
    """A single transaction as reported by the banking-data provider.

    ``amount`` keeps the provider's sign: positive for money leaving the
    account, negative for money arriving.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    transaction_id: str = Field(..., description="Provider-assigned unique id")
    account_id: str | None = Field(None, description="Provider account id")
    name: str = Field(default="", description="Raw description")
    merchant_name: str | None = Field(None, description="Cleaned merchant name")
    amount: Decimal = Field(..., description="Signed amount, provider convention")
    txn_date: date = Field(..., alias="date", description="Posted or authorized date")
    category: list[str] | None = Field(None, description="Provider category labels")
    pending: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def name_not_null(cls, v: str | None) -> str:
        return (v or "").strip()


class ProviderBalances(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: Decimal | None = None
    available: Decimal | None = None


class ProviderAccount(BaseModel):
    """An account and its balances as reported by the provider."""

    model_config = ConfigDict(extra="ignore")

    account_id: str
    name: str | None = None
    official_name: str | None = None
    type: str | None = None
    subtype: str | None = None
    mask: str | None = None
    balances: ProviderBalances = Field(default_factory=ProviderBalances)


class LinkToken(BaseModel):
    """Short-lived token that starts the provider's account-linking flow."""

    model_config = ConfigDict(extra="ignore")

    link_token: str
    expiration: str | None = None


class ItemCredentials(BaseModel):
    """Long-lived item credentials from a public token exchange."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    item_id: str


class CategorizationSuggestion(BaseModel):
    """One model answer in a categorization batch."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["income", "expense"] | None = None
    category: str = Field(..., min_length=1)
    is_new_category: bool = False
    tax_deductible: bool = False
    confidence: float | None = Field(None, ge=0.0, le=1.0)

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Category cannot be blank")
        return v.strip()


class MatchGroup(BaseModel):
    """A group of transactions the model believes belong together."""

    model_config = ConfigDict(extra="ignore")

    transaction_ids: list[str] = Field(default_factory=list)
    reason: str = ""
    confidence: str = "low"


class ReconciliationAnalysis(BaseModel):
    """Model answer for a reconciliation pass."""

    model_config = ConfigDict(extra="ignore")

    duplicates: list[MatchGroup] = Field(default_factory=list)
    internal_transfers: list[MatchGroup] = Field(default_factory=list)


class TypeClassification(BaseModel):
    """Model answer for one transaction in a type reclassification pass."""

    model_config = ConfigDict(extra="ignore")

    id: str
    correct_type: Literal["income", "expense"]
    confidence: str = "low"
    reason: str = ""
