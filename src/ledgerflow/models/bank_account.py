"""Bank account linked through the banking-data provider."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledgerflow.models.base import BaseModel


class BankAccount(BaseModel):
    """A user's bank account. Deactivated rather than deleted."""

    __tablename__ = "bank_accounts"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    account_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    plaid_item_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    plaid_account_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Fernet-encrypted provider access token
    access_token_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_balance: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_token_encrypted)

    def __repr__(self) -> str:
        return f"<BankAccount(id={self.id}, name={self.account_name}, is_active={self.is_active})>"
