from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledgerflow.models.base import BaseModel


class AuditLog(BaseModel):
    __tablename__ = "audit_logs"

    # NULL for system events (scheduled sync, retention)
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    action: Mapped[str] = mapped_column(String(64), index=True)
    entity_type: Mapped[str] = mapped_column(String(64), index=True)
    entity_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (Index("ix_audit_logs_entity", "entity_type", "entity_id"),)
