from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.models.audit_log import AuditLog


async def log_event(
    db: AsyncSession,
    user_id: UUID | None,
    action: str,
    entity_type: str,
    entity_id: UUID | None = None,
    details: dict | None = None,
    commit: bool = True,
) -> AuditLog:
    row = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    db.add(row)
    if commit:
        await db.commit()
    return row
