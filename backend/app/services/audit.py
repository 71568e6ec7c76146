"""Append-only audit trail shared by the lifecycle and balance services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.models.audit import AuditLog

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from app.models.enums import AuditAction, AuditEntityType


def audit_snapshot(model: SQLModel) -> dict[str, Any]:
    """JSON-safe copy of a row; UUIDs, dates and Decimals become strings."""
    return model.model_dump(mode="json")


async def write_audit_log(
    session: AsyncSession,
    *,
    actor_id: uuid.UUID,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an audit entry; it commits or rolls back with the caller's transaction."""
    entry = AuditLog(
        actor_id=actor_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry
