"""Audit log helper: append-only writes to audit_logs table."""
import json
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog

logger = logging.getLogger(__name__)


async def log_async(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    actor_id: str | None = None,
    actor_email: str | None = None,
    before: Any | None = None,
    after: Any | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Write a single audit log entry.

    Args:
        db: Async SQLAlchemy session. The entry is flushed, not committed;
            the caller controls the transaction.
        action: Short verb, e.g. 'bulk_import.completed'.
        entity_type: Table/domain name, e.g. 'bulk_import', 'asset'.
        entity_id: Identifier of the affected record or run.
        actor_id: User who performed the action (None for system actions).
        actor_email: Denormalised email (preserved if user is later deleted).
        before: Dict snapshot of state before the action (JSON-serialisable).
        after: Dict snapshot of state after the action.
        notes: Free-text annotation.
    """
    entry = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before_state=json.dumps(before, default=str) if before is not None else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        notes=notes,
    )
    db.add(entry)
    await db.flush()
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry
