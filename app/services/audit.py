"""
Audit trail for grade changes, stored in the audit_logs table.
"""

import logging
from typing import Optional, Any, Dict

from app.core.database import execute, fetch_all
from app.core.exceptions import StoreUnavailable
from app.schemas.audit import AuditEvent

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 500


def record_event(
    db,
    user: dict,
    action: str,
    action_type: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    status: str = "success",
    details: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> bool:
    """Insert an audit row. Returns False instead of raising when the store fails."""
    event = AuditEvent(
        user_id=user.get("user_id"),
        user_name=user.get("email") or user.get("name") or "Unknown",
        user_role=user.get("role", "unknown"),
        action=action,
        action_type=action_type,
        resource_type=resource_type,
        resource_id=resource_id,
        status=status,
        details=details,
        metadata=metadata,
    )
    try:
        execute(db.table("audit_logs").insert(event.model_dump()))
    except StoreUnavailable:
        logger.warning("Failed to log audit event %r for %s", action, event.user_name)
        return False
    return True


def list_events(db, limit: int = DEFAULT_LIMIT) -> list[dict]:
    return fetch_all(
        db.table("audit_logs")
        .select("*")
        .order("created_at", desc=True)
        .limit(limit)
    )
