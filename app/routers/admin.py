"""
Admin router — Audit trail of grade changes.
"""

from fastapi import APIRouter, Depends, Query
from app.core.security import require_role
from app.core.database import get_supabase
from app.services import audit
from app.utils.response import success_response

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/audit-logs")
async def list_audit_logs(
    limit: int = Query(audit.DEFAULT_LIMIT, ge=1, le=audit.DEFAULT_LIMIT),
    user: dict = Depends(require_role(["admin"])),
):
    logs = audit.list_events(get_supabase(), limit=limit)
    return success_response(data=logs)
