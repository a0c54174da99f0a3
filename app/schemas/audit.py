from pydantic import BaseModel
from typing import Optional, Any, Dict, Literal


ActionType = Literal["create", "update", "delete", "login", "logout", "access", "system"]
AuditStatus = Literal["success", "failure", "warning"]


class AuditEvent(BaseModel):
    user_id: Optional[str] = None
    user_name: str
    user_role: str
    action: str
    action_type: ActionType
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    status: AuditStatus = "success"
    details: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
