from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from itdesk.schemas.ticket import Pagination


class AuditAction(str, Enum):
    login_success = "LOGIN_SUCCESS"
    login_failed = "LOGIN_FAILED"
    logout = "LOGOUT"
    password_change = "PASSWORD_CHANGE"
    password_reset = "PASSWORD_RESET"
    employee_create = "EMPLOYEE_CREATE"
    employee_update = "EMPLOYEE_UPDATE"
    employee_delete = "EMPLOYEE_DELETE"
    employee_status_change = "EMPLOYEE_STATUS_CHANGE"
    employee_import = "EMPLOYEE_IMPORT"
    ticket_create = "TICKET_CREATE"
    ticket_update = "TICKET_UPDATE"
    ticket_status_change = "TICKET_STATUS_CHANGE"
    ticket_assign = "TICKET_ASSIGN"
    ticket_comment = "TICKET_COMMENT"
    ticket_delete = "TICKET_DELETE"
    user_create = "USER_CREATE"
    user_update = "USER_UPDATE"
    user_delete = "USER_DELETE"
    user_role_change = "USER_ROLE_CHANGE"
    settings_update = "SETTINGS_UPDATE"
    data_export = "DATA_EXPORT"
    email_request = "EMAIL_REQUEST"


class AuditLogDetails(BaseModel):
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None


class AuditRecord(BaseModel):
    """What the core hands to the audit sink after a successful mutation."""
    action: AuditAction
    entity_type: str
    entity_id: Optional[int] = None
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    details: Optional[AuditLogDetails] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[datetime] = None


class AuditLogFilters(BaseModel):
    action: Optional[AuditAction] = None
    entity_type: Optional[str] = None
    page: int = 1
    limit: int = 20


class AuditLogResponse(BaseModel):
    id: int
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaginatedAuditLogs(BaseModel):
    audit_logs: List[AuditLogResponse]
    pagination: Pagination
