from typing import Any, Optional

from fastapi import APIRouter, Depends

from itdesk.api.dependencies import get_audit_service, get_current_active_admin
from itdesk.models.user import User
from itdesk.schemas.audit_log import AuditAction, AuditLogFilters, PaginatedAuditLogs
from itdesk.services.audit_service import AuditLogService

router = APIRouter()


@router.get("", response_model=PaginatedAuditLogs)
async def read_audit_logs(
    action: Optional[AuditAction] = None,
    entity_type: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    audit: AuditLogService = Depends(get_audit_service),
    current_user: User = Depends(get_current_active_admin),
) -> Any:
    filters = AuditLogFilters(action=action, entity_type=entity_type, page=page, limit=limit)
    return await audit.get_audit_logs(filters)
