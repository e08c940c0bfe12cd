from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, status

from itdesk.api.dependencies import (
    get_audit_service,
    get_current_active_user,
    get_dispatcher,
    get_email_request_service,
)
from itdesk.models.user import User
from itdesk.schemas.email_request import EmailRequestCreate, EmailRequestResponse, PaginatedEmailRequests
from itdesk.services.audit_service import AuditLogService
from itdesk.services.email_request_service import EmailRequestService, build_email_request_snapshot
from itdesk.services.notification_service import NotificationDispatcher

router = APIRouter()


@router.get("", response_model=PaginatedEmailRequests)
async def read_email_requests(
    page: int = 1,
    limit: int = 10,
    service: EmailRequestService = Depends(get_email_request_service),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return await service.get_email_requests(current_user, page=page, limit=limit)


@router.post("", response_model=EmailRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_email_request(
    request_in: EmailRequestCreate,
    background_tasks: BackgroundTasks,
    service: EmailRequestService = Depends(get_email_request_service),
    audit: AuditLogService = Depends(get_audit_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    email_request = await service.create_email_request(request_in, current_user)
    response = EmailRequestResponse.model_validate(email_request)
    snapshot = build_email_request_snapshot(email_request)

    await audit.log_email_request_event(email_request, current_user)
    background_tasks.add_task(dispatcher.notify_email_request_created, snapshot)
    return response
