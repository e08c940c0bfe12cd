from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from itdesk.api.dependencies import get_audit_service, get_current_active_user, get_dispatcher, get_ticket_service
from itdesk.models.user import User
from itdesk.schemas.audit_log import AuditAction
from itdesk.schemas.comment import CommentCreate, CommentResponse, TicketDetailResponse
from itdesk.schemas.ticket import (
    PaginatedTickets,
    TicketCategory,
    TicketCreate,
    TicketFilters,
    TicketPriority,
    TicketResponse,
    TicketStatus,
    TicketUpdate,
)
from itdesk.services.audit_service import AuditLogService
from itdesk.services.notification_service import NotificationDispatcher
from itdesk.services.ticket_service import TicketService, build_ticket_snapshot, ticket_audit_state
from itdesk.utils.logger import logger

router = APIRouter()


@router.get("", response_model=PaginatedTickets)
async def read_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    category: Optional[TicketCategory] = None,
    priority: Optional[TicketPriority] = None,
    page: int = 1,
    limit: int = 10,
    service: TicketService = Depends(get_ticket_service),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    filters = TicketFilters(status=status_filter, category=category, priority=priority, page=page, limit=limit)
    return await service.get_tickets(filters, current_user)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    ticket_in: TicketCreate,
    background_tasks: BackgroundTasks,
    service: TicketService = Depends(get_ticket_service),
    audit: AuditLogService = Depends(get_audit_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    ticket = await service.create_ticket(ticket_in, current_user)
    response = TicketResponse.model_validate(ticket)
    snapshot = build_ticket_snapshot(ticket)

    await audit.log_ticket_event(AuditAction.ticket_create, ticket.id, current_user, after=ticket_audit_state(ticket))
    background_tasks.add_task(dispatcher.notify_ticket_created, snapshot)
    return response


@router.get("/{ticket_id}", response_model=TicketDetailResponse)
async def read_ticket(
    ticket_id: int,
    service: TicketService = Depends(get_ticket_service),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return await service.get_ticket_detail(ticket_id, current_user)


@router.patch("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: int,
    ticket_in: TicketUpdate,
    background_tasks: BackgroundTasks,
    service: TicketService = Depends(get_ticket_service),
    audit: AuditLogService = Depends(get_audit_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    result = await service.update_ticket(ticket_id, ticket_in, current_user)
    response = TicketResponse.model_validate(result.ticket)
    if not result.changes:
        return response

    snapshot = build_ticket_snapshot(result.ticket)
    await audit.log_ticket_update(result, current_user)
    if result.status_changed:
        background_tasks.add_task(dispatcher.notify_ticket_updated, snapshot, result.old_status)
    return response


@router.delete("/{ticket_id}")
async def delete_ticket(
    ticket_id: int,
    service: TicketService = Depends(get_ticket_service),
    audit: AuditLogService = Depends(get_audit_service),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    ticket = await service.delete_ticket(ticket_id, current_user)
    await audit.log_ticket_event(
        AuditAction.ticket_delete, ticket_id, current_user, before=ticket_audit_state(ticket)
    )
    return {"message": "Ticket deleted successfully"}


@router.get("/{ticket_id}/comments", response_model=List[CommentResponse])
async def read_comments(
    ticket_id: int,
    service: TicketService = Depends(get_ticket_service),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return await service.list_comments(ticket_id, current_user)


@router.post("/{ticket_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    ticket_id: int,
    comment_in: CommentCreate,
    service: TicketService = Depends(get_ticket_service),
    audit: AuditLogService = Depends(get_audit_service),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    comment = await service.add_comment(ticket_id, comment_in.content, current_user)
    response = CommentResponse.model_validate(comment)
    await audit.log_ticket_event(
        AuditAction.ticket_comment, ticket_id, current_user, metadata={"comment_id": comment.id}
    )
    logger.info(f"Comment #{comment.id} added to ticket #{ticket_id} by user {current_user.id}")
    return response


@router.post("/{ticket_id}/view", status_code=status.HTTP_204_NO_CONTENT)
async def mark_ticket_viewed(
    ticket_id: int,
    service: TicketService = Depends(get_ticket_service),
    current_user: User = Depends(get_current_active_user),
) -> None:
    await service.get_ticket(ticket_id, current_user)
    await service.record_ticket_view(ticket_id, current_user.id)
