import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from itdesk.core.exceptions import AuditWriteException
from itdesk.models.audit_log import AuditLog
from itdesk.schemas.audit_log import (
    AuditAction,
    AuditLogDetails,
    AuditLogFilters,
    AuditLogResponse,
    AuditRecord,
    PaginatedAuditLogs,
)
from itdesk.services.base_service import BaseService
from itdesk.services.ticket_service import TicketUpdateResult, build_pagination, clamp_pagination, ticket_audit_state
from itdesk.utils.logger import audit_logger as logger

TICKET_ENTITY = "Ticket"
EMAIL_REQUEST_ENTITY = "EmailRequest"


def update_action(result: TicketUpdateResult) -> AuditAction:
    if result.status_changed:
        return AuditAction.ticket_status_change
    if result.assignee_changed:
        return AuditAction.ticket_assign
    return AuditAction.ticket_update


def serialize_details(details: Optional[AuditLogDetails]) -> Optional[str]:
    if details is None:
        return None
    payload = {k: v for k, v in details.model_dump(mode="json").items() if v is not None}
    return json.dumps(payload, ensure_ascii=False) if payload else None


class AuditLogRepository(BaseService):
    model = AuditLog


audit_log_repository = AuditLogRepository()


class AuditLogService:
    """
    Append-only audit trail.

    Writes are committed on their own and a failed write is logged and
    dropped: the mutation it describes has already succeeded.
    """

    def __init__(self, db: AsyncSession, ip_address: Optional[str] = None, user_agent: Optional[str] = None):
        self.db = db
        self.ip_address = ip_address
        self.user_agent = user_agent

    async def _write(self, record: AuditRecord) -> AuditLog:
        entry = AuditLog(
            action=record.action.value,
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            user_id=record.user_id,
            user_email=record.user_email,
            details=serialize_details(record.details),
            ip_address=record.ip_address or self.ip_address,
            user_agent=record.user_agent or self.user_agent,
            created_at=record.timestamp or datetime.now(timezone.utc),
        )
        try:
            self.db.add(entry)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise AuditWriteException(str(e)) from e
        return entry

    async def append(self, record: AuditRecord) -> bool:
        try:
            await self._write(record)
            return True
        except AuditWriteException as e:
            logger.warning(
                f"[AUDIT] Failed to record {record.action.value} on "
                f"{record.entity_type}#{record.entity_id}: {e.detail}"
            )
            return False

    # --------------------------------------------------------------------- #
    # Ticket and email-request helpers
    # --------------------------------------------------------------------- #
    async def log_ticket_event(
        self,
        action: AuditAction,
        ticket_id: int,
        actor,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        return await self.append(AuditRecord(
            action=action,
            entity_type=TICKET_ENTITY,
            entity_id=ticket_id,
            user_id=actor.id,
            user_email=actor.email,
            details=AuditLogDetails(before=before, after=after, metadata=metadata),
        ))

    async def log_ticket_update(self, result: TicketUpdateResult, actor) -> bool:
        after = ticket_audit_state(result.ticket, result.changes.keys())
        metadata = {"dropped_fields": result.dropped} if result.dropped else None
        return await self.log_ticket_event(
            update_action(result), result.ticket.id, actor, before=result.before, after=after, metadata=metadata
        )

    async def log_email_request_event(self, email_request, actor) -> bool:
        return await self.append(AuditRecord(
            action=AuditAction.email_request,
            entity_type=EMAIL_REQUEST_ENTITY,
            entity_id=email_request.id,
            user_id=actor.id,
            user_email=actor.email,
            details=AuditLogDetails(after={
                "thai_name": email_request.thai_name,
                "english_name": email_request.english_name,
                "department": email_request.department,
                "reply_email": email_request.reply_email,
            }),
        ))

    # --------------------------------------------------------------------- #
    # Queries
    # --------------------------------------------------------------------- #
    async def get_audit_logs(self, filters: AuditLogFilters) -> PaginatedAuditLogs:
        page, limit = clamp_pagination(filters.page, filters.limit)
        conditions = []
        if filters.action:
            conditions.append(AuditLog.action == filters.action.value)
        if filters.entity_type:
            conditions.append(AuditLog.entity_type == filters.entity_type)

        logs = await audit_log_repository.get_multi(
            self.db,
            filters=conditions,
            order_by=[AuditLog.created_at.desc(), AuditLog.id.desc()],
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = await audit_log_repository.count(self.db, filters=conditions)
        return PaginatedAuditLogs(
            audit_logs=[AuditLogResponse.model_validate(log) for log in logs],
            pagination=build_pagination(page, limit, total),
        )
