import json
import logging

from sqlalchemy.exc import OperationalError

from itdesk.schemas.audit_log import AuditAction, AuditLogFilters, AuditRecord
from itdesk.schemas.ticket import TicketCreate, TicketUpdate
from itdesk.services.audit_service import AuditLogService, update_action
from itdesk.services.ticket_service import TicketService


class BrokenSession:
    def __init__(self):
        self.rolled_back = False

    def add(self, obj):
        pass

    async def commit(self):
        raise OperationalError("INSERT INTO audit_logs", {}, Exception("database is locked"))

    async def rollback(self):
        self.rolled_back = True


async def test_append_and_query(db, users):
    audit = AuditLogService(db, ip_address="10.0.0.8", user_agent="pytest")

    assert await audit.log_ticket_event(AuditAction.ticket_create, 7, users["owner"], after={"title": "VPN"})
    assert await audit.append(AuditRecord(action=AuditAction.email_request, entity_type="EmailRequest", entity_id=3))

    page = await audit.get_audit_logs(AuditLogFilters())
    assert page.pagination.total == 2

    tickets_only = await audit.get_audit_logs(AuditLogFilters(entity_type="Ticket"))
    [entry] = tickets_only.audit_logs
    assert entry.action == "TICKET_CREATE"
    assert entry.user_email == "owner@example.com"
    assert entry.ip_address == "10.0.0.8"
    assert json.loads(entry.details) == {"after": {"title": "VPN"}}


async def test_failed_write_is_logged_not_raised(caplog):
    session = BrokenSession()
    audit = AuditLogService(session)

    with caplog.at_level(logging.WARNING, logger="itdesk.audit"):
        written = await audit.append(AuditRecord(action=AuditAction.ticket_delete, entity_type="Ticket", entity_id=5))

    assert written is False
    assert session.rolled_back
    assert "TICKET_DELETE" in caplog.text
    assert "database is locked" in caplog.text


async def test_update_action_classification(db, users):
    tickets = TicketService(db)
    ticket = await tickets.create_ticket(
        TicketCreate(title="Mouse", description="Broken", category="HARDWARE"), users["owner"]
    )

    assigned = await tickets.update_ticket(ticket.id, TicketUpdate(assigned_to_id=users["tech"].id), users["admin"])
    assert update_action(assigned) == AuditAction.ticket_assign

    started = await tickets.update_ticket(ticket.id, TicketUpdate(status="IN_PROGRESS"), users["admin"])
    assert update_action(started) == AuditAction.ticket_status_change

    reprioritised = await tickets.update_ticket(ticket.id, TicketUpdate(priority="HIGH"), users["admin"])
    assert update_action(reprioritised) == AuditAction.ticket_update


async def test_log_ticket_update_records_before_and_after(db, users):
    tickets = TicketService(db)
    audit = AuditLogService(db)
    ticket = await tickets.create_ticket(
        TicketCreate(title="Mouse", description="Broken", category="HARDWARE"), users["owner"]
    )
    result = await tickets.update_ticket(ticket.id, TicketUpdate(status="IN_PROGRESS"), users["admin"])

    assert await audit.log_ticket_update(result, users["admin"])

    [entry] = (await audit.get_audit_logs(AuditLogFilters(action=AuditAction.ticket_status_change))).audit_logs
    details = json.loads(entry.details)
    assert details["before"] == {"status": "OPEN"}
    assert details["after"] == {"status": "IN_PROGRESS"}
