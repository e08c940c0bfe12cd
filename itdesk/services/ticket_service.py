import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from itdesk.core.exceptions import InvalidInputException, NotFoundException, PermissionDeniedException
from itdesk.models.comment import TicketComment
from itdesk.models.ticket import Ticket
from itdesk.models.user import User
from itdesk.schemas.comment import CommentResponse, TicketDetailResponse
from itdesk.schemas.notification import PersonRef, TicketSnapshot
from itdesk.schemas.ticket import (
    Pagination,
    PaginatedTickets,
    TicketCreate,
    TicketFilters,
    TicketListItem,
    TicketResponse,
    TicketStatus,
    TicketUpdate,
)
from itdesk.services.ticket_permissions import build_update_fields, can_comment, can_view, check_permissions, is_admin
from itdesk.services.ticket_repository import comment_repository, ticket_repository
from itdesk.utils.logger import logger

MAX_PAGE_SIZE = 100
NEW_TICKET_WINDOW = timedelta(hours=24)

# Columns copied into audit before/after snapshots
AUDITED_FIELDS = (
    "title", "description", "category", "priority", "status",
    "resolution", "assigned_to_id", "resolved_at",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Some drivers hand back naive datetimes; they are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def clamp_pagination(page: int, limit: int, max_limit: int = MAX_PAGE_SIZE):
    page = max(1, page)
    limit = min(max(1, limit), max_limit)
    return page, limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if total else 0)


def person_ref(user: Optional[User]) -> Optional[PersonRef]:
    if user is None:
        return None
    return PersonRef(name=user.display_name, email=user.email, department=user.department)


def build_ticket_snapshot(ticket: Ticket) -> TicketSnapshot:
    """Freeze a loaded ticket (reporter and assignee joined) for notification."""
    return TicketSnapshot(
        ticket_id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        category=ticket.category,
        priority=ticket.priority,
        status=ticket.status,
        reported_by=person_ref(ticket.reported_by),
        assigned_to=person_ref(ticket.assigned_to),
        created_at=as_utc(ticket.created_at) or utcnow(),
        updated_at=as_utc(ticket.updated_at),
    )


def ticket_audit_state(ticket: Ticket, names=AUDITED_FIELDS) -> Dict[str, Any]:
    state = {}
    for name in names:
        value = getattr(ticket, name)
        state[name] = value.isoformat() if isinstance(value, datetime) else value
    return state


@dataclass
class TicketUpdateResult:
    ticket: Ticket
    old_status: str
    changes: Dict[str, Any] = field(default_factory=dict)
    dropped: List[str] = field(default_factory=list)
    before: Dict[str, Any] = field(default_factory=dict)

    @property
    def status_changed(self) -> bool:
        return self.ticket.status != self.old_status

    @property
    def assignee_changed(self) -> bool:
        return "assigned_to_id" in self.changes and self.before.get("assigned_to_id") != self.ticket.assigned_to_id


class TicketService:
    """Ticket lifecycle rules on top of the ticket and comment repositories."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    async def _get_or_404(self, ticket_id: int) -> Ticket:
        ticket = await ticket_repository.get_by_id(self.db, id=ticket_id)
        if not ticket:
            raise NotFoundException("Ticket not found")
        return ticket

    # --------------------------------------------------------------------- #
    # Mutations
    # --------------------------------------------------------------------- #
    async def create_ticket(self, data: TicketCreate, reporter: User) -> Ticket:
        ticket = await ticket_repository.create(
            self.db,
            obj_in={
                "title": data.title,
                "description": data.description,
                "category": data.category.value,
                "priority": data.priority.value,
                "status": TicketStatus.open.value,
                "reported_by_id": reporter.id,
            },
        )
        logger.info(f"Ticket #{ticket.id} created by user {reporter.id} ({ticket.priority})")
        return ticket

    async def update_ticket(self, ticket_id: int, patch: TicketUpdate, actor: User) -> TicketUpdateResult:
        """
        Apply the subset of `patch` the actor is allowed to write.

        Raises NotFoundException or PermissionDeniedException before anything
        is written. A patch that leaves nothing to apply is not a write.
        """
        ticket = await self._get_or_404(ticket_id)
        permissions = check_permissions(ticket, actor)
        if not permissions.has_access:
            raise PermissionDeniedException("Permission denied")

        decision = build_update_fields(
            patch.model_dump(exclude_unset=True, mode="json"), ticket, permissions, self.clock()
        )
        if decision.dropped:
            logger.info(f"Ticket #{ticket_id}: ignored fields {decision.dropped} from user {actor.id}")

        result = TicketUpdateResult(
            ticket=ticket,
            old_status=ticket.status,
            dropped=decision.dropped,
            before=ticket_audit_state(ticket, decision.fields.keys()),
        )
        if not decision.fields:
            return result

        if "assigned_to_id" in decision.fields and decision.fields["assigned_to_id"] is not None:
            assignee = await self.db.get(User, decision.fields["assigned_to_id"])
            if assignee is None:
                raise InvalidInputException("Assignee not found")

        result.ticket = await ticket_repository.update(self.db, db_obj=ticket, fields=decision.fields)
        result.changes = decision.fields
        logger.info(f"Ticket #{ticket_id} updated by user {actor.id}: {sorted(decision.fields)}")
        return result

    async def delete_ticket(self, ticket_id: int, actor: User) -> Ticket:
        """Admin only. Returns the ticket as it was, for the audit trail."""
        if not is_admin(actor):
            raise PermissionDeniedException("Admin access required")

        ticket = await self._get_or_404(ticket_id)
        await ticket_repository.delete_ticket(self.db, ticket_id=ticket_id)
        logger.info(f"Ticket #{ticket_id} deleted by admin {actor.id}")
        return ticket

    async def add_comment(self, ticket_id: int, content: str, actor: User) -> TicketComment:
        content = (content or "").strip()
        if not content:
            raise InvalidInputException("Comment content is required")

        ticket = await self._get_or_404(ticket_id)
        if not can_comment(ticket, actor):
            raise PermissionDeniedException("Permission denied")

        return await comment_repository.create(
            self.db,
            obj_in={"ticket_id": ticket_id, "author_id": actor.id, "content": content},
        )

    async def record_ticket_view(self, ticket_id: int, user_id: int) -> None:
        await ticket_repository.upsert_ticket_view(
            self.db, ticket_id=ticket_id, user_id=user_id, viewed_at=self.clock()
        )

    # --------------------------------------------------------------------- #
    # Queries
    # --------------------------------------------------------------------- #
    async def ticket_exists(self, ticket_id: int) -> bool:
        return await ticket_repository.exists(self.db, ticket_id=ticket_id)

    async def get_ticket(self, ticket_id: int, viewer: User) -> Ticket:
        ticket = await self._get_or_404(ticket_id)
        if not can_view(ticket, viewer):
            raise PermissionDeniedException("Permission denied")
        return ticket

    async def list_comments(self, ticket_id: int, viewer: User) -> List[CommentResponse]:
        ticket = await self._get_or_404(ticket_id)
        if not can_comment(ticket, viewer):
            raise PermissionDeniedException("Permission denied")
        comments = await comment_repository.list_for_ticket(self.db, ticket_id=ticket_id)
        return [CommentResponse.model_validate(c) for c in comments]

    async def get_tickets(self, filters: TicketFilters, viewer: User) -> PaginatedTickets:
        """Admins see every ticket; everyone else only what they reported."""
        page, limit = clamp_pagination(filters.page, filters.limit)
        reported_by_id = None if is_admin(viewer) else viewer.id

        rows = await ticket_repository.list_tickets(
            self.db,
            filters=filters,
            viewer_id=viewer.id,
            reported_by_id=reported_by_id,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = await ticket_repository.count_tickets(self.db, filters=filters, reported_by_id=reported_by_id)

        cutoff = self.clock() - NEW_TICKET_WINDOW
        items = []
        for ticket, comment_count, viewed_at in rows:
            item = TicketListItem.model_validate(ticket)
            item.comment_count = comment_count
            created_at = as_utc(ticket.created_at)
            item.is_new = viewed_at is None and created_at is not None and created_at >= cutoff
            items.append(item)

        return PaginatedTickets(tickets=items, pagination=build_pagination(page, limit, total))

    async def get_ticket_detail(self, ticket_id: int, viewer: User) -> TicketDetailResponse:
        """Ticket with its comments, oldest first. Opening it marks it viewed."""
        ticket = await self.get_ticket(ticket_id, viewer)
        comments = await comment_repository.list_for_ticket(self.db, ticket_id=ticket_id)

        # Built from the base response so the lazy `comments` relationship is never touched
        detail = TicketDetailResponse(
            **TicketResponse.model_validate(ticket).model_dump(),
            comments=[CommentResponse.model_validate(c) for c in comments],
        )

        await self.record_ticket_view(ticket_id, viewer.id)
        return detail
