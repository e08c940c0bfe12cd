from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from itdesk.models.comment import TicketComment
from itdesk.models.ticket import Ticket, TicketView
from itdesk.schemas.ticket import TicketFilters
from itdesk.services.base_service import BaseService

# Enum declaration order, so "priority desc" puts URGENT first on every backend
PRIORITY_RANK = case(
    {"LOW": 0, "MEDIUM": 1, "HIGH": 2, "URGENT": 3},
    value=Ticket.priority,
    else_=0,
)


class TicketRepository(BaseService):
    model = Ticket
    load_options = (joinedload(Ticket.reported_by), joinedload(Ticket.assigned_to))

    @staticmethod
    def _filter_conditions(filters: TicketFilters, reported_by_id: Optional[int]) -> List[Any]:
        conditions = []
        if reported_by_id is not None:
            conditions.append(Ticket.reported_by_id == reported_by_id)
        if filters.status:
            conditions.append(Ticket.status == filters.status.value)
        if filters.category:
            conditions.append(Ticket.category == filters.category.value)
        if filters.priority:
            conditions.append(Ticket.priority == filters.priority.value)
        return conditions

    async def list_tickets(
        self,
        db: AsyncSession,
        *,
        filters: TicketFilters,
        viewer_id: int,
        reported_by_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[Tuple[Ticket, int, Optional[datetime]]]:
        """
        One page of tickets, most urgent first then newest first.

        Each row is (ticket, comment_count, viewer's last viewed_at or None).
        """
        comment_count = (
            select(func.count(TicketComment.id))
            .where(TicketComment.ticket_id == Ticket.id)
            .correlate(Ticket)
            .scalar_subquery()
        )
        viewed_at = (
            select(TicketView.viewed_at)
            .where(TicketView.ticket_id == Ticket.id, TicketView.user_id == viewer_id)
            .correlate(Ticket)
            .scalar_subquery()
        )
        stmt = (
            select(Ticket, comment_count, viewed_at)
            .options(*self.load_options)
            .filter(*self._filter_conditions(filters, reported_by_id))
            .order_by(PRIORITY_RANK.desc(), Ticket.created_at.desc(), Ticket.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return [(row[0], row[1] or 0, row[2]) for row in result.all()]

    async def count_tickets(
        self, db: AsyncSession, *, filters: TicketFilters, reported_by_id: Optional[int] = None
    ) -> int:
        return await self.count(db, filters=self._filter_conditions(filters, reported_by_id))

    async def delete_ticket(self, db: AsyncSession, *, ticket_id: int) -> None:
        """Remove a ticket with its comments and view markers in one transaction."""
        await db.execute(delete(TicketComment).where(TicketComment.ticket_id == ticket_id))
        await db.execute(delete(TicketView).where(TicketView.ticket_id == ticket_id))
        await db.execute(delete(Ticket).where(Ticket.id == ticket_id))
        await db.commit()

    async def exists(self, db: AsyncSession, *, ticket_id: int) -> bool:
        result = await db.execute(select(Ticket.id).where(Ticket.id == ticket_id))
        return result.scalar() is not None

    # --------------------------------------------------------------------- #
    # View markers
    # --------------------------------------------------------------------- #
    async def upsert_ticket_view(self, db: AsyncSession, *, ticket_id: int, user_id: int, viewed_at: datetime) -> None:
        updated = await db.execute(
            update(TicketView)
            .where(TicketView.ticket_id == ticket_id, TicketView.user_id == user_id)
            .values(viewed_at=viewed_at)
        )
        if updated.rowcount:
            await db.commit()
            return

        db.add(TicketView(ticket_id=ticket_id, user_id=user_id, viewed_at=viewed_at))
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent request inserted the marker first
            await db.rollback()
            await db.execute(
                update(TicketView)
                .where(TicketView.ticket_id == ticket_id, TicketView.user_id == user_id)
                .values(viewed_at=viewed_at)
            )
            await db.commit()

    async def get_ticket_view(self, db: AsyncSession, *, ticket_id: int, user_id: int) -> Optional[TicketView]:
        result = await db.execute(
            select(TicketView).where(TicketView.ticket_id == ticket_id, TicketView.user_id == user_id)
        )
        return result.scalars().first()


class CommentRepository(BaseService):
    model = TicketComment
    load_options = (joinedload(TicketComment.author),)

    async def list_for_ticket(self, db: AsyncSession, *, ticket_id: int) -> Sequence[TicketComment]:
        return await self.get_multi(
            db,
            filters=[TicketComment.ticket_id == ticket_id],
            order_by=[TicketComment.created_at.asc(), TicketComment.id.asc()],
            limit=None,
        )


ticket_repository = TicketRepository()
comment_repository = CommentRepository()
