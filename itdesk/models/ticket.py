from sqlalchemy import Column, Integer, String, Text, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from itdesk.database.base_class import Base


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False)
    category = Column(
        Enum("HARDWARE", "SOFTWARE", "NETWORK", "ACCOUNT", "EMAIL", "PRINTER", "OTHER", name="ticket_category"),
        nullable=False,
    )
    priority = Column(Enum("LOW", "MEDIUM", "HIGH", "URGENT", name="ticket_priority"), nullable=False, default="MEDIUM")
    status = Column(
        Enum("OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED", "CANCELLED", name="ticket_status"),
        nullable=False,
        default="OPEN",
        index=True,
    )
    resolution = Column(Text, nullable=True)
    reported_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    reported_by = relationship("User", back_populates="reported_tickets", foreign_keys=[reported_by_id])
    assigned_to = relationship("User", back_populates="assigned_tickets", foreign_keys=[assigned_to_id])
    comments = relationship(
        "TicketComment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TicketComment.created_at",
    )
    views = relationship("TicketView", back_populates="ticket", cascade="all, delete-orphan", passive_deletes=True)


class TicketView(Base):
    """Last time a given user opened a given ticket; drives the unread badge."""
    __tablename__ = "ticket_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    viewed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('ticket_id', 'user_id', name='uix_ticket_view_ticket_user'),
    )

    ticket = relationship("Ticket", back_populates="views")
