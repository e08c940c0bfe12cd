from sqlalchemy import Column, Integer, String, Enum, DateTime, func, Boolean
from sqlalchemy.orm import relationship
from itdesk.database.base_class import Base


class User(Base):
    """Application account. Owned by the surrounding web application; read-only here."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(Enum('ADMIN', 'USER', name='user_role'), default='USER', nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    department = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    reported_tickets = relationship("Ticket", back_populates="reported_by", foreign_keys="[Ticket.reported_by_id]")
    assigned_tickets = relationship("Ticket", back_populates="assigned_to", foreign_keys="[Ticket.assigned_to_id]")

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.name
