from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from itdesk.database.base_class import Base


class EmailRequest(Base):
    """A request to provision a mailbox for a new employee. Write-once."""
    __tablename__ = "email_requests"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    thai_name = Column(String(255), nullable=False)
    english_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    nickname = Column(String(100), nullable=False, default="")
    position = Column(String(255), nullable=False)
    department = Column(String(255), nullable=False)
    reply_email = Column(String(255), nullable=False)
    requested_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    requested_by = relationship("User")
