from sqlalchemy import Column, Integer, String, Text, DateTime, func
from itdesk.database.base_class import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True)
    # No FK: entries must outlive the users and entities they describe
    user_id = Column(Integer, nullable=True, index=True)
    user_email = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)  # JSON: {"before": ..., "after": ..., "metadata": ...}
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
