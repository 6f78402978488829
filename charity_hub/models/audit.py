from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from charity_hub.models.base import Base


class AuditLog(Base):
    """Append-only record of administrative actions."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    performed_by = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
