from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.sql import func

from charity_hub.models.base import Base


class Message(Base):
    """
    ORM model for a direct message between two users.

    Messages are immutable once sent; only ``read_at`` is ever updated, by the
    recipient.
    """

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    sender_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
