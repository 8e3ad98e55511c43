from sqlalchemy import Column, String, Text, DateTime, Boolean, Index

from app.core.db import Base
from app.core.time import new_id, utcnow


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True, default=new_id)
    sender_id = Column(String(36), nullable=False, index=True)
    recipient_id = Column(String(36), nullable=True, index=True)
    message = Column(Text, nullable=False)
    message_type = Column(String, nullable=False, default="text")
    # "direct" for delegate-to-delegate chat, "meeting" when tied to a meeting request
    message_context = Column(String, nullable=False, default="direct")
    meeting_request_id = Column(String(36), nullable=True)
    read_status = Column(Boolean, nullable=False, default=False)
    created_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_chat_messages_thread", "message_context", "sender_id", "recipient_id", "created_date"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "recipient_id": self.recipient_id,
            "message": self.message,
            "message_type": self.message_type,
            "message_context": self.message_context,
            "meeting_request_id": self.meeting_request_id,
            "read_status": self.read_status,
            "created_date": self.created_date,
        }
