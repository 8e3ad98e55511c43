from sqlalchemy import Column, String, Text, DateTime, CheckConstraint

from app.core.db import Base
from app.core.time import new_id, utcnow


class Connection(Base):
    __tablename__ = "delegate_connections"

    id = Column(String(36), primary_key=True, default=new_id)
    requester_id = Column(String(36), nullable=False, index=True)
    recipient_id = Column(String(36), nullable=False, index=True)
    status = Column(
        String,
        CheckConstraint(
            "status IN ('pending','accepted','declined')",
            name="delegate_connections_status_check",
        ),
        nullable=False,
        default="pending",
    )
    connection_message = Column(Text, nullable=True)
    created_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_date = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("requester_id <> recipient_id", name="delegate_connections_not_self"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "recipient_id": self.recipient_id,
            "status": self.status,
            "connection_message": self.connection_message,
            "created_date": self.created_date,
            "updated_date": self.updated_date,
        }
