from sqlalchemy import Column, String, Text, DateTime, Boolean

from app.core.db import Base
from app.core.time import new_id, utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), index=True, nullable=False)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=True)
    link = Column(String, nullable=True)
    related_entity_id = Column(String(36), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "body": self.body,
            "link": self.link,
            "related_entity_id": self.related_entity_id,
            "is_read": self.is_read,
            "created_date": self.created_date,
        }
