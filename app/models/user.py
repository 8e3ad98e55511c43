from sqlalchemy import Column, String, DateTime

from app.core.db import Base
from app.core.time import new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=True, index=True)
    full_name = Column(String, nullable=True)
    organization = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    country = Column(String, nullable=True)
    created_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)


def user_summary(user: User | None, fields=("id", "full_name", "organization", "job_title", "country")) -> dict | None:
    if user is None:
        return None
    return {f: getattr(user, f) for f in fields}
