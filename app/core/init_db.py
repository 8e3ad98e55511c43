from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.core.db import engine as default_engine, Base

# Import all models so SQLAlchemy registers them
from app.models.user import User
from app.modules.connections.models import Connection
from app.modules.messages.models import ChatMessage
from app.modules.notifications.models import Notification

CAN_USERS_DIRECT_MESSAGE_SQL = """
create or replace function can_users_direct_message(user1_id text, user2_id text)
returns boolean
language sql
stable
as $$
    select exists (
        select 1
        from delegate_connections
        where status = 'accepted'
          and (
                (requester_id = user1_id and recipient_id = user2_id)
             or (requester_id = user2_id and recipient_id = user1_id)
          )
    );
$$;
"""


def init_db(engine: Engine = default_engine) -> None:
    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine)

    if engine.dialect.name == "postgresql":
        with engine.begin() as conn:
            conn.execute(text(CAN_USERS_DIRECT_MESSAGE_SQL))
        logger.info("Installed can_users_direct_message()")

    logger.info("Database tables created")
