from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from loguru import logger

from app.core.config import DATABASE_URL, SQL_ECHO_LOG

# --- Base (single source of truth) ---
Base = declarative_base()


def build_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url == "sqlite://":
            kwargs["poolclass"] = StaticPool
    else:
        kwargs = {"pool_pre_ping": True}

    eng = create_engine(url, echo=False, future=True, **kwargs)

    if SQL_ECHO_LOG:
        # --- SQL query logging ---
        @event.listens_for(eng, "before_cursor_execute")
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            logger.debug(f"SQL: {statement} | params={parameters}")

    return eng


def build_session_factory(bind):
    return sessionmaker(
        bind=bind,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


# --- Engine ---
engine = build_engine(DATABASE_URL)

# --- Session factory ---
SessionLocal = build_session_factory(engine)


# --- FastAPI dependency ---
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
