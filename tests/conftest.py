"""
Conftest

Runs everything against one in-memory SQLite database shared through a
StaticPool, so request sessions, the notification emitter and the test's own
session all see the same rows.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""
os.environ.setdefault("LOG_LEVEL", "INFO")

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from app.core.db import Base, SessionLocal, engine, get_db
from app.core.init_db import init_db
from app.main import app
from app.models.user import User
from app.modules.connections.models import Connection
from app.modules.notifications.service import NotificationEmitter, get_notifier


@pytest.fixture(autouse=True)
def schema():
    init_db(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return NotificationEmitter(SessionLocal)


@pytest.fixture
def client(notifier):
    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def users(db):
    """Four delegates keyed by short name."""
    people = {
        "alice": User(id="u-alice", full_name="Alice Moreau", organization="Acme", job_title="CTO", country="FR"),
        "bob": User(id="u-bob", full_name="Bob Ito", organization="Globex", job_title="PM", country="JP"),
        "carol": User(id="u-carol", full_name="Carol Diaz", organization="Initech", job_title="CEO", country="ES"),
        "dave": User(id="u-dave", full_name="Dave Okafor", organization=None, job_title=None, country="NG"),
    }
    db.add_all(people.values())
    db.commit()
    return {k: v.id for k, v in people.items()}


@pytest.fixture
def connect(db):
    """Insert a connection row directly, bypassing the lifecycle rules."""
    def _connect(requester_id, recipient_id, status="accepted"):
        conn = Connection(requester_id=requester_id, recipient_id=recipient_id, status=status)
        db.add(conn)
        db.commit()
        return conn
    return _connect


@pytest.fixture
def run_tasks():
    """Run what a service scheduled on BackgroundTasks, the way FastAPI would after responding."""
    def _run(background_tasks: BackgroundTasks) -> None:
        for task in background_tasks.tasks:
            task.func(*task.args, **task.kwargs)
    return _run
