from fastapi import BackgroundTasks
from loguru import logger
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.user import User, user_summary
from app.modules.notifications.service import NotificationEmitter
from app.schemas.enums import ConnectionDecision, ConnectionStatus
from . import resolver
from .models import Connection


# ---------- CONNECTION LOGIC ----------

def send_request(
    db: Session,
    notifier: NotificationEmitter,
    background_tasks: BackgroundTasks,
    requester_id: str,
    recipient_id: str,
    connection_message: str | None = "",
) -> Connection:
    if not recipient_id:
        raise ValidationError("Recipient ID is required")
    if not requester_id:
        raise ValidationError("Requester ID is required")
    if requester_id == recipient_id:
        raise ValidationError("Cannot send connection request to yourself")

    found = db.query(User.id).filter(User.id.in_([requester_id, recipient_id])).count()
    if found != 2:
        raise NotFoundError("One or both users not found")

    existing = resolver.find_any(db, requester_id, recipient_id)

    for row in existing:
        if row.status == ConnectionStatus.accepted.value:
            raise ConflictError("Users are already connected")
        if row.status == ConnectionStatus.pending.value:
            raise ConflictError("Connection request already pending")

    # only declined rows are left: drop them so a fresh request can start over
    for row in existing:
        logger.info(f"[connections] clearing declined connection {row.id} for {requester_id}/{recipient_id}")
        db.delete(row)

    conn = Connection(
        requester_id=requester_id,
        recipient_id=recipient_id,
        status=ConnectionStatus.pending.value,
        connection_message=connection_message or "",
    )
    db.add(conn)
    db.commit()
    db.refresh(conn)

    logger.info(f"[connections] {requester_id} -> {recipient_id} pending ({conn.id})")

    background_tasks.add_task(notifier.connection_requested, conn.id, requester_id, recipient_id)
    return conn


def respond(
    db: Session,
    notifier: NotificationEmitter,
    background_tasks: BackgroundTasks,
    connection_id: str,
    response: str,
) -> Connection:
    if not connection_id or not response:
        raise ValidationError("Connection ID and response are required")

    if response not in {d.value for d in ConnectionDecision}:
        raise ValidationError('Response must be "accepted" or "declined"')

    conn = db.get(Connection, connection_id)
    if conn is None:
        raise NotFoundError("Connection request not found")

    if conn.status != ConnectionStatus.pending.value:
        raise ConflictError("Connection request is no longer pending")

    conn.status = response
    db.commit()
    db.refresh(conn)

    logger.info(f"[connections] {conn.id} {conn.requester_id} -> {conn.recipient_id} {response}")

    background_tasks.add_task(
        notifier.connection_answered,
        conn.id,
        conn.requester_id,
        conn.recipient_id,
        response,
    )
    return conn


# ---------- LISTING ----------

def list_for_user(db: Session, user_id: str) -> dict:
    if not user_id:
        raise ValidationError("User ID is required")

    rows = (
        db.query(Connection)
        .filter((Connection.requester_id == user_id) | (Connection.recipient_id == user_id))
        .order_by(Connection.created_date.desc())
        .all()
    )

    other_ids = {r.requester_id for r in rows} | {r.recipient_id for r in rows}
    other_ids.discard(user_id)

    users = {}
    if other_ids:
        users = {u.id: u for u in db.query(User).filter(User.id.in_(sorted(other_ids))).all()}

    formatted = []
    for r in rows:
        is_requester = r.requester_id == user_id
        other_id = r.recipient_id if is_requester else r.requester_id
        formatted.append({
            "id": r.id,
            "status": r.status,
            "connection_message": r.connection_message,
            "created_date": r.created_date,
            "updated_date": r.updated_date,
            "is_requester": is_requester,
            "other_user": user_summary(users.get(other_id)),
        })

    return {
        "pending_sent": [c for c in formatted if c["status"] == "pending" and c["is_requester"]],
        "pending_received": [c for c in formatted if c["status"] == "pending" and not c["is_requester"]],
        "accepted": [c for c in formatted if c["status"] == "accepted"],
        "declined": [c for c in formatted if c["status"] == "declined"],
        "all": formatted,
    }
