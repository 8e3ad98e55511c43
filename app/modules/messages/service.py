from fastapi import BackgroundTasks
from loguru import logger
from sqlalchemy import and_, or_, update
from sqlalchemy.orm import Session

from app.core.config import MESSAGE_MAX_LENGTH
from app.core.errors import PermissionDeniedError, ValidationError
from app.models.user import User, user_summary
from app.modules.connections import resolver
from app.modules.notifications.service import NotificationEmitter
from app.schemas.enums import MessageContext
from .models import ChatMessage


def _thread_filter(party_a: str, party_b: str):
    return and_(
        ChatMessage.message_context == MessageContext.direct.value,
        or_(
            and_(ChatMessage.sender_id == party_a, ChatMessage.recipient_id == party_b),
            and_(ChatMessage.sender_id == party_b, ChatMessage.recipient_id == party_a),
        ),
    )


def _with_names(db: Session, messages: list[ChatMessage]) -> list[dict]:
    ids = {m.sender_id for m in messages} | {m.recipient_id for m in messages}
    users = {u.id: u for u in db.query(User).filter(User.id.in_(sorted(i for i in ids if i))).all()} if ids else {}

    out = []
    for m in messages:
        row = m.to_dict()
        row["sender"] = user_summary(users.get(m.sender_id), ("id", "full_name"))
        row["recipient"] = user_summary(users.get(m.recipient_id), ("id", "full_name"))
        out.append(row)
    return out


# ---------- SEND ----------

def send(
    db: Session,
    notifier: NotificationEmitter,
    background_tasks: BackgroundTasks,
    sender_id: str,
    recipient_id: str,
    body: str,
) -> dict:
    if not sender_id or not recipient_id or not body:
        raise ValidationError("Sender ID, recipient ID, and message are required")

    if len(body) < 1 or len(body) > MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message must be between 1 and {MESSAGE_MAX_LENGTH} characters")

    if sender_id == recipient_id:
        raise ValidationError("Cannot send message to yourself")

    # gate check and insert share one transaction
    if not resolver.can_direct_message(db, sender_id, recipient_id):
        db.rollback()
        raise PermissionDeniedError("You must be connected to this delegate to send direct messages")

    msg = ChatMessage(
        sender_id=sender_id,
        recipient_id=recipient_id,
        message=body,
        message_type="text",
        message_context=MessageContext.direct.value,
        meeting_request_id=None,
    )
    db.add(msg)
    db.commit()
    db.refresh(msg)

    logger.info(f"[messages] {sender_id} -> {recipient_id} ({msg.id}, {len(body)} chars)")

    background_tasks.add_task(notifier.message_received, msg.id, sender_id, recipient_id)
    return _with_names(db, [msg])[0]


# ---------- THREAD ----------

def fetch_thread(db: Session, viewer_id: str, other_id: str) -> dict:
    """Return the direct thread between ``viewer_id`` and ``other_id``, oldest first.

    Messages addressed to the viewer that were unread are flipped to read in
    one UPDATE as part of this call. The returned rows show the state as it
    was when the thread was read; ``unread_count`` is how many were flipped.
    """
    if not viewer_id or not other_id:
        raise ValidationError("Both user IDs are required")

    if viewer_id == other_id:
        raise ValidationError("Cannot get messages with yourself")

    if not resolver.can_direct_message(db, viewer_id, other_id):
        raise PermissionDeniedError("You must be connected to this delegate to view direct messages")

    messages = (
        db.query(ChatMessage)
        .filter(_thread_filter(viewer_id, other_id))
        .order_by(ChatMessage.created_date.asc())
        .all()
    )
    rows = _with_names(db, messages)

    unread_ids = [m.id for m in messages if m.recipient_id == viewer_id and not m.read_status]

    # read receipts are part of the fetch: a failed UPDATE fails the whole call (500)
    if unread_ids:
        db.execute(
            update(ChatMessage)
            .where(ChatMessage.id.in_(unread_ids), ChatMessage.read_status.is_(False))
            .values(read_status=True)
        )
        db.commit()
        logger.debug(f"[messages] {viewer_id} read {len(unread_ids)} from {other_id}")

    return {
        "messages": rows,
        "total_count": len(rows),
        "unread_count": len(unread_ids),
    }


def permission(db: Session, party_a: str, party_b: str) -> dict:
    if not party_a or not party_b:
        raise ValidationError("Both user IDs are required")

    if party_a == party_b:
        raise ValidationError("Cannot check permission with yourself")

    allowed = resolver.can_direct_message(db, party_a, party_b)

    details = None
    if allowed:
        conn = resolver.find(db, party_a, party_b)
        if conn is not None:
            details = {"id": conn.id, "status": conn.status, "created_date": conn.created_date}

    return {
        "can_direct_message": allowed,
        "connection_details": details,
        "message": (
            "Users are connected and can send direct messages"
            if allowed
            else "Users are not connected. A connection request must be accepted first."
        ),
    }
