from typing import Callable, Optional

from fastapi import Request
from loguru import logger
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import NOTIFICATIONS_PAGE_SIZE
from app.core.errors import ValidationError
from app.models.user import User
from app.schemas.enums import ConnectionStatus, NotificationType
from .models import Notification


# ---------- EMITTER ----------

class NotificationEmitter:
    """Best-effort writer of in-app notifications.

    Runs after the triggering operation has committed, in a session of its
    own. Nothing raised in here ever reaches the caller.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def emit(
        self,
        user_id: str,
        type: str,
        title: str,
        body: str,
        link: Optional[str] = None,
        related_entity_id: Optional[str] = None,
    ) -> None:
        try:
            with self.session_factory() as db:
                db.add(
                    Notification(
                        user_id=user_id,
                        type=type,
                        title=title,
                        body=body,
                        link=link,
                        related_entity_id=related_entity_id,
                    )
                )
                db.commit()
            logger.debug(f"[notify] {type} -> {user_id} (entity={related_entity_id})")
        except Exception:
            logger.exception(f"[notify] failed to create {type} notification for {user_id}")

    def _lookup_user(self, user_id: str) -> Optional[User]:
        try:
            with self.session_factory() as db:
                return db.get(User, user_id)
        except Exception:
            logger.exception(f"[notify] failed to load user {user_id}")
            return None

    # ---------- EVENTS ----------

    def connection_requested(self, connection_id: str, requester_id: str, recipient_id: str) -> None:
        requester = self._lookup_user(requester_id)
        name = (requester.full_name if requester else None) or "Someone"
        org = f" from {requester.organization}" if requester and requester.organization else ""

        self.emit(
            recipient_id,
            NotificationType.new_connection_request.value,
            "New Connection Request",
            f"{name} wants to connect with you{org}.",
            link="/meetings",
            related_entity_id=connection_id,
        )

    def connection_answered(self, connection_id: str, requester_id: str, recipient_id: str, status: str) -> None:
        recipient = self._lookup_user(recipient_id)
        name = (recipient.full_name if recipient else None) or "Someone"

        if status == ConnectionStatus.accepted.value:
            self.emit(
                requester_id,
                NotificationType.connection_accepted.value,
                "Connection Accepted",
                f"{name} accepted your connection request. You can now send meeting requests to each other.",
                link="/meetings",
                related_entity_id=connection_id,
            )
        else:
            self.emit(
                requester_id,
                NotificationType.connection_declined.value,
                "Connection Declined",
                f"{name} declined your connection request.",
                link="/meetings",
                related_entity_id=connection_id,
            )

    def message_received(self, message_id: str, sender_id: str, recipient_id: str) -> None:
        recipient = self._lookup_user(recipient_id)
        if recipient is None:
            logger.warning(f"[notify] recipient {recipient_id} not readable, skipping new_message")
            return

        sender = self._lookup_user(sender_id)
        name = (sender.full_name if sender else None) or "Someone"

        self.emit(
            recipient_id,
            NotificationType.new_message.value,
            "New Direct Message",
            f"You have a new direct message from {name}.",
            link=f"/chat?type=direct&delegate={sender_id}",
            related_entity_id=message_id,
        )


def get_notifier(request: Request) -> NotificationEmitter:
    return request.app.state.notifier


# ---------- INBOX ----------

def list_notifications(db: Session, user_id: str, unread_only: bool = False, limit: int = NOTIFICATIONS_PAGE_SIZE):
    if not user_id:
        raise ValidationError("User ID is required")

    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))

    items = q.order_by(Notification.created_date.desc()).limit(limit).all()

    unread_count = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )
    return items, unread_count


def mark_read(db: Session, user_id: str, notification_ids: Optional[list[str]] = None) -> int:
    if not user_id:
        raise ValidationError("User ID is required")

    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    if notification_ids is not None:
        if not notification_ids:
            return 0
        stmt = stmt.where(Notification.id.in_(notification_ids))

    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0
