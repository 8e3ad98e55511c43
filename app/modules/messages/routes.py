from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.errors import storage_errors
from app.modules.notifications.service import NotificationEmitter, get_notifier
from . import service

router = APIRouter(tags=["messages"])


class DirectMessageIn(BaseModel):
    sender_id: Optional[str] = None
    recipient_id: Optional[str] = None
    message: Optional[str] = None


@router.get("/check-direct-message-permission")
def check_direct_message_permission(
    user1_id: Optional[str] = None,
    user2_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to check direct message permission"):
        result = service.permission(db, user1_id, user2_id)

    return {"success": True, **result}


@router.post("/send-direct-message")
def send_direct_message(
    payload: DirectMessageIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    with storage_errors(db, "Failed to send direct message"):
        data = service.send(
            db,
            notifier,
            background_tasks,
            payload.sender_id,
            payload.recipient_id,
            payload.message,
        )

    return {
        "success": True,
        "message": "Direct message sent successfully",
        "data": data,
    }


@router.get("/get-direct-messages")
def get_direct_messages(
    user1_id: Optional[str] = None,
    user2_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to get direct messages"):
        result = service.fetch_thread(db, user1_id, user2_id)

    return {"success": True, **result}
