from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.errors import storage_errors
from . import service

router = APIRouter(prefix="/notifications", tags=["notifications"])


class MarkReadIn(BaseModel):
    user_id: Optional[str] = None
    notification_ids: Optional[list[str]] = None


@router.get("")
def list_notifications(
    user_id: Optional[str] = None,
    unread_only: bool = False,
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to get notifications"):
        items, unread_count = service.list_notifications(db, user_id, unread_only=unread_only)

    return {
        "success": True,
        "notifications": [n.to_dict() for n in items],
        "unread_count": unread_count,
    }


@router.post("/mark-read")
def mark_notifications_read(
    payload: MarkReadIn,
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to update notifications"):
        updated = service.mark_read(db, payload.user_id, payload.notification_ids)

    return {"success": True, "updated": updated}
