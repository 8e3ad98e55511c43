from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.errors import ValidationError, storage_errors
from app.modules.notifications.service import NotificationEmitter, get_notifier
from . import group, resolver, service

router = APIRouter(tags=["connections"])


# ------------------------------------------------------------------
# Schemas
# ------------------------------------------------------------------

class ConnectionRequestIn(BaseModel):
    requester_id: Optional[str] = None
    recipient_id: Optional[str] = None
    connection_message: Optional[str] = ""


class ConnectionResponseIn(BaseModel):
    connection_id: Optional[str] = None
    response: Optional[str] = None


class GroupValidationIn(BaseModel):
    requester_id: Optional[str] = None
    recipient_ids: Optional[Any] = None


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------

@router.get("/check-connection")
def check_connection(
    user1: Optional[str] = None,
    user2: Optional[str] = None,
    db: Session = Depends(get_db),
):
    if not user1 or not user2:
        raise ValidationError("Both user IDs are required")
    if user1 == user2:
        raise ValidationError("Cannot check connection with yourself")

    with storage_errors(db, "Failed to check connection status"):
        conn = resolver.find(db, user1, user2)

    return {
        "success": True,
        "connected": conn is not None,
        "connection_id": conn.id if conn else None,
    }


@router.post("/send-connection-request")
def send_connection_request(
    payload: ConnectionRequestIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    with storage_errors(db, "Failed to send connection request"):
        conn = service.send_request(
            db,
            notifier,
            background_tasks,
            payload.requester_id,
            payload.recipient_id,
            payload.connection_message,
        )

    return {
        "success": True,
        "message": "Connection request sent successfully",
        "connection": conn.to_dict(),
    }


@router.post("/respond-connection-request")
def respond_connection_request(
    payload: ConnectionResponseIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    with storage_errors(db, "Failed to respond to connection request"):
        conn = service.respond(
            db,
            notifier,
            background_tasks,
            payload.connection_id,
            payload.response,
        )

    return {
        "success": True,
        "message": f"Connection request {conn.status} successfully",
        "connection": conn.to_dict(),
    }


@router.get("/user-connections")
def user_connections(
    user_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to get user connections"):
        result = service.list_for_user(db, user_id)

    return {"success": True, "connections": result}


@router.post("/validate-group-connections")
def validate_group_connections(
    payload: GroupValidationIn,
    db: Session = Depends(get_db),
):
    with storage_errors(db, "Failed to validate group connections"):
        result = group.check_group(db, payload.requester_id, payload.recipient_ids)

    return {"success": True, **result}
