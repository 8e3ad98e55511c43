from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.models.user import User, user_summary
from . import resolver


def check_group(db: Session, requester_id: str, recipient_ids) -> dict:
    """Check the requester's connection to every recipient of a group meeting request.

    Recipients are checked one by one, in input order, without dedup. A
    recipient whose check fails is reported as not connected with an
    ``error`` marker; the rest of the batch still runs.
    """
    if not requester_id or recipient_ids is None or not isinstance(recipient_ids, list):
        raise ValidationError("Requester ID and recipient IDs array are required")

    if any(not isinstance(rid, str) or not rid for rid in recipient_ids):
        raise ValidationError("Requester ID and recipient IDs array are required")

    if len(recipient_ids) == 0:
        raise ValidationError("At least one recipient is required")

    clean_ids = [rid for rid in recipient_ids if rid != requester_id]
    if not clean_ids:
        raise ValidationError("Cannot send meeting request to yourself")

    checks = []
    for recipient_id in clean_ids:
        try:
            conn = resolver.find(db, requester_id, recipient_id)
        except (SQLAlchemyError, ValidationError):
            db.rollback()
            logger.exception(f"[group] failed checking {requester_id} -> {recipient_id}")
            checks.append({
                "user_id": recipient_id,
                "connected": False,
                "error": "Failed to check connection",
            })
            continue

        checks.append({
            "user_id": recipient_id,
            "connected": conn is not None,
            "connection_id": conn.id if conn else None,
        })

    unconnected_ids = [c["user_id"] for c in checks if not c["connected"]]

    details = {}
    if unconnected_ids:
        try:
            users = db.query(User).filter(User.id.in_(list(dict.fromkeys(unconnected_ids)))).all()
            details = {u.id: user_summary(u, ("id", "full_name", "organization")) for u in users}
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"[group] failed loading user details for {unconnected_ids}")

    for c in checks:
        if not c["connected"]:
            c["user_details"] = details.get(c["user_id"])

    connected_count = sum(1 for c in checks if c["connected"])
    all_connected = connected_count == len(checks)

    return {
        "all_connected": all_connected,
        "total_recipients": len(clean_ids),
        "connected_count": connected_count,
        "unconnected_count": len(clean_ids) - connected_count,
        "connection_checks": checks,
        "can_send_group_meeting": all_connected,
    }
