"""Symmetric connection lookups.

A connection row is stored directed (requester -> recipient) but every
question asked about it here is symmetric: A->B and B->A are the same
relationship.  Nothing is cached; each call re-reads the table.
"""
from sqlalchemy import or_, and_, text
from sqlalchemy.orm import Session
from loguru import logger

from app.core import config
from app.core.errors import ValidationError
from app.schemas.enums import ConnectionStatus
from .models import Connection


def _require_distinct(party_a: str, party_b: str) -> None:
    if not party_a or not party_b:
        raise ValidationError("Both user IDs are required")
    if party_a == party_b:
        raise ValidationError("Cannot check connection with yourself")


def pair_filter(party_a: str, party_b: str):
    return or_(
        and_(
            Connection.requester_id == party_a,
            Connection.recipient_id == party_b,
        ),
        and_(
            Connection.requester_id == party_b,
            Connection.recipient_id == party_a,
        ),
    )


def find_any(db: Session, party_a: str, party_b: str) -> list[Connection]:
    """All rows for the unordered pair, whatever their status, oldest first."""
    _require_distinct(party_a, party_b)
    return (
        db.query(Connection)
        .filter(pair_filter(party_a, party_b))
        .order_by(Connection.created_date.asc())
        .all()
    )


def find(db: Session, party_a: str, party_b: str) -> Connection | None:
    """The accepted connection between two parties, in either direction."""
    _require_distinct(party_a, party_b)

    rows = (
        db.query(Connection)
        .filter(
            pair_filter(party_a, party_b),
            Connection.status == ConnectionStatus.accepted.value,
        )
        .order_by(Connection.created_date.asc())
        .all()
    )

    if not rows:
        return None

    if len(rows) > 1:
        # no uniqueness constraint backs the pair invariant; report it, keep the oldest
        logger.warning(
            f"[resolver] {len(rows)} accepted connections for pair "
            f"{party_a}/{party_b}: {[r.id for r in rows]}; using {rows[0].id}"
        )

    return rows[0]


def is_accepted(db: Session, party_a: str, party_b: str) -> bool:
    return find(db, party_a, party_b) is not None


def can_direct_message(db: Session, party_a: str, party_b: str) -> bool:
    """Gate used by the messaging path.

    When enabled and running on PostgreSQL the decision is taken by the
    ``can_users_direct_message`` database function installed by ``init_db``;
    otherwise it is the same symmetric accepted-status query as ``is_accepted``.
    """
    _require_distinct(party_a, party_b)

    if config.USE_DB_MESSAGE_PERMISSION_FN and db.get_bind().dialect.name == "postgresql":
        allowed = db.execute(
            text("select can_users_direct_message(:user1_id, :user2_id)"),
            {"user1_id": party_a, "user2_id": party_b},
        ).scalar()
        return bool(allowed)

    return is_accepted(db, party_a, party_b)
