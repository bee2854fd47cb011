# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""LogEntry ORM model – the append-only audit trail."""

import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Integer, String

from database import Base


class Action(str, enum.Enum):
    """Closed set of audited action kinds."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"


WRITE_ACTIONS = frozenset({Action.CREATE, Action.UPDATE, Action.DELETE})


def _now() -> datetime:
    # Python-side so that entries written in the same second still order
    return datetime.now(timezone.utc)


class LogEntry(Base):
    __tablename__ = "log_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # NULL for system actions, and after the user is deleted
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # NULL for account-level actions, and after the lock is deleted
    lock_id = Column(
        String(64),
        ForeignKey("locks.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action = Column(
        Enum(Action, name="log_action", native_enum=False, length=32),
        nullable=False,
        index=True,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    detail = Column(JSON, nullable=True)
