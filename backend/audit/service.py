# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Audit logger – append-only writes and newest-first reads of ``log_entries``.

``record`` only *adds* the entry to the caller's session: the lock state
machine and the credential store call it inside their own ``atomic`` block,
so the entry commits or rolls back together with the change it describes.
``record_now`` is for callers that have nothing else to commit (e.g. a
failed login).
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import Err, InternalError, Ok, Result
from core.logger import get_logger
from database import atomic
from models.log_entry import Action, LogEntry
from models.user import User

log = get_logger("audit")

# (entry, actor login or None when the user is gone / system action)
EntryRow = Tuple[LogEntry, Optional[str]]


class AuditLogger:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        user_id: Optional[int],
        lock_id: Optional[str],
        action: Action,
        detail: Optional[Dict[str, Any]] = None,
    ) -> LogEntry:
        """Add an entry to the current unit of work.  The caller commits."""
        entry = LogEntry(user_id=user_id, lock_id=lock_id, action=action, detail=detail)
        self.db.add(entry)
        return entry

    def record_now(
        self,
        user_id: Optional[int],
        lock_id: Optional[str],
        action: Action,
        detail: Optional[Dict[str, Any]] = None,
    ) -> Result[LogEntry]:
        """Add and commit an entry on its own."""
        try:
            with atomic(self.db):
                entry = self.record(user_id, lock_id, action, detail)
        except SQLAlchemyError:
            log.exception("Failed to write %s audit entry", action.value)
            return Err(InternalError())
        return Ok(entry)

    # -- reads ---------------------------------------------------------------

    def _query(self):
        return (
            self.db.query(LogEntry, User.login)
            .outerjoin(User, LogEntry.user_id == User.id)
            .order_by(LogEntry.timestamp.desc(), LogEntry.id.desc())
        )

    def list_all(self, limit: Optional[int] = None) -> Result[List[EntryRow]]:
        """Every entry, newest first."""
        q = self._query()
        if limit:
            q = q.limit(limit)
        return self._fetch(q)

    def list_for_lock(self, lock_id: str) -> Result[List[EntryRow]]:
        """Entries that still reference *lock_id*, newest first."""
        return self._fetch(self._query().filter(LogEntry.lock_id == lock_id))

    def _fetch(self, q) -> Result[List[EntryRow]]:
        try:
            return Ok([(entry, login) for entry, login in q.all()])
        except SQLAlchemyError:
            log.exception("Failed to read audit entries")
            return Err(InternalError())
