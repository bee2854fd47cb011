# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Lock state machine – the only code that writes ``locks``.

Every mutation follows the same shape::

    load → authorize → mutate → audit → commit

and the mutation and its audit entry share one ``atomic`` block: either both
rows are written or neither is.  There is no audit-less transition and no
orphan entry for a write that failed.

Repeating the current state is *not* a no-op: the request is accepted,
``last_modified`` moves, and an UPDATE entry is written, so the trail shows
every accepted request even when the final state only reflects the last
writer.
"""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from audit.service import AuditLogger
from auth.store import ensure_privilege, find_privilege
from auth.tokens import Identity
from core.errors import (
    AuthorizationError,
    ConflictError,
    Err,
    InternalError,
    NotFoundError,
    Ok,
    Result,
    ValidationError,
)
from core.logger import get_logger
from core.security import utcnow
from database import atomic
from locks.privileges import Decision, authorize
from models.lock import Lock
from models.log_entry import Action, LogEntry
from models.privilege import DEFAULT_PRIVILEGE

log = get_logger("locks")

_LOCK_NOT_FOUND = "Lock not found"


class LockStateMachine:
    def __init__(self, db: Session, audit: AuditLogger):
        self.db = db
        self.audit = audit

    # -- reads ---------------------------------------------------------------

    def get(self, lock_id: str) -> Result[Lock]:
        try:
            lock = self.db.get(Lock, lock_id)
        except SQLAlchemyError:
            log.exception("Loading lock %r failed", lock_id)
            return Err(InternalError())
        if lock is None:
            return Err(NotFoundError(_LOCK_NOT_FOUND))
        return Ok(lock)

    def list_all(self) -> Result[List[Lock]]:
        try:
            return Ok(self.db.query(Lock).order_by(Lock.id).all())
        except SQLAlchemyError:
            log.exception("Listing locks failed")
            return Err(InternalError())

    # -- transitions ---------------------------------------------------------

    def _load_for_update(self, lock_id: str) -> Optional[Lock]:
        # Row lock on backends that support it; SQLite serialises writers anyway
        return (
            self.db.query(Lock)
            .filter(Lock.id == lock_id)
            .with_for_update(of=Lock)
            .populate_existing()
            .first()
        )

    def _denied(self, identity: Identity, lock_id: str, action: Action) -> Err:
        log.warning(
            "Denied %s on lock %r for user id=%s (privilege=%s)",
            action.value, lock_id, identity.user_id, identity.privilege,
        )
        return Err(AuthorizationError("Not authorized for this lock"))

    def set_state(self, lock_id: str, desired: bool, identity: Identity) -> Result[Lock]:
        """Open (``True``) or close (``False``) a lock on behalf of *identity*."""
        try:
            with atomic(self.db):
                lock = self._load_for_update(lock_id)
                if lock is None:
                    return Err(NotFoundError(_LOCK_NOT_FOUND))
                if authorize(identity, lock, Action.UPDATE) is Decision.DENIED:
                    return self._denied(identity, lock_id, Action.UPDATE)

                previous = lock.is_open
                lock.is_open = desired
                lock.last_modified = utcnow()
                self.audit.record(
                    identity.user_id, lock.id, Action.UPDATE,
                    {"is_open": desired, "previous": previous},
                )
        except SQLAlchemyError:
            log.exception("State change of lock %r failed", lock_id)
            return Err(InternalError())

        log.info("Lock %r set to %s by user id=%s", lock_id, "OPEN" if desired else "CLOSED", identity.user_id)
        return Ok(lock)

    def create(self, lock_id: str, owner_privilege: str, identity: Identity) -> Result[Lock]:
        """
        Register a new lock owned by *owner_privilege*; it starts CLOSED.

        ``default`` is bootstrapped if missing, any other unknown privilege
        name is rejected.
        """
        try:
            with atomic(self.db):
                if owner_privilege.lower() == DEFAULT_PRIVILEGE:
                    owner = ensure_privilege(self.db, DEFAULT_PRIVILEGE, "Default privilege for new users")
                else:
                    owner = find_privilege(self.db, owner_privilege)
                if owner is None:
                    return Err(ValidationError(f"Unknown privilege: {owner_privilege}"))

                # Transient until authorized; never added on a denial
                lock = Lock(id=lock_id, owner=owner, is_open=False)
                if authorize(identity, lock, Action.CREATE) is Decision.DENIED:
                    return self._denied(identity, lock_id, Action.CREATE)
                if self.db.get(Lock, lock_id) is not None:
                    return Err(ConflictError("Lock ID exists"))

                lock.last_modified = utcnow()
                self.db.add(lock)
                self.db.flush()
                self.audit.record(identity.user_id, lock.id, Action.CREATE, {"owner_privilege": owner.name})
        except IntegrityError:
            log.warning("Lock %r created concurrently", lock_id)
            return Err(ConflictError("Lock ID exists"))
        except SQLAlchemyError:
            log.exception("Creating lock %r failed", lock_id)
            return Err(InternalError())

        log.info("Lock %r created (owner=%s) by user id=%s", lock_id, owner.name, identity.user_id)
        return Ok(lock)

    def delete(self, lock_id: str, identity: Identity) -> Result[None]:
        """
        Remove a lock.  Earlier entries keep their rows with a null lock
        reference; the DELETE entry names the lock in its detail.
        """
        try:
            with atomic(self.db):
                lock = self._load_for_update(lock_id)
                if lock is None:
                    return Err(NotFoundError(_LOCK_NOT_FOUND))
                if authorize(identity, lock, Action.DELETE) is Decision.DENIED:
                    return self._denied(identity, lock_id, Action.DELETE)

                self.db.query(LogEntry).filter(LogEntry.lock_id == lock_id).update({LogEntry.lock_id: None})
                self.db.delete(lock)
                self.audit.record(identity.user_id, None, Action.DELETE, {"lock_id": lock_id})
        except SQLAlchemyError:
            log.exception("Deleting lock %r failed", lock_id)
            return Err(InternalError())

        log.info("Lock %r deleted by user id=%s", lock_id, identity.user_id)
        return Ok(None)
