"""
tests/test_lock_state_machine.py -- Tests for locks.service.LockStateMachine.

Covers:
  - create: starts CLOSED, CREATE entry, duplicate id, unknown owner,
    default owner bootstrapped
  - set_state: repeated request is still accepted and logged, entries
    newest first
  - authorization: denied writes leave no state change and no entry
  - atomicity: a failed audit write rolls the state change back
  - delete: earlier entries survive with a null lock reference
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from core.errors import (
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
    unwrap,
)
from models.lock import Lock
from models.log_entry import Action, LogEntry


@pytest.fixture
def admin(make_user, identity_for):
    return identity_for(make_user("root", privilege="Admin"))


@pytest.fixture
def admin_lock(db, locks, admin):
    return unwrap(locks.create("L1", "Admin", admin))


def _entries(db, lock_id=None):
    q = db.query(LogEntry).order_by(LogEntry.id)
    if lock_id is not None:
        q = q.filter(LogEntry.lock_id == lock_id)
    return q.all()


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


def test_create_starts_closed_and_is_logged(db, admin_lock, admin):
    assert admin_lock.is_open is False
    assert admin_lock.owner.name == "Admin"
    assert admin_lock.last_modified is not None

    (entry,) = _entries(db, "L1")
    assert entry.action is Action.CREATE
    assert entry.user_id == admin.user_id
    assert entry.detail == {"owner_privilege": "Admin"}


def test_create_duplicate_id_is_conflict(locks, admin_lock, admin):
    assert isinstance(locks.create("L1", "Admin", admin).error, ConflictError)


def test_create_with_unknown_owner_is_rejected(db, locks, admin):
    result = locks.create("L2", "no-such-tier", admin)

    assert isinstance(result.error, ValidationError)
    assert db.get(Lock, "L2") is None


def test_create_bootstraps_default_owner(db, locks, make_user, identity_for):
    bob = identity_for(make_user("bob"))

    lock = unwrap(locks.create("L3", "default", bob))

    assert lock.owner.name == "default"


def test_create_above_own_rank_is_denied(db, locks, make_user, identity_for, admin):
    bob = identity_for(make_user("bob"))

    result = locks.create("L4", "Admin", bob)

    assert isinstance(result.error, AuthorizationError)
    assert db.get(Lock, "L4") is None
    assert _entries(db, "L4") == []


# ---------------------------------------------------------------------------
# set_state
# ---------------------------------------------------------------------------


def test_open_twice_is_accepted_and_logged_twice(db, locks, admin_lock, admin):
    first = unwrap(locks.set_state("L1", True, admin))
    first_modified = first.last_modified
    second = unwrap(locks.set_state("L1", True, admin))

    assert second.is_open is True
    assert second.last_modified >= first_modified

    updates = [entry for entry in _entries(db, "L1") if entry.action is Action.UPDATE]
    assert len(updates) == 2
    assert updates[0].detail == {"is_open": True, "previous": False}
    assert updates[1].detail == {"is_open": True, "previous": True}


def test_close_after_open(db, locks, admin_lock, admin):
    unwrap(locks.set_state("L1", True, admin))
    lock = unwrap(locks.set_state("L1", False, admin))

    assert lock.is_open is False
    assert unwrap(locks.get("L1")).is_open is False


def test_guest_cannot_open_admin_lock(db, locks, admin_lock, make_user, identity_for):
    guest = identity_for(make_user("gary", privilege="Guest"))
    before = len(_entries(db))

    result = locks.set_state("L1", True, guest)

    assert isinstance(result.error, AuthorizationError)
    assert result.error.status_code == 403
    db.expire_all()
    assert db.get(Lock, "L1").is_open is False
    assert len(_entries(db)) == before


def test_auditor_cannot_write(db, locks, make_user, identity_for, admin):
    auditor = identity_for(make_user("audrey", privilege="Auditor"))
    unwrap(locks.create("LA", "Auditor", admin))

    assert isinstance(locks.set_state("LA", True, auditor).error, AuthorizationError)
    assert isinstance(locks.delete("LA", auditor).error, AuthorizationError)


def test_operator_may_open_default_lock(db, locks, make_user, identity_for, admin):
    operator = identity_for(make_user("olga", privilege="Operator"))
    unwrap(locks.create("LD", "default", admin))

    assert unwrap(locks.set_state("LD", True, operator)).is_open is True


def test_unknown_lock(locks, admin):
    assert isinstance(locks.set_state("nope", True, admin).error, NotFoundError)
    assert isinstance(locks.get("nope").error, NotFoundError)
    assert isinstance(locks.delete("nope", admin).error, NotFoundError)


def test_failed_audit_write_rolls_back_state(db, locks, audit, admin_lock, admin, monkeypatch):
    def broken_record(*args, **kwargs):
        raise OperationalError("INSERT INTO log_entries", {}, Exception("disk full"))

    monkeypatch.setattr(audit, "record", broken_record)

    result = locks.set_state("L1", True, admin)

    assert isinstance(result.error, InternalError)
    assert result.error.to_dict() == {"error": "Internal server error", "code": "internal_error"}
    monkeypatch.undo()
    db.expire_all()
    assert db.get(Lock, "L1").is_open is False
    assert [entry.action for entry in _entries(db, "L1")] == [Action.CREATE]


def test_list_all_is_ordered_by_id(locks, admin):
    for lock_id in ("L9", "L2", "L5"):
        unwrap(locks.create(lock_id, "Admin", admin))

    assert [lock.id for lock in unwrap(locks.list_all())] == ["L2", "L5", "L9"]


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_delete_keeps_history(db, locks, admin_lock, admin):
    unwrap(locks.set_state("L1", True, admin))

    unwrap(locks.delete("L1", admin))

    assert db.get(Lock, "L1") is None
    entries = _entries(db)
    assert all(entry.lock_id is None for entry in entries)
    assert [entry.action for entry in entries[-3:]] == [Action.CREATE, Action.UPDATE, Action.DELETE]
    assert entries[-1].detail == {"lock_id": "L1"}
