"""
tests/test_audit_logger.py -- Tests for audit.service.AuditLogger.

Covers:
  - record() is part of the caller's unit of work (nothing without commit)
  - record_now() commits on its own
  - reads are newest first and resolve the actor's login
  - list_for_lock filters by lock, list_all honours limit
"""

from __future__ import annotations

from core.errors import unwrap
from models.log_entry import Action, LogEntry


def test_record_waits_for_the_callers_commit(db, audit):
    audit.record(None, None, Action.LOGIN_FAILED, {"login": "ghost"})
    db.rollback()

    assert db.query(LogEntry).count() == 0


def test_record_now_commits(db, audit):
    entry = unwrap(audit.record_now(None, None, Action.LOGIN_FAILED, {"login": "ghost"}))

    db.rollback()
    assert db.query(LogEntry).one().id == entry.id
    assert entry.timestamp is not None


def test_list_all_is_newest_first_with_login(make_user, audit, locks, identity_for):
    admin = identity_for(make_user("root", privilege="Admin"))
    unwrap(locks.create("L1", "Admin", admin))
    unwrap(locks.set_state("L1", True, admin))

    rows = unwrap(audit.list_all())

    actions = [entry.action for entry, _ in rows]
    assert actions[:2] == [Action.UPDATE, Action.CREATE]
    assert rows[0][1] == "root"


def test_list_all_limit(audit):
    for n in range(5):
        unwrap(audit.record_now(None, None, Action.LOGIN_FAILED, {"n": n}))

    rows = unwrap(audit.list_all(limit=2))

    assert [entry.detail["n"] for entry, _ in rows] == [4, 3]


def test_list_for_lock_filters(make_user, audit, locks, identity_for):
    admin = identity_for(make_user("root", privilege="Admin"))
    unwrap(locks.create("L1", "Admin", admin))
    unwrap(locks.create("L2", "Admin", admin))
    unwrap(locks.set_state("L1", True, admin))
    unwrap(locks.set_state("L1", False, admin))

    rows = unwrap(audit.list_for_lock("L1"))

    assert {entry.lock_id for entry, _ in rows} == {"L1"}
    assert [entry.detail.get("is_open") for entry, _ in rows] == [False, True, None]
    assert unwrap(audit.list_for_lock("missing")) == []


def test_system_entries_have_no_login(audit):
    unwrap(audit.record_now(None, None, Action.LOGIN_FAILED, {"login": "ghost"}))

    ((entry, login),) = unwrap(audit.list_all())

    assert entry.user_id is None
    assert login is None
