"""
tests/conftest.py -- Shared fixtures for the SecLock test suite.

This module provides:
  - settings / engine / db: a fresh file-backed SQLite database per test
  - audit / store / issuer / validator / locks: components wired to that
    database exactly the way auth/dependencies.py wires them per request
  - make_user: register a user and optionally move them to another privilege
  - client: TestClient around create_app(settings) sharing the same database

Design: a file in tmp_path rather than ':memory:' because TestClient runs
sync route handlers in a worker thread, and every pooled connection must
see the same schema. Each test gets its own file, so nothing leaks between
tests.

Password hashing uses 1 000 pbkdf2 rounds instead of 600 000 to keep the
suite fast; the algorithm and code path are unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import models.lock  # noqa: F401
import models.log_entry  # noqa: F401
import models.privilege  # noqa: F401
import models.user  # noqa: F401
from audit.service import AuditLogger
from auth.store import CredentialStore, ensure_privilege
from auth.tokens import Identity, TokenIssuer, TokenValidator
from core.config import Settings
from core.errors import unwrap
from database import Base, atomic, build_engine, build_session_factory
from locks.service import LockStateMachine
from main import create_app
from models.user import User

TEST_SECRET = "unit-test-signing-secret-0123456789abcdef"
TEST_ROUNDS = 1000


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'seclock.db'}",
        secret_key=TEST_SECRET,
        password_hash_rounds=TEST_ROUNDS,
        liveness_interval_seconds=0,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    session = build_session_factory(engine)()
    yield session
    session.close()


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


@pytest.fixture
def audit(db) -> AuditLogger:
    return AuditLogger(db)


@pytest.fixture
def store(db, audit) -> CredentialStore:
    return CredentialStore(db, audit, password_rounds=TEST_ROUNDS)


@pytest.fixture
def issuer(store) -> TokenIssuer:
    return TokenIssuer(store, TEST_SECRET)


@pytest.fixture
def validator(store) -> TokenValidator:
    return TokenValidator(store, TEST_SECRET)


@pytest.fixture
def locks(db, audit) -> LockStateMachine:
    return LockStateMachine(db, audit)


def set_privilege(db: Session, user: User, privilege: str) -> None:
    with atomic(db):
        user.privilege = ensure_privilege(db, privilege)


@pytest.fixture
def make_user(db, store) -> Callable[..., User]:
    """Register ``login`` (password ``pw1``) and move it to ``privilege``."""

    def _make(login: str, privilege: str = "default", password: str = "pw1") -> User:
        user = unwrap(store.register(login, password, f"{login}@x.com", login.title()))
        if privilege != "default":
            set_privilege(db, user, privilege)
        return user

    return _make


@pytest.fixture
def identity_for() -> Callable[[User], Identity]:
    return Identity.from_user


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def client(settings) -> Generator[TestClient, None, None]:
    """TestClient with the real routers and lifespan on an isolated database."""
    app = create_app(settings)
    Base.metadata.create_all(app.state.engine)
    with TestClient(app) as client:
        yield client


def promote(client: TestClient, login: str, privilege: str) -> None:
    """Move an already-registered user to *privilege* behind the API's back."""
    with client.app.state.session_factory() as session:
        user = session.query(User).filter(User.login == login).one()
        set_privilege(session, user, privilege)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
