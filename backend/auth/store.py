# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Credential store – the only code that writes ``users`` and ``privileges``.

Every public method returns a tagged result (``core.errors``).  Unique
constraint violations come back as ``ConflictError``; any other storage
failure is logged here with its traceback and returned as a bare
``InternalError``.

Single active session
---------------------
``set_active_token`` overwrites whatever token the user had.  Two logins
racing for the same user leave exactly one active token – the one whose
commit lands last – and every other copy fails the validator's stateful
check from then on.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from audit.service import AuditLogger
from core.errors import (
    ConflictError,
    Err,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    Ok,
    Result,
)
from core.logger import get_logger
from core.security import DEFAULT_ROUNDS, burn_password_check, hash_password, verify_password
from database import atomic
from models.log_entry import Action, LogEntry
from models.privilege import DEFAULT_PRIVILEGE, Privilege
from models.user import User

log = get_logger("auth.store")

_DEFAULT_PRIVILEGE_DESCRIPTION = "Default privilege for new users"


# ---------------------------------------------------------------------------
# Privilege helpers (shared with locks/service.py)
# ---------------------------------------------------------------------------


def find_privilege(db: Session, name: str) -> Optional[Privilege]:
    """Case-insensitive lookup by name."""
    return db.query(Privilege).filter(func.lower(Privilege.name) == name.lower()).first()


def ensure_privilege(db: Session, name: str, description: Optional[str] = None) -> Privilege:
    """
    Return the privilege called *name*, creating it if it does not exist.

    Runs inside the caller's transaction.  The insert sits in a SAVEPOINT:
    if a concurrent first call wins the race, the unique constraint rejects
    ours, the savepoint is rolled back and the winner's row is returned, so
    exactly one row ever exists.
    """
    privilege = find_privilege(db, name)
    if privilege is not None:
        return privilege
    try:
        with db.begin_nested():
            privilege = Privilege(name=name, description=description)
            db.add(privilege)
    except IntegrityError:
        log.info("Privilege %r created concurrently, reusing it", name)
        privilege = find_privilege(db, name)
        if privilege is None:
            raise
    else:
        log.info("Created privilege %r", name)
    return privilege


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class CredentialStore:
    def __init__(self, db: Session, audit: AuditLogger, password_rounds: int = DEFAULT_ROUNDS):
        self.db = db
        self.audit = audit
        self.password_rounds = password_rounds

    # -- registration --------------------------------------------------------

    def register(
        self,
        login: str,
        raw_password: str,
        email: str,
        display_name: str = "",
    ) -> Result[User]:
        """
        Create an account with the ``default`` privilege.

        The uniqueness pre-check gives a precise ``conflictField``; the
        unique constraints still catch a concurrent duplicate.
        """
        try:
            conflict = self._find_conflict(login, email)
        except SQLAlchemyError:
            log.exception("Registration lookup failed for %r", login)
            return Err(InternalError())
        if conflict is not None:
            return Err(conflict)

        # Hash outside the transaction – it is the slow part
        password_hash = hash_password(raw_password, self.password_rounds)

        try:
            with atomic(self.db):
                privilege = ensure_privilege(self.db, DEFAULT_PRIVILEGE, _DEFAULT_PRIVILEGE_DESCRIPTION)
                user = User(
                    login=login,
                    email=email,
                    name=display_name or "",
                    password_hash=password_hash,
                    privilege=privilege,
                )
                self.db.add(user)
                self.db.flush()  # get user.id before the audit entry
                self.audit.record(user.id, None, Action.CREATE, {"entity": "user", "login": login})
        except IntegrityError:
            log.warning("Registration of %r lost a uniqueness race", login)
            try:
                conflict = self._find_conflict(login, email)
            except SQLAlchemyError:
                conflict = None
            return Err(conflict or ConflictError("Login or email already exists"))
        except SQLAlchemyError:
            log.exception("Registration failed for %r", login)
            return Err(InternalError())

        log.info("Registered user id=%s login=%s", user.id, user.login)
        return Ok(user)

    def _find_conflict(self, login: str, email: str) -> Optional[ConflictError]:
        if self.db.query(User.id).filter(User.login == login).first():
            return ConflictError("login already exists", conflictField="login")
        if self.db.query(User.id).filter(User.email == email).first():
            return ConflictError("email already exists", conflictField="email")
        return None

    # -- lookups -------------------------------------------------------------

    def find_by_login(self, login: str) -> Result[User]:
        try:
            user = self.db.query(User).filter(User.login == login).first()
        except SQLAlchemyError:
            log.exception("User lookup failed for login %r", login)
            return Err(InternalError())
        if user is None:
            return Err(NotFoundError("User not found"))
        return Ok(user)

    def find_by_id(self, user_id: int) -> Result[User]:
        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError:
            log.exception("User lookup failed for id %s", user_id)
            return Err(InternalError())
        if user is None:
            return Err(NotFoundError("User not found"))
        return Ok(user)

    def list_users(self) -> Result[List[User]]:
        try:
            return Ok(self.db.query(User).order_by(User.id).all())
        except SQLAlchemyError:
            log.exception("Listing users failed")
            return Err(InternalError())

    # -- credentials ---------------------------------------------------------

    def verify_password(self, user: User, raw_password: str) -> bool:
        return verify_password(raw_password, user.password_hash)

    def check_credentials(self, login: str, raw_password: str) -> Result[User]:
        """
        Look the login up and verify the password.

        Unknown login and wrong password return the same error, take the same
        time, and both leave a ``LOGIN_FAILED`` entry.
        """
        found = self.find_by_login(login)
        if isinstance(found, Err):
            if not isinstance(found.error, NotFoundError):
                return found
            burn_password_check(raw_password, self.password_rounds)
            log.warning("Login failed: unknown login %r", login)
            self.audit.record_now(None, None, Action.LOGIN_FAILED, {"login": login})
            return Err(InvalidCredentialsError())

        user = found.value
        if not self.verify_password(user, raw_password):
            log.warning("Login failed: bad password for user id=%s", user.id)
            self.audit.record_now(user.id, None, Action.LOGIN_FAILED, {"login": login})
            return Err(InvalidCredentialsError())
        return Ok(user)

    # -- active session ------------------------------------------------------

    def set_active_token(
        self,
        user_id: int,
        token: str,
        expiry: datetime,
        audit_action: Optional[Action] = None,
    ) -> Result[None]:
        """
        Record *token* as the user's only valid session, replacing any
        previous one.  When *audit_action* is given (e.g. LOGIN) the entry is
        written in the same transaction.
        """
        try:
            with atomic(self.db):
                user = self.db.get(User, user_id)
                if user is None:
                    return Err(NotFoundError("User not found"))
                user.token = token
                user.token_expiry = expiry
                if audit_action is not None:
                    self.audit.record(user_id, None, audit_action)
        except SQLAlchemyError:
            log.exception("Storing active token failed for user id=%s", user_id)
            return Err(InternalError())
        return Ok(None)

    def clear_active_token(self, user_id: int) -> Result[None]:
        """Revoke the active session; every copy of the token stops validating."""
        try:
            with atomic(self.db):
                user = self.db.get(User, user_id)
                if user is None:
                    return Err(NotFoundError("User not found"))
                user.token = None
                user.token_expiry = None
        except SQLAlchemyError:
            log.exception("Clearing active token failed for user id=%s", user_id)
            return Err(InternalError())
        return Ok(None)

    # -- deletion ------------------------------------------------------------

    def delete_user(self, user_id: int, acting_user_id: Optional[int]) -> Result[None]:
        """
        Remove an account.  Historical log entries survive with a null user
        reference; the deletion itself is logged in the same transaction.
        """
        try:
            with atomic(self.db):
                user = self.db.get(User, user_id)
                if user is None:
                    return Err(NotFoundError("User not found"))
                login = user.login
                self.db.query(LogEntry).filter(LogEntry.user_id == user_id).update({LogEntry.user_id: None})
                self.db.delete(user)
                actor = acting_user_id if acting_user_id != user_id else None
                self.audit.record(actor, None, Action.DELETE, {"entity": "user", "user_id": user_id, "login": login})
        except SQLAlchemyError:
            log.exception("Deleting user id=%s failed", user_id)
            return Err(InternalError())
        log.info("Deleted user id=%s login=%s", user_id, login)
        return Ok(None)
