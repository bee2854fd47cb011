# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI dependency wiring.

Components are built per request from the request's DB session and the
settings held on ``app.state``; nothing here reads a process-wide singleton.
FastAPI caches ``get_db`` within a request, so the store, the audit logger
and the lock state machine of one request share one session.
"""

from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from audit.service import AuditLogger
from auth.store import CredentialStore
from auth.tokens import Identity, TokenIssuer, TokenValidator
from core.config import Settings
from core.errors import AuthorizationError, MissingTokenError, unwrap
from database import get_db
from locks.privileges import is_admin

# auto_error=False: a missing header must become our MissingTokenError,
# not FastAPI's 403.
_bearer = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_audit_logger(db: Session = Depends(get_db)) -> AuditLogger:
    return AuditLogger(db)


def get_credential_store(
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
    settings: Settings = Depends(get_app_settings),
) -> CredentialStore:
    return CredentialStore(db, audit, password_rounds=settings.password_hash_rounds)


def get_token_issuer(
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_app_settings),
) -> TokenIssuer:
    return TokenIssuer(store, settings.secret_key, timedelta(minutes=settings.access_token_expire_minutes))


def get_token_validator(
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_app_settings),
) -> TokenValidator:
    return TokenValidator(store, settings.secret_key)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    if credentials is None or not credentials.credentials:
        raise MissingTokenError()
    return credentials.credentials


def get_current_identity(
    token: str = Depends(get_bearer_token),
    validator: TokenValidator = Depends(get_token_validator),
) -> Identity:
    """
    Dependency: run both validation stages on the bearer token and return
    the caller's Identity.  Raises the matching AuthenticationError (401).
    """
    return unwrap(validator.authenticate(token))


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """
    Dependency: wraps :func:`get_current_identity` and additionally asserts
    the admin privilege.  Raises 403 otherwise.
    """
    if not is_admin(identity.privilege):
        raise AuthorizationError("Admin access required")
    return identity
