# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Token issuer and token validator.

A token is trusted only when *both* hold:

1. it is a well-formed HS256 JWT signed with our secret whose own ``exp``
   has not passed, and
2. it is byte-for-byte the token the credential store currently records as
   the user's active session, and the stored expiry has not passed.

Stage 2 is what makes a new login (or a refresh, or logout) revoke every
other copy of the previous token immediately, long before its ``exp``.

The two stages fail with different error *classes*: TokenInvalidError /
TokenExpiredError for stage 1, TokenRevokedError for stage 2.
"""

import hmac
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from auth.store import CredentialStore
from core.errors import (
    Err,
    NotFoundError,
    Ok,
    Result,
    TokenExpiredError,
    TokenInvalidError,
    TokenRevokedError,
)
from core.logger import get_logger
from core.security import (
    ExpiredSignatureError,
    InvalidTokenError,
    as_utc,
    decode_token,
    sign_token,
    utcnow,
)
from models.log_entry import Action
from models.user import User

log = get_logger("auth.tokens")

TOKEN_LIFETIME = timedelta(hours=1)


@dataclass(frozen=True)
class Token:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class Identity:
    """Who is calling – built from the current user row, not from claims."""

    user_id: int
    login: str
    email: str
    privilege: str

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(
            user_id=user.id,
            login=user.login,
            email=user.email,
            privilege=user.privilege.name,
        )


def _decode(token: str, secret: str, verify_exp: bool = True) -> Result[Dict[str, Any]]:
    try:
        claims = decode_token(token, secret, verify_exp=verify_exp)
    except ExpiredSignatureError:
        return Err(TokenExpiredError())
    except InvalidTokenError:
        return Err(TokenInvalidError())
    try:
        claims["sub"] = int(claims["sub"])
    except (TypeError, ValueError):
        return Err(TokenInvalidError())
    return Ok(claims)


def _same_token(stored: Optional[str], presented: str) -> bool:
    # Only reached after the signature check, so both strings are ASCII
    return stored is not None and hmac.compare_digest(stored, presented)


# ---------------------------------------------------------------------------
# Issuer
# ---------------------------------------------------------------------------


class TokenIssuer:
    def __init__(self, store: CredentialStore, secret_key: str, lifetime: timedelta = TOKEN_LIFETIME):
        self.store = store
        self.secret_key = secret_key
        self.lifetime = lifetime

    def issue(self, user: User, audit_action: Optional[Action] = None) -> Result[Token]:
        """
        Sign a fresh token for *user* and make it the active session.

        ``jti`` keeps two tokens issued within the same second distinct, so a
        re-login always yields a new string.
        """
        issued_at = utcnow().replace(microsecond=0)
        expires_at = issued_at + self.lifetime
        claims = {
            "sub": str(user.id),
            "login": user.login,
            "email": user.email,
            "privilege": user.privilege.name,
            "privilege_id": user.privilege_id,
            "iat": issued_at,
            "exp": expires_at,
            "jti": uuid.uuid4().hex,
        }
        token = sign_token(claims, self.secret_key)

        stored = self.store.set_active_token(user.id, token, expires_at, audit_action=audit_action)
        if isinstance(stored, Err):
            return stored
        return Ok(Token(token=token, expires_at=expires_at))

    def refresh(self, presented_token: str) -> Result[Token]:
        """
        Exchange the active token for a new one, even after it has expired.

        A token that has been superseded (by a later login or refresh) is
        refused with TokenRevokedError even though its signature is fine.
        """
        decoded = _decode(presented_token, self.secret_key, verify_exp=False)
        if isinstance(decoded, Err):
            return decoded
        claims = decoded.value

        found = self.store.find_by_id(claims["sub"])
        if isinstance(found, Err):
            if isinstance(found.error, NotFoundError):
                return Err(TokenRevokedError())
            return found
        user = found.value

        if not _same_token(user.token, presented_token):
            log.warning("Refresh with superseded token for user id=%s", user.id)
            return Err(TokenRevokedError())

        return self.issue(user)


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class TokenValidator:
    def __init__(self, store: CredentialStore, secret_key: str):
        self.store = store
        self.secret_key = secret_key

    def authenticate(self, bearer_token: str) -> Result[Identity]:
        # Stage 1 – signature and embedded expiry
        decoded = _decode(bearer_token, self.secret_key)
        if isinstance(decoded, Err):
            return decoded
        claims = decoded.value

        # Stage 2 – must still be the recorded active session
        found = self.store.find_by_id(claims["sub"])
        if isinstance(found, Err):
            if isinstance(found.error, NotFoundError):
                return Err(TokenRevokedError())
            return found
        user = found.value

        if not _same_token(user.token, bearer_token):
            log.warning("Revoked token presented for user id=%s", user.id)
            return Err(TokenRevokedError())
        expiry = as_utc(user.token_expiry)
        if expiry is None or expiry <= utcnow():
            return Err(TokenRevokedError("Session expired"))

        return Ok(Identity.from_user(user))

    def is_valid(self, token: Optional[str]) -> bool:
        """Boolean form of :meth:`authenticate` – never raises."""
        if not token:
            return False
        return isinstance(self.authenticate(token), Ok)
