# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives live here.  No other
module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. JWT signing / decoding                   (PyJWT / HS256)
3. Client IP extraction for request logs

The signing secret is always passed in by the caller.  This module never
reads settings, so there is no process-wide key and no fallback key.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt as _jwt        # PyJWT
from fastapi import Request
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps

# Re-exported so callers can tell the two decode failures apart without
# importing PyJWT themselves.
ExpiredSignatureError = _jwt.ExpiredSignatureError
InvalidTokenError = _jwt.InvalidTokenError

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["sub", "iat", "exp"]

DEFAULT_ROUNDS = 600_000

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Hash a plaintext password with PBKDF2-SHA256.

    The salt is generated per call and embedded in the returned string
    (``$pbkdf2-sha256$<rounds>$<salt>$<digest>``), so nothing else needs to
    be stored next to it.
    """
    return _pbkdf2.using(rounds=rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        return False


_DUMMY_HASHES: Dict[int, str] = {}


def burn_password_check(plain: str, rounds: int = DEFAULT_ROUNDS) -> None:
    """
    Run a full verification against a throwaway hash.

    Called when the login does not exist so that "unknown login" and "wrong
    password" take the same time to answer.
    """
    dummy = _DUMMY_HASHES.get(rounds)
    if dummy is None:
        dummy = _DUMMY_HASHES[rounds] = hash_password("seclock-timing-equaliser", rounds)
    _pbkdf2.verify(plain, dummy)


# ---------------------------------------------------------------------------
# 2.  JWT – access tokens
# ---------------------------------------------------------------------------


def sign_token(claims: Dict[str, Any], secret: str) -> str:
    """
    Sign *claims* with HS256.

    ``iat`` / ``exp`` may be given as aware datetimes; PyJWT converts them to
    NumericDate.
    """
    return _jwt.encode(claims, secret, algorithm=_ALGORITHM)


def decode_token(token: str, secret: str, verify_exp: bool = True) -> Dict[str, Any]:
    """
    Verify the signature of *token* and return its claims.

    Raises
    ------
    ExpiredSignatureError   signature is good but ``exp`` has passed
    InvalidTokenError       anything else (bad signature, malformed,
                            missing required claims)

    With ``verify_exp=False`` an expired token decodes normally; the refresh
    flow relies on this.
    """
    return _jwt.decode(
        token,
        secret,
        algorithms=[_ALGORITHM],
        options={"require": _REQUIRED_CLAIMS, "verify_exp": verify_exp},
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to a naive datetime.

    SQLite hands back naive values even for ``DateTime(timezone=True)``
    columns; everything this service writes is UTC.
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
