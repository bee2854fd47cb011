# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Error taxonomy and the tagged results returned by every component.

Components never raise for an ordinary outcome (duplicate login, unknown
lock, insufficient privilege …).  They return ``Ok(value)`` or
``Err(error)`` and the HTTP layer decides what to do with it::

    result = store.register(...)
    if isinstance(result, Err):
        ...
    user = result.value

``unwrap`` is the shortcut used by the routers: it hands back the value or
raises the carried error, which ``main`` renders as
``{"error": <message>, "code": <code>}`` with the error's status code.

Messages are always client-safe.  Driver errors, constraint names and stack
traces are logged where they happen and never copied into an error here.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class ServiceError(Exception):
    status_code = 500
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        # Additional public fields rendered next to error/code
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message, "code": self.code}
        body.update(self.extra)
        return body


class ValidationError(ServiceError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


# -- Authentication -------------------------------------------------------
# Every variant is a 401; callers tell them apart through ``code`` (and the
# class), never by parsing the message.


class AuthenticationError(ServiceError):
    status_code = 401
    code = "authentication_failed"
    default_message = "Authentication failed"


class MissingTokenError(AuthenticationError):
    code = "token_missing"
    default_message = "Authorization token required"


class InvalidCredentialsError(AuthenticationError):
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class TokenInvalidError(AuthenticationError):
    code = "token_invalid"
    default_message = "Invalid token"


class TokenExpiredError(AuthenticationError):
    code = "token_expired"
    default_message = "Token expired"


class TokenRevokedError(AuthenticationError):
    code = "token_revoked"
    default_message = "Token is no longer active"


# -- Everything else ------------------------------------------------------


class AuthorizationError(ServiceError):
    status_code = 403
    code = "forbidden"
    default_message = "Not authorized"


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class ConflictError(ServiceError):
    status_code = 409
    code = "conflict"
    default_message = "Already exists"


class InternalError(ServiceError):
    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"


# ---------------------------------------------------------------------------
# Tagged results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: ServiceError


Result = Union[Ok[T], Err]


def unwrap(result: "Result[T]") -> T:
    """Return the value of an ``Ok`` or raise the error carried by an ``Err``."""
    if isinstance(result, Err):
        raise result.error
    return result.value
