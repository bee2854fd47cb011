# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – register, login, verify, refresh, validate, logout.

Security notes
--------------
* Login returns the *same* error whether the login doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* Every successful login / registration / refresh overwrites the user's
  active token, so older copies stop working immediately.
* /auth/validate answers ``{"valid": false}`` instead of an error for any
  bad, missing, expired or superseded token.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool

from auth.dependencies import (
    get_credential_store,
    get_current_identity,
    get_token_issuer,
    get_token_validator,
)
from auth.schemas import (
    IdentityInfo,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserInfo,
    ValidateResponse,
    VerifyResponse,
)
from auth.store import CredentialStore
from auth.tokens import Identity, TokenIssuer, TokenValidator
from core.errors import unwrap
from models.log_entry import Action
from models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        login=user.login,
        email=user.email,
        name=user.name,
        privilege=user.privilege.name,
    )


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    store: CredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Create an account with the default privilege and log it in."""
    user = unwrap(store.register(body.login, body.password, body.email, body.name or ""))
    token = unwrap(issuer.issue(user))
    return RegisterResponse(token=token.token, expires_at=token.expires_at, user=_user_info(user))


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Authenticate and return a signed token; any previous token is revoked."""
    user = unwrap(store.check_credentials(body.login, body.password))
    token = unwrap(issuer.issue(user, audit_action=Action.LOGIN))
    return TokenResponse(token=token.token, expires_at=token.expires_at)


# ---------------------------------------------------------------------------
# GET /auth/verify
# ---------------------------------------------------------------------------


@router.get("/verify", response_model=VerifyResponse)
def verify(identity: Identity = Depends(get_current_identity)):
    return VerifyResponse(valid=True, identity=IdentityInfo.model_validate(identity))


# ---------------------------------------------------------------------------
# POST /auth/refresh
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=TokenResponse)
def refresh(body: RefreshRequest, issuer: TokenIssuer = Depends(get_token_issuer)):
    """
    Swap the active token (expired or not) for a fresh one-hour token.
    Fails once a later login or refresh has replaced it.
    """
    token = unwrap(issuer.refresh(body.token))
    return TokenResponse(token=token.token, expires_at=token.expires_at)


# ---------------------------------------------------------------------------
# POST /auth/validate
# ---------------------------------------------------------------------------


@router.post("/validate", response_model=ValidateResponse)
async def validate(request: Request, validator: TokenValidator = Depends(get_token_validator)):
    """
    Read the body by hand so that nothing a client sends turns into a 400:
    no body, broken JSON, a non-object body or a non-string ``token`` all
    simply answer ``{"valid": false}``.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    token = payload.get("token") if isinstance(payload, dict) else None
    if not isinstance(token, str):
        token = None
    # The validator queries the database; keep it off the event loop
    valid = await run_in_threadpool(validator.is_valid, token)
    return ValidateResponse(valid=valid)


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout")
def logout(
    identity: Identity = Depends(get_current_identity),
    store: CredentialStore = Depends(get_credential_store),
):
    """Revoke the caller's active token."""
    unwrap(store.clear_active_token(identity.user_id))
    return {"message": "Logged out"}
