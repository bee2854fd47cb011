# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – account listing and removal.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid token but a non-admin privilege receives 403 before
any business logic runs.

Deleting a user keeps the audit trail intact: their log entries stay, with
the user reference set to NULL.
"""

from fastapi import APIRouter, Depends

from auth.dependencies import get_credential_store, require_admin
from auth.store import CredentialStore
from auth.tokens import Identity
from admin.schemas import UserListResponse, UserRow
from core.errors import unwrap

router = APIRouter(prefix="/users", tags=["admin"])


# ---------------------------------------------------------------------------
# GET /users  – list all users
# ---------------------------------------------------------------------------


@router.get("", response_model=UserListResponse)
def list_users(
    admin: Identity = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    """Return every user row (no password or token data – handled by the schema)."""
    users = unwrap(store.list_users())
    return UserListResponse(users=[UserRow.from_user(user) for user in users])


# ---------------------------------------------------------------------------
# GET /users/{id}
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=UserRow)
def get_user(
    user_id: int,
    admin: Identity = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    return UserRow.from_user(unwrap(store.find_by_id(user_id)))


# ---------------------------------------------------------------------------
# DELETE /users/{id}
# ---------------------------------------------------------------------------


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: Identity = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    unwrap(store.delete_user(user_id, acting_user_id=admin.user_id))
    return {"message": f"User {user_id} deleted"}
