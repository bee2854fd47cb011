# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Lock endpoints – list, inspect, create, open/close, delete.

Every endpoint requires a valid bearer token.  Reads need nothing more;
writes are authorized by ``locks.privileges.authorize`` inside the state
machine, which also writes the audit entry in the same transaction.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from audit.service import AuditLogger
from auth.dependencies import get_audit_logger, get_current_identity
from auth.tokens import Identity
from core.errors import unwrap
from database import get_db
from locks.schemas import LockCreateRequest, LockListResponse, LockResponse, LockStateRequest
from locks.service import LockStateMachine

router = APIRouter(prefix="/locks", tags=["locks"])


def get_lock_service(
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
) -> LockStateMachine:
    return LockStateMachine(db, audit)


# ---------------------------------------------------------------------------
# GET /locks
# ---------------------------------------------------------------------------


@router.get("", response_model=LockListResponse)
def list_locks(
    identity: Identity = Depends(get_current_identity),
    locks: LockStateMachine = Depends(get_lock_service),
):
    return LockListResponse(locks=[LockResponse.from_lock(lock) for lock in unwrap(locks.list_all())])


# ---------------------------------------------------------------------------
# POST /locks
# ---------------------------------------------------------------------------


@router.post("", response_model=LockResponse, status_code=status.HTTP_201_CREATED)
def create_lock(
    body: LockCreateRequest,
    identity: Identity = Depends(get_current_identity),
    locks: LockStateMachine = Depends(get_lock_service),
):
    """Register a new lock; it starts CLOSED."""
    lock = unwrap(locks.create(body.id, body.owner_privilege, identity))
    return LockResponse.from_lock(lock)


# ---------------------------------------------------------------------------
# GET /locks/{lock_id}
# ---------------------------------------------------------------------------


@router.get("/{lock_id}", response_model=LockResponse)
def get_lock(
    lock_id: str,
    identity: Identity = Depends(get_current_identity),
    locks: LockStateMachine = Depends(get_lock_service),
):
    return LockResponse.from_lock(unwrap(locks.get(lock_id)))


# ---------------------------------------------------------------------------
# PUT /locks/{lock_id}
# ---------------------------------------------------------------------------


@router.put("/{lock_id}", response_model=LockResponse)
def set_lock_state(
    lock_id: str,
    body: LockStateRequest,
    identity: Identity = Depends(get_current_identity),
    locks: LockStateMachine = Depends(get_lock_service),
):
    """
    Open or close a lock.  Requesting the current state is accepted and
    still logged.
    """
    lock = unwrap(locks.set_state(lock_id, body.is_open, identity))
    return LockResponse.from_lock(lock)


# ---------------------------------------------------------------------------
# DELETE /locks/{lock_id}
# ---------------------------------------------------------------------------


@router.delete("/{lock_id}")
def delete_lock(
    lock_id: str,
    identity: Identity = Depends(get_current_identity),
    locks: LockStateMachine = Depends(get_lock_service),
):
    unwrap(locks.delete(lock_id, identity))
    return {"message": f"Lock {lock_id} deleted"}
