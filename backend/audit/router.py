# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Audit trail endpoints – read-only, newest first."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from audit.schemas import LogEntryRow, LogListResponse
from audit.service import AuditLogger, EntryRow
from auth.dependencies import get_audit_logger, get_current_identity
from auth.tokens import Identity
from core.errors import unwrap

router = APIRouter(prefix="/logs", tags=["logs"])


def _rows(entries: List[EntryRow]) -> LogListResponse:
    return LogListResponse(
        logs=[
            LogEntryRow(
                id=entry.id,
                user_id=entry.user_id,
                login=login,
                lock_id=entry.lock_id,
                action=entry.action.value,
                timestamp=entry.timestamp,
                detail=entry.detail,
            )
            for entry, login in entries
        ]
    )


@router.get("", response_model=LogListResponse)
def list_logs(
    limit: Optional[int] = Query(None, ge=1),
    identity: Identity = Depends(get_current_identity),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Every entry, newest first.  ``?limit=N`` returns only the N newest."""
    return _rows(unwrap(audit.list_all(limit=limit)))


@router.get("/{lock_id}", response_model=LogListResponse)
def list_lock_logs(
    lock_id: str,
    identity: Identity = Depends(get_current_identity),
    audit: AuditLogger = Depends(get_audit_logger),
):
    return _rows(unwrap(audit.list_for_lock(lock_id)))
