# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic response models for the audit log endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class LogEntryRow(BaseModel):
    id: int
    user_id: Optional[int] = None       # NULL once the user is deleted
    login: Optional[str] = None         # resolved from user_id join
    lock_id: Optional[str] = None       # NULL once the lock is deleted
    action: str
    timestamp: datetime
    detail: Optional[Dict[str, Any]] = None


class LogListResponse(BaseModel):
    logs: List[LogEntryRow]
