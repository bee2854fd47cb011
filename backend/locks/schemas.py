# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the lock endpoints."""

from datetime import datetime
from typing import List

from pydantic import AliasChoices, BaseModel, Field, StrictBool

from models.lock import Lock


# -- Requests --------------------------------------------------------------


class LockStateRequest(BaseModel):
    # StrictBool: "true", 1 and friends are rejected with 400, not coerced
    is_open: StrictBool


class LockCreateRequest(BaseModel):
    id: str = Field(min_length=1, max_length=64, validation_alias=AliasChoices("id", "id_lock"))
    owner_privilege: str = Field(
        "default",
        min_length=1,
        validation_alias=AliasChoices("ownerPrivilege", "owner_privilege"),
    )


# -- Responses -------------------------------------------------------------


class LockResponse(BaseModel):
    id: str
    owner_privilege: str
    is_open: bool
    state: str  # "OPEN" / "CLOSED"
    last_modified: datetime

    @classmethod
    def from_lock(cls, lock: Lock) -> "LockResponse":
        return cls(
            id=lock.id,
            owner_privilege=lock.owner.name,
            is_open=lock.is_open,
            state="OPEN" if lock.is_open else "CLOSED",
            last_modified=lock.last_modified,
        )


class LockListResponse(BaseModel):
    locks: List[LockResponse]
