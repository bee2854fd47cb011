# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic response models for the admin endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from models.user import User


class UserRow(BaseModel):
    id: int
    login: str
    email: str
    name: str
    privilege: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "UserRow":
        return cls(
            id=user.id,
            login=user.login,
            email=user.email,
            name=user.name,
            privilege=user.privilege.name,
            created_at=user.created_at,
        )


class UserListResponse(BaseModel):
    users: List[UserRow]
