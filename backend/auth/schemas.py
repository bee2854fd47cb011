# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


# -- Requests --------------------------------------------------------------
# Empty strings count as missing (min_length=1).  Upper bounds match the
# column sizes in models/user.py.  Older clients send "username" instead of
# "login"; both are accepted.


class RegisterRequest(BaseModel):
    login: str = Field(min_length=1, max_length=64, validation_alias=AliasChoices("login", "username"))
    password: str = Field(min_length=1)
    email: str = Field(min_length=1, max_length=255)
    name: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    login: str = Field(min_length=1, validation_alias=AliasChoices("login", "username"))
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    token: str = Field(min_length=1)


# -- Responses -------------------------------------------------------------


class UserInfo(BaseModel):
    id: int
    login: str
    email: str
    name: str
    privilege: str


class TokenResponse(BaseModel):
    token: str
    expires_at: datetime


class RegisterResponse(TokenResponse):
    user: UserInfo


class IdentityInfo(BaseModel):
    user_id: int
    login: str
    email: str
    privilege: str

    model_config = {"from_attributes": True}


class VerifyResponse(BaseModel):
    valid: bool
    identity: IdentityInfo


class ValidateResponse(BaseModel):
    valid: bool
