from __future__ import annotations

import re
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from haanein.models.enums import UserRole
from haanein.schemas.base import CamelSchema
from haanein.schemas.links import LinkResponse

_DIGITS = re.compile(r"[0-9]")


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    if len(v) > 30:
        raise ValueError("Name cannot be more than 30 characters")
    if _DIGITS.search(v):
        raise ValueError("Name should not contain numbers")
    return v


class UserCreate(CamelSchema):
    name: str
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: UserRole = UserRole.normal

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(CamelSchema):
    email: str | None = None
    password: str | None = None


class UserUpdate(CamelSchema):
    """Profile update. Only name and email are applied; anything else is dropped."""

    name: str | None = None
    email: EmailStr | None = None
    # Accepted only so the router can refuse it explicitly.
    password: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else _clean_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return None if v is None else v.strip().lower()


class UserResponse(CamelSchema):
    id: str
    name: str
    email: str
    role: str
    created_at: datetime


class UserDetailResponse(UserResponse):
    links: list[LinkResponse] = Field(default_factory=list)


class UserData(CamelSchema):
    user: UserResponse


class UserDetailData(CamelSchema):
    user: UserDetailResponse


class UserListData(CamelSchema):
    users: list[UserResponse]


class UserAuthEnvelope(CamelSchema):
    status: str = "success"
    message: str | None = None
    token: str
    data: UserData


class UserEnvelope(CamelSchema):
    status: str = "success"
    message: str | None = None
    data: UserDetailData


class UserListEnvelope(CamelSchema):
    status: str = "success"
    message: str | None = None
    results: int
    data: UserListData


class PasswordChange(CamelSchema):
    current_password: str
    new_password: str = Field(min_length=6, max_length=128)
