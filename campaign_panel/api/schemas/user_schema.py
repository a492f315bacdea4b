# campaign_panel/api/schemas/user_schema.py
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from campaign_panel.entities.user import UserRole


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone_number: str | None = None
    role: UserRole
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None


class CreateUserRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    role: UserRole = UserRole.VIEWER
    password: str = Field(min_length=8, max_length=200)
    phone_number: str | None = Field(default=None, max_length=30)


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: UserRole | None = None
    is_active: bool | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=200)
    new_password: str = Field(min_length=8, max_length=200)


class UsersPageResponse(BaseModel):
    items: list[UserResponse]
    has_next: bool
    next_cursor: int | None = None
    limit: int


class RoleCount(BaseModel):
    role: UserRole
    count: int


class UserStatsResponse(BaseModel):
    by_role: list[RoleCount]
    active: int
    inactive: int


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: int | None = None
    action: str
    target_table: str
    target_id: str
    meta: dict[str, Any] | None = None
    created_at: datetime


class ImpersonationResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "Bearer"
