"""User/Auth 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime

from agora.schemas.common import PageRequest

AccountRole = Literal["member", "moderator", "admin"]


class UserJoinRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_-]+$")
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    display_name: Optional[str] = Field(None, max_length=50)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class UserProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = Field(None, max_length=1000)


class UserPublicOut(BaseModel):
    user_id: int
    role: str
    username: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserOut(UserPublicOut):
    email: str
    is_active: bool
    last_login_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenOut(BaseModel):
    access: str
    refresh: str
    token_type: str = "bearer"
    expired_at: datetime
    refreshable_until: datetime


class AuthorizedOut(BaseModel):
    user: UserOut
    session_id: str
    token: TokenOut


class SessionOut(BaseModel):
    session_id: str
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime
    last_refreshed_at: Optional[datetime] = None
    access_expires_at: datetime
    refresh_expires_at: datetime
    is_current: bool = False

    model_config = {"from_attributes": True}


class UserSearchRequest(PageRequest):
    role: Optional[AccountRole] = None
    keyword: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None
