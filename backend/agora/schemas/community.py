"""Community 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

from agora.schemas.common import PageRequest

PostingPermission = Literal["anyone", "subscribers_only", "moderators_only"]


class CommunityCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=30, pattern=r"^[a-z0-9_-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    posting_permission: PostingPermission = "anyone"


class CommunityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    posting_permission: Optional[PostingPermission] = None


class CommunityOut(BaseModel):
    community_id: int
    code: str
    name: str
    description: Optional[str] = None
    owner_id: int
    posting_permission: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    subscriber_count: Optional[int] = None

    model_config = {"from_attributes": True}


class CommunitySearchRequest(PageRequest):
    keyword: Optional[str] = Field(None, max_length=100)
    posting_permission: Optional[PostingPermission] = None
    owner_id: Optional[int] = Field(None, ge=1)


class ModeratorAssign(BaseModel):
    user_id: int = Field(..., ge=1)


class ModeratorOut(BaseModel):
    community_id: int
    user_id: int
    username: Optional[str] = None
    assigned_by: int
    created_at: datetime

    model_config = {"from_attributes": True}


class SubscriptionOut(BaseModel):
    subscription_id: int
    user_id: int
    community_id: int
    community_code: Optional[str] = None
    community_name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
