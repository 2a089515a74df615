"""커뮤니티 밴/신고/모더레이션 로그 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

from agora.schemas.common import PageRequest

BanReasonCategory = Literal["spam", "harassment", "hate_speech", "misinformation", "off_topic", "other"]
BanStatus = Literal["active", "expired", "lifted"]


class BanCreate(BaseModel):
    banned_user_id: int = Field(..., ge=1)
    reason_category: BanReasonCategory
    reason_text: Optional[str] = Field(None, max_length=1000)
    is_permanent: bool = False
    expires_at: Optional[datetime] = None


class BanUpdate(BaseModel):
    reason_category: Optional[BanReasonCategory] = None
    reason_text: Optional[str] = Field(None, max_length=1000)
    is_permanent: Optional[bool] = None
    expires_at: Optional[datetime] = None


class BanLift(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class BanOut(BaseModel):
    ban_id: int
    community_id: int
    banned_user_id: int
    issued_by: int
    reason_category: str
    reason_text: Optional[str] = None
    is_permanent: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    lifted_at: Optional[datetime] = None
    lifted_by: Optional[int] = None
    lift_reason: Optional[str] = None
    status: Optional[BanStatus] = None

    model_config = {"from_attributes": True}


class BanSearchRequest(PageRequest):
    status: Optional[BanStatus] = None
    banned_user_id: Optional[int] = Field(None, ge=1)


class ModerationLogOut(BaseModel):
    log_id: int
    community_id: int
    actor_id: int
    action: str
    target_type: str
    target_id: int
    reason: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ModerationLogSearchRequest(PageRequest):
    action: Optional[str] = Field(None, max_length=30)
    actor_id: Optional[int] = Field(None, ge=1)


ReportStatus = Literal["open", "resolved", "dismissed"]


class ReportCreate(BaseModel):
    reason_category: BanReasonCategory
    reason_text: Optional[str] = Field(None, max_length=1000)


class ReportResolve(BaseModel):
    status: Literal["resolved", "dismissed"]
    resolution_note: Optional[str] = Field(None, max_length=1000)


class ReportOut(BaseModel):
    report_id: int
    community_id: int
    reporter_id: int
    target_type: str
    target_id: int
    reason_category: str
    reason_text: Optional[str] = None
    status: ReportStatus
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReportSearchRequest(PageRequest):
    status: Optional[ReportStatus] = None
    reason_category: Optional[BanReasonCategory] = None
    target_type: Optional[Literal["post", "comment"]] = None
    reporter_id: Optional[int] = Field(None, ge=1)
