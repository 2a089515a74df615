"""Post/Comment/Vote 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

from agora.schemas.common import PageRequest


class PostCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=300)
    body: Optional[str] = Field(None, max_length=40000)


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=300)
    body: Optional[str] = Field(None, max_length=40000)


class PostOut(BaseModel):
    post_id: int
    community_id: int
    author_id: int
    title: str
    body: Optional[str] = None
    vote_score: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    author_name: Optional[str] = None
    comment_count: Optional[int] = None

    model_config = {"from_attributes": True}


class PostSearchRequest(PageRequest):
    community_id: Optional[int] = Field(None, ge=1)
    author_id: Optional[int] = Field(None, ge=1)
    keyword: Optional[str] = Field(None, max_length=100)
    include_deleted: bool = False


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: Optional[int] = Field(None, ge=1)


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class CommentOut(BaseModel):
    comment_id: int
    post_id: int
    parent_id: Optional[int] = None
    author_id: int
    content: str
    depth: int
    vote_score: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    author_name: Optional[str] = None

    model_config = {"from_attributes": True}


class CommentSearchRequest(PageRequest):
    parent_id: Optional[int] = Field(None, ge=1)
    author_id: Optional[int] = Field(None, ge=1)
    top_level_only: bool = False


class VoteCast(BaseModel):
    value: Literal[1, -1]


class VoteOut(BaseModel):
    vote_id: int
    user_id: int
    target_type: str
    target_id: int
    value: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    score: Optional[int] = None

    model_config = {"from_attributes": True}
