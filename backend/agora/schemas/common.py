"""목록 조회 공통 요청/응답(페이지 envelope) 스키마입니다."""

from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

from agora.config import settings

T = TypeVar("T")


class PageRequest(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT)
    sort_by: Optional[str] = None
    order: Literal["asc", "desc"] = "desc"


class Pagination(BaseModel):
    current: int
    limit: int
    records: int
    pages: int


class Page(BaseModel, Generic[T]):
    pagination: Pagination
    data: List[T]


class MessageOut(BaseModel):
    message: str
