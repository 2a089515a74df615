"""Posts 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Optional
from agora.database import get_db
from agora.schemas.common import Page
from agora.schemas.moderation import ReportCreate, ReportOut
from agora.schemas.post import (
    CommentCreate,
    CommentOut,
    CommentSearchRequest,
    PostOut,
    PostSearchRequest,
    PostUpdate,
    VoteCast,
    VoteOut,
)
from agora.services import post_service, report_service, vote_service
from agora.middleware.auth_middleware import get_current_user, get_optional_user
from agora.models.user import User

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.patch("", response_model=Page[PostOut])
def search_posts(
    data: PostSearchRequest,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return post_service.search_posts(db, data, viewer)


@router.get("/{post_id}", response_model=PostOut)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return post_service.get_post_with_meta(db, post_id, viewer)


@router.put("/{post_id}", response_model=PostOut)
def update_post(
    post_id: int,
    data: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_service.update_post(db, post_id, data, current_user)


@router.delete("/{post_id}", response_model=PostOut)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_service.delete_post(db, post_id, current_user)


@router.post("/{post_id}/restore", response_model=PostOut)
def restore_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_service.restore_post(db, post_id, current_user)


@router.post("/{post_id}/votes", response_model=VoteOut)
def vote_post(
    post_id: int,
    data: VoteCast,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return vote_service.cast_vote(db, post_service.POST, post_id, data.value, current_user)


@router.delete("/{post_id}/votes", status_code=status.HTTP_204_NO_CONTENT)
def retract_post_vote(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    vote_service.retract_vote(db, post_service.POST, post_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/reports", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
def report_post(
    post_id: int,
    data: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.create_report(db, post_service.POST, post_id, data, current_user)


@router.post("/{post_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def create_comment(
    post_id: int,
    data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_service.create_comment(db, post_id, data, current_user)


@router.patch("/{post_id}/comments", response_model=Page[CommentOut])
def search_comments(
    post_id: int,
    data: CommentSearchRequest,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return post_service.search_comments(db, post_id, data, viewer)
