"""Comments 기능 API 라우터입니다."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Optional
from agora.database import get_db
from agora.schemas.moderation import ReportCreate, ReportOut
from agora.schemas.post import CommentOut, CommentUpdate, VoteCast, VoteOut
from agora.services import post_service, report_service, vote_service
from agora.middleware.auth_middleware import get_current_user, get_optional_user
from agora.models.user import User

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.get("/{comment_id}", response_model=CommentOut)
def get_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return post_service.get_comment(db, comment_id, viewer)


@router.put("/{comment_id}", response_model=CommentOut)
def update_comment(
    comment_id: int,
    data: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_service.update_comment(db, comment_id, data, current_user)


@router.delete("/{comment_id}", response_model=CommentOut)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_service.delete_comment(db, comment_id, current_user)


@router.post("/{comment_id}/votes", response_model=VoteOut)
def vote_comment(
    comment_id: int,
    data: VoteCast,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return vote_service.cast_vote(db, post_service.COMMENT, comment_id, data.value, current_user)


@router.delete("/{comment_id}/votes", status_code=status.HTTP_204_NO_CONTENT)
def retract_comment_vote(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    vote_service.retract_vote(db, post_service.COMMENT, comment_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{comment_id}/reports", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
def report_comment(
    comment_id: int,
    data: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.create_report(db, post_service.COMMENT, comment_id, data, current_user)
