"""Vote Service 도메인 서비스 레이어입니다.

사용자당 대상 1표 정책이며, 같은 대상에 다시 투표하면 기존 행의 값을 바꿉니다.
점수는 SQL 식으로 증감하여 동시 요청에서도 누락되지 않습니다.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.errors import NotFound
from agora.models.post import Comment, Post
from agora.models.user import User
from agora.models.vote import Vote
from agora.services.post_service import POST, get_active_target
from agora.utils.helpers import utcnow
from agora.utils.permissions import Action, ensure_capability

logger = logging.getLogger(__name__)


def _model_of(target_type: str):
    return Post if target_type == POST else Comment


def _id_column(target_type: str):
    return Post.post_id if target_type == POST else Comment.comment_id


def _adjust_score(db: Session, target_type: str, target_id: int, delta: int) -> None:
    if not delta:
        return
    model = _model_of(target_type)
    db.query(model).filter(_id_column(target_type) == target_id).update(
        {model.vote_score: model.vote_score + delta},
        synchronize_session=False,
    )


def _current_score(db: Session, target_type: str, target_id: int) -> int:
    model = _model_of(target_type)
    score = db.query(model.vote_score).filter(_id_column(target_type) == target_id).scalar()
    return int(score or 0)


def _find_vote(db: Session, user_id: int, target_type: str, target_id: int) -> Optional[Vote]:
    return (
        db.query(Vote)
        .filter(Vote.user_id == user_id, Vote.target_type == target_type, Vote.target_id == target_id)
        .first()
    )


def _serialize(db: Session, vote: Vote) -> Vote:
    setattr(vote, "score", _current_score(db, vote.target_type, vote.target_id))
    return vote


def _update_existing(db: Session, vote: Vote, value: int) -> Vote:
    old = vote.value
    if old == value:
        return vote
    # 읽어 둔 값이 그대로일 때만 바꾸고, 그만큼만 점수를 옮긴다.
    changed = (
        db.query(Vote)
        .filter(Vote.vote_id == vote.vote_id, Vote.value == old)
        .update({Vote.value: value, Vote.updated_at: utcnow()}, synchronize_session=False)
    )
    if changed:
        _adjust_score(db, vote.target_type, vote.target_id, value - old)
        return vote
    # 다른 요청이 먼저 바꿨다
    current = db.query(Vote.value).filter(Vote.vote_id == vote.vote_id).scalar()
    if current is None:
        raise NotFound("투표 기록이 없습니다.")
    db.expire(vote)
    return _update_existing(db, vote, value)


def cast_vote(db: Session, target_type: str, target_id: int, value: int, current_user: User) -> Vote:
    ensure_capability(current_user, Action.VOTE)
    get_active_target(db, target_type, target_id, current_user)

    vote = _find_vote(db, current_user.user_id, target_type, target_id)
    if vote:
        _update_existing(db, vote, value)
    else:
        vote = Vote(user_id=current_user.user_id, target_type=target_type, target_id=target_id, value=value)
        db.add(vote)
        try:
            db.flush()
            _adjust_score(db, target_type, target_id, value)
        except IntegrityError:
            # 동시 첫 투표: 먼저 저장된 행을 갱신한다.
            db.rollback()
            vote = _find_vote(db, current_user.user_id, target_type, target_id)
            if not vote:
                raise
            _update_existing(db, vote, value)
    db.commit()
    db.refresh(vote)
    logger.info("vote user=%s %s:%s value=%s", current_user.user_id, target_type, target_id, value)
    return _serialize(db, vote)


def retract_vote(db: Session, target_type: str, target_id: int, current_user: User) -> None:
    get_active_target(db, target_type, target_id, current_user)
    vote = _find_vote(db, current_user.user_id, target_type, target_id)
    if not vote:
        raise NotFound("투표 기록이 없습니다.")
    value = vote.value
    deleted = (
        db.query(Vote)
        .filter(Vote.vote_id == vote.vote_id, Vote.value == value)
        .delete(synchronize_session=False)
    )
    if not deleted:
        # 그 사이 값이 바뀌었으면 다시 읽어서 처리한다
        db.rollback()
        return retract_vote(db, target_type, target_id, current_user)
    _adjust_score(db, target_type, target_id, -value)
    db.commit()
