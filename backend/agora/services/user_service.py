"""User Service 도메인 서비스 레이어입니다. 프로필 조회/수정과 관리자 계정 관리를 캡슐화합니다."""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from agora.errors import DomainRuleViolation, DuplicateAction, NotFound
from agora.models.user import User
from agora.schemas.user import UserProfileUpdate, UserSearchRequest
from agora.services.auth_service import revoke_all_sessions
from agora.utils.helpers import normalize_keyword
from agora.utils.pagination import paginate
from agora.utils.permissions import ADMIN

logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("사용자를 찾을 수 없습니다.")
    return user


def get_user(db: Session, user_id: int) -> User:
    user = _get_user_or_404(db, user_id)
    if not user.is_active:
        raise NotFound("사용자를 찾을 수 없습니다.")
    return user


def update_profile(db: Session, current_user: User, data: UserProfileUpdate) -> User:
    payload = data.model_dump(exclude_unset=True)
    for k, v in payload.items():
        setattr(current_user, k, v)
    db.commit()
    db.refresh(current_user)
    return current_user


def search_users(db: Session, request: UserSearchRequest) -> dict:
    query = db.query(User)
    if request.role:
        query = query.filter(User.role == request.role)
    if request.is_active is not None:
        query = query.filter(User.is_active == request.is_active)
    keyword = normalize_keyword(request.keyword)
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(or_(
            User.username.ilike(like),
            User.email.ilike(like),
            User.display_name.ilike(like),
        ))
    return paginate(
        query,
        request,
        {
            "created_at": User.created_at,
            "username": User.username,
            "last_login_at": User.last_login_at,
        },
        User.user_id,
    )


def _ensure_not_last_admin(db: Session, user: User) -> None:
    if user.role != ADMIN:
        return
    admin_count = db.query(User).filter(User.role == ADMIN, User.is_active == True).count()  # noqa: E712
    if admin_count <= 1:
        raise DomainRuleViolation("마지막 관리자 계정은 비활성화할 수 없습니다.")


def deactivate_user(db: Session, user_id: int, current_user: User) -> User:
    user = _get_user_or_404(db, user_id)
    if user.user_id == current_user.user_id:
        raise DomainRuleViolation("자기 자신은 비활성화할 수 없습니다.")
    if not user.is_active:
        return user
    _ensure_not_last_admin(db, user)
    user.is_active = False
    revoked = revoke_all_sessions(db, user.user_id)
    db.commit()
    db.refresh(user)
    logger.info("deactivated user_id=%s by=%s revoked_sessions=%s", user.user_id, current_user.user_id, revoked)
    return user


def activate_user(db: Session, user_id: int, current_user: User) -> User:
    user = _get_user_or_404(db, user_id)
    if user.is_active:
        raise DuplicateAction("이미 활성화된 사용자입니다.")
    user.is_active = True
    user.failed_login_attempts = 0
    user.locked_until = None
    db.commit()
    db.refresh(user)
    logger.info("activated user_id=%s by=%s", user.user_id, current_user.user_id)
    return user
