"""Moderation Service 도메인 서비스 레이어입니다. 커뮤니티 밴 발급/수정/해제 흐름을 캡슐화합니다."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.errors import DomainRuleViolation, DuplicateAction, Forbidden, NotFound, ValidationFailed
from agora.models.moderation import CommunityBan
from agora.models.user import User
from agora.schemas.moderation import BanCreate, BanLift, BanSearchRequest, BanUpdate
from agora.services import audit_service
from agora.services.community_service import get_active_community
from agora.utils.helpers import to_naive_utc, utcnow
from agora.utils.pagination import paginate
from agora.utils.permissions import Action, authorize, community_scope, ensure_allowed, is_admin

logger = logging.getLogger(__name__)

ACTIVE = "active"
EXPIRED = "expired"
LIFTED = "lifted"


def ban_status(ban: CommunityBan, now: Optional[datetime] = None) -> str:
    if ban.lifted_at is not None:
        return LIFTED
    if ban.is_permanent:
        return ACTIVE
    now = now or utcnow()
    if ban.expires_at is not None and ban.expires_at <= now:
        return EXPIRED
    return ACTIVE


def _serialize(ban: CommunityBan) -> CommunityBan:
    setattr(ban, "status", ban_status(ban))
    return ban


def _open_ban(db: Session, community_id: int, user_id: int) -> Optional[CommunityBan]:
    return (
        db.query(CommunityBan)
        .filter(
            CommunityBan.community_id == community_id,
            CommunityBan.banned_user_id == user_id,
            CommunityBan.lifted_at.is_(None),
        )
        .first()
    )


def active_ban(db: Session, community_id: int, user_id: int) -> Optional[CommunityBan]:
    ban = _open_ban(db, community_id, user_id)
    if ban and ban_status(ban) == ACTIVE:
        return ban
    return None


def ensure_not_banned(db: Session, community_id: int, user: User) -> None:
    if active_ban(db, community_id, user.user_id):
        raise Forbidden("이 커뮤니티에서 활동이 제한된 사용자입니다.")


def _validate_expiry(is_permanent: bool, expires_at: Optional[datetime]) -> Optional[datetime]:
    if is_permanent:
        return None
    expires_at = to_naive_utc(expires_at)
    if expires_at is None:
        raise ValidationFailed("기간 밴은 만료 시각이 필요합니다.")
    if expires_at <= utcnow():
        raise ValidationFailed("만료 시각은 현재 이후여야 합니다.")
    return expires_at


def _ensure_can_change(db: Session, ban: CommunityBan, current_user: User, action: Action) -> None:
    ensure_allowed(db, current_user, community_scope(ban.community_id), action)
    # 관리자가 발급한 밴은 관리자만 변경할 수 있다.
    if ban.issuer is not None and is_admin(ban.issuer) and not is_admin(current_user):
        raise Forbidden("관리자가 발급한 밴은 관리자만 변경할 수 있습니다.")


def create_ban(db: Session, community_id: int, data: BanCreate, current_user: User) -> CommunityBan:
    get_active_community(db, community_id)
    ensure_allowed(db, current_user, community_scope(community_id), Action.BAN)

    target = db.query(User).filter(User.user_id == data.banned_user_id).first()
    if not target:
        raise NotFound("사용자를 찾을 수 없습니다.")
    if target.user_id == current_user.user_id:
        raise DomainRuleViolation("자기 자신은 밴할 수 없습니다.")
    if is_admin(target):
        raise DomainRuleViolation("관리자는 밴할 수 없습니다.")
    if data.is_permanent and data.expires_at is not None:
        raise ValidationFailed("영구 밴에는 만료 시각을 지정할 수 없습니다.")
    expires_at = _validate_expiry(data.is_permanent, data.expires_at)

    now = utcnow()
    existing = _open_ban(db, community_id, target.user_id)
    if existing:
        if ban_status(existing, now) == ACTIVE:
            raise DuplicateAction("이미 활성화된 밴이 있습니다.")
        # 만료된 밴은 해제 처리 후 새로 발급
        existing.lifted_at = now
        existing.lift_reason = "expired"
        db.flush()

    ban = CommunityBan(
        community_id=community_id,
        banned_user_id=target.user_id,
        issued_by=current_user.user_id,
        reason_category=data.reason_category,
        reason_text=data.reason_text,
        is_permanent=data.is_permanent,
        expires_at=expires_at,
        created_at=now,
    )
    db.add(ban)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise DuplicateAction("이미 활성화된 밴이 있습니다.")
    audit_service.record_action(
        db,
        community_id=community_id,
        actor=current_user,
        action=audit_service.BAN,
        target_type="user",
        target_id=target.user_id,
        reason=data.reason_text or data.reason_category,
    )
    db.commit()
    db.refresh(ban)
    return _serialize(ban)


def _load_ban(db: Session, community_id: int, ban_id: int) -> CommunityBan:
    ban = (
        db.query(CommunityBan)
        .filter(CommunityBan.ban_id == ban_id, CommunityBan.community_id == community_id)
        .first()
    )
    if not ban:
        raise NotFound("밴을 찾을 수 없습니다.")
    return ban


def get_ban(db: Session, community_id: int, ban_id: int, current_user: User) -> CommunityBan:
    ban = _load_ban(db, community_id, ban_id)
    if ban.banned_user_id != current_user.user_id:
        ensure_allowed(db, current_user, community_scope(community_id), Action.VIEW_MODERATION_LOG)
    return _serialize(ban)


def update_ban(db: Session, community_id: int, ban_id: int, data: BanUpdate, current_user: User) -> CommunityBan:
    ban = _load_ban(db, community_id, ban_id)
    _ensure_can_change(db, ban, current_user, Action.UPDATE_BAN)
    if ban.lifted_at is not None:
        raise DomainRuleViolation("해제된 밴은 수정할 수 없습니다.")

    payload = data.model_dump(exclude_unset=True)
    if payload.get("reason_category") is not None:
        ban.reason_category = payload["reason_category"]
    if "reason_text" in payload:
        ban.reason_text = payload["reason_text"]
    if payload.get("is_permanent") is not None or "expires_at" in payload:
        is_permanent = payload["is_permanent"] if payload.get("is_permanent") is not None else ban.is_permanent
        if is_permanent and payload.get("expires_at") is not None:
            raise ValidationFailed("영구 밴에는 만료 시각을 지정할 수 없습니다.")
        expires_at = payload.get("expires_at", ban.expires_at)
        ban.expires_at = _validate_expiry(is_permanent, expires_at)
        ban.is_permanent = is_permanent

    audit_service.record_action(
        db,
        community_id=community_id,
        actor=current_user,
        action=audit_service.UPDATE_BAN,
        target_type="user",
        target_id=ban.banned_user_id,
        reason=ban.reason_text,
    )
    db.commit()
    db.refresh(ban)
    return _serialize(ban)


def lift_ban(db: Session, community_id: int, ban_id: int, data: BanLift, current_user: User) -> CommunityBan:
    ban = _load_ban(db, community_id, ban_id)
    _ensure_can_change(db, ban, current_user, Action.LIFT_BAN)
    if ban.lifted_at is not None:
        return _serialize(ban)

    ban.lifted_at = utcnow()
    ban.lifted_by = current_user.user_id
    ban.lift_reason = data.reason
    audit_service.record_action(
        db,
        community_id=community_id,
        actor=current_user,
        action=audit_service.LIFT_BAN,
        target_type="user",
        target_id=ban.banned_user_id,
        reason=data.reason,
    )
    db.commit()
    db.refresh(ban)
    logger.info("ban lifted id=%s community=%s by=%s", ban.ban_id, community_id, current_user.user_id)
    return _serialize(ban)


def search_bans(db: Session, community_id: int, request: BanSearchRequest, current_user: User) -> dict:
    get_active_community(db, community_id)
    query = db.query(CommunityBan).filter(CommunityBan.community_id == community_id)
    if not authorize(db, current_user, community_scope(community_id), Action.VIEW_MODERATION_LOG):
        # 일반 사용자는 자신의 밴 이력만 조회
        query = query.filter(CommunityBan.banned_user_id == current_user.user_id)
    elif request.banned_user_id is not None:
        query = query.filter(CommunityBan.banned_user_id == request.banned_user_id)

    now = utcnow()
    not_expired = or_(CommunityBan.is_permanent == True, CommunityBan.expires_at > now)  # noqa: E712
    if request.status == ACTIVE:
        query = query.filter(CommunityBan.lifted_at.is_(None), not_expired)
    elif request.status == EXPIRED:
        query = query.filter(
            CommunityBan.lifted_at.is_(None),
            and_(CommunityBan.is_permanent == False, CommunityBan.expires_at <= now),  # noqa: E712
        )
    elif request.status == LIFTED:
        query = query.filter(CommunityBan.lifted_at.isnot(None))

    return paginate(
        query,
        request,
        {"created_at": CommunityBan.created_at, "expires_at": CommunityBan.expires_at},
        CommunityBan.ban_id,
        serialize=_serialize,
    )
