"""Community Service 도메인 서비스 레이어입니다. 커뮤니티/모더레이터/구독 흐름을 캡슐화합니다."""

import logging
from typing import List

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.errors import DomainRuleViolation, DuplicateAction, DuplicateIdentity, NotFound
from agora.models.community import Community, CommunityModerator, Subscription
from agora.models.user import User
from agora.schemas.common import PageRequest
from agora.schemas.community import CommunityCreate, CommunitySearchRequest, CommunityUpdate, ModeratorAssign
from agora.services import audit_service
from agora.utils import lifecycle
from agora.utils.helpers import normalize_keyword, utcnow
from agora.utils.pagination import paginate
from agora.utils.permissions import (
    MODERATOR,
    Action,
    ensure_allowed,
    ensure_capability,
    forget_moderation_scope,
    is_admin,
)

logger = logging.getLogger(__name__)


def _subscriber_count_expr():
    return (
        select(func.count(Subscription.subscription_id))
        .where(Subscription.community_id == Community.community_id)
        .correlate(Community)
        .scalar_subquery()
    )


def _serialize_community(community: Community, subscriber_count: int | None = None) -> Community:
    if subscriber_count is not None:
        setattr(community, "subscriber_count", int(subscriber_count))
    return community


def get_community(db: Session, community_id: int, viewer: User | None = None) -> Community:
    community = db.query(Community).filter(Community.community_id == community_id).first()
    if not community:
        raise NotFound("커뮤니티를 찾을 수 없습니다.")
    if lifecycle.is_deleted(community) and not is_admin(viewer):
        raise NotFound("커뮤니티를 찾을 수 없습니다.")
    return community


def get_active_community(db: Session, community_id: int) -> Community:
    community = db.query(Community).filter(Community.community_id == community_id).first()
    if not community or lifecycle.is_deleted(community):
        raise NotFound("커뮤니티를 찾을 수 없습니다.")
    return community


def _with_subscriber_count(db: Session, community: Community) -> Community:
    count = (
        db.query(func.count(Subscription.subscription_id))
        .filter(Subscription.community_id == community.community_id)
        .scalar()
    )
    return _serialize_community(community, count)


def get_community_with_meta(db: Session, community_id: int, viewer: User | None = None) -> Community:
    return _with_subscriber_count(db, get_community(db, community_id, viewer))


def create_community(db: Session, data: CommunityCreate, current_user: User) -> Community:
    if db.query(Community.community_id).filter(Community.code == data.code).first():
        raise DuplicateIdentity("이미 사용 중인 커뮤니티 코드입니다.")
    community = Community(owner_id=current_user.user_id, **data.model_dump())
    db.add(community)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise DuplicateIdentity("이미 사용 중인 커뮤니티 코드입니다.")

    # 개설자는 자동 구독, 모더레이터 역할이면 담당 모더레이터로 지정
    db.add(Subscription(user_id=current_user.user_id, community_id=community.community_id))
    if current_user.role == MODERATOR:
        db.add(CommunityModerator(
            community_id=community.community_id,
            user_id=current_user.user_id,
            assigned_by=current_user.user_id,
        ))
        forget_moderation_scope(current_user)
    db.commit()
    logger.info("community created id=%s code=%s owner=%s", community.community_id, community.code, current_user.user_id)
    return get_community_with_meta(db, community.community_id, current_user)


def update_community(db: Session, community_id: int, data: CommunityUpdate, current_user: User) -> Community:
    community = get_active_community(db, community_id)
    ensure_allowed(db, current_user, community, Action.EDIT, "커뮤니티 개설자 또는 관리자만 수정할 수 있습니다.")
    payload = data.model_dump(exclude_unset=True)
    for k, v in payload.items():
        # 설명만 비울 수 있다
        if v is None and k in ("name", "posting_permission"):
            continue
        setattr(community, k, v)
    community.updated_at = utcnow()
    db.commit()
    return get_community_with_meta(db, community.community_id, current_user)


def delete_community(db: Session, community_id: int, current_user: User) -> Community:
    community = get_community(db, community_id, current_user)
    ensure_allowed(db, current_user, community, Action.DELETE, "커뮤니티 개설자 또는 관리자만 삭제할 수 있습니다.")
    if lifecycle.soft_delete(community, current_user.user_id):
        db.commit()
        logger.info("community deleted id=%s by=%s", community.community_id, current_user.user_id)
    return _with_subscriber_count(db, community)


def restore_community(db: Session, community_id: int, current_user: User) -> Community:
    community = get_community(db, community_id, current_user)
    ensure_allowed(db, current_user, community, Action.RESTORE, "관리자만 커뮤니티를 복원할 수 있습니다.")
    lifecycle.restore(community)
    db.commit()
    logger.info("community restored id=%s by=%s", community.community_id, current_user.user_id)
    return get_community_with_meta(db, community.community_id, current_user)


def search_communities(db: Session, request: CommunitySearchRequest) -> dict:
    subscriber_count = _subscriber_count_expr()
    query = db.query(Community, subscriber_count.label("subscriber_count")).filter(Community.deleted_at.is_(None))
    keyword = normalize_keyword(request.keyword)
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(or_(
            Community.name.ilike(like),
            Community.code.ilike(like),
            Community.description.ilike(like),
        ))
    if request.posting_permission:
        query = query.filter(Community.posting_permission == request.posting_permission)
    if request.owner_id is not None:
        query = query.filter(Community.owner_id == request.owner_id)
    return paginate(
        query,
        request,
        {
            "created_at": Community.created_at,
            "name": Community.name,
            "code": Community.code,
            "subscriber_count": subscriber_count,
        },
        Community.community_id,
        serialize=lambda row: _serialize_community(row[0], row[1]),
    )


def _serialize_moderator(row: CommunityModerator, username: str | None = None) -> CommunityModerator:
    setattr(row, "username", username if username is not None else row.user.username)
    return row


def list_moderators(db: Session, community_id: int) -> List[CommunityModerator]:
    get_active_community(db, community_id)
    rows = (
        db.query(CommunityModerator, User.username)
        .join(User, User.user_id == CommunityModerator.user_id)
        .filter(CommunityModerator.community_id == community_id)
        .order_by(CommunityModerator.created_at.asc(), CommunityModerator.assignment_id.asc())
        .all()
    )
    return [_serialize_moderator(row, username) for row, username in rows]


def assign_moderator(db: Session, community_id: int, data: ModeratorAssign, current_user: User) -> CommunityModerator:
    community = get_active_community(db, community_id)
    ensure_allowed(db, current_user, community, Action.MANAGE_MODERATORS, "커뮤니티 개설자 또는 관리자만 모더레이터를 지정할 수 있습니다.")
    target = db.query(User).filter(User.user_id == data.user_id, User.is_active == True).first()  # noqa: E712
    if not target:
        raise NotFound("사용자를 찾을 수 없습니다.")
    if target.role != MODERATOR:
        raise DomainRuleViolation("모더레이터 계정만 커뮤니티 모더레이터로 지정할 수 있습니다.")

    row = CommunityModerator(community_id=community_id, user_id=target.user_id, assigned_by=current_user.user_id)
    db.add(row)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise DuplicateAction("이미 지정된 모더레이터입니다.")
    audit_service.record_action(
        db,
        community_id=community_id,
        actor=current_user,
        action=audit_service.ASSIGN_MODERATOR,
        target_type="user",
        target_id=target.user_id,
    )
    db.commit()
    db.refresh(row)
    return _serialize_moderator(row)


def remove_moderator(db: Session, community_id: int, user_id: int, current_user: User) -> None:
    community = get_active_community(db, community_id)
    ensure_allowed(db, current_user, community, Action.MANAGE_MODERATORS, "커뮤니티 개설자 또는 관리자만 모더레이터를 해제할 수 있습니다.")
    row = (
        db.query(CommunityModerator)
        .filter(CommunityModerator.community_id == community_id, CommunityModerator.user_id == user_id)
        .first()
    )
    if not row:
        raise NotFound("지정된 모더레이터가 아닙니다.")
    db.delete(row)
    audit_service.record_action(
        db,
        community_id=community_id,
        actor=current_user,
        action=audit_service.REMOVE_MODERATOR,
        target_type="user",
        target_id=user_id,
    )
    db.commit()


def is_subscribed(db: Session, community_id: int, user_id: int) -> bool:
    return db.query(Subscription.subscription_id).filter(
        Subscription.community_id == community_id,
        Subscription.user_id == user_id,
    ).first() is not None


def _serialize_subscription(row: Subscription, community: Community | None = None) -> Subscription:
    community = community or row.community
    setattr(row, "community_code", community.code)
    setattr(row, "community_name", community.name)
    return row


def subscribe(db: Session, community_id: int, current_user: User) -> Subscription:
    community = get_active_community(db, community_id)
    ensure_capability(current_user, Action.SUBSCRIBE)
    if is_subscribed(db, community_id, current_user.user_id):
        raise DuplicateAction("이미 구독 중인 커뮤니티입니다.")
    row = Subscription(user_id=current_user.user_id, community_id=community_id)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateAction("이미 구독 중인 커뮤니티입니다.")
    db.refresh(row)
    return _serialize_subscription(row, community)


def unsubscribe(db: Session, community_id: int, current_user: User) -> None:
    get_active_community(db, community_id)
    deleted = (
        db.query(Subscription)
        .filter(Subscription.community_id == community_id, Subscription.user_id == current_user.user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFound("구독 중인 커뮤니티가 아닙니다.")
    db.commit()


def list_subscriptions(db: Session, current_user: User, request: PageRequest) -> dict:
    query = (
        db.query(Subscription, Community)
        .join(Community, Community.community_id == Subscription.community_id)
        .filter(Subscription.user_id == current_user.user_id, Community.deleted_at.is_(None))
    )
    return paginate(
        query,
        request,
        {"created_at": Subscription.created_at, "community_name": Community.name},
        Subscription.subscription_id,
        serialize=lambda row: _serialize_subscription(row[0], row[1]),
    )
