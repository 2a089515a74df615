"""모더레이션 로그 기록/조회 서비스입니다. 로그는 추가만 가능합니다."""

import logging

from sqlalchemy.orm import Session

from agora.errors import NotFound
from agora.models.community import Community
from agora.models.moderation import ModerationLog
from agora.models.user import User
from agora.schemas.moderation import ModerationLogSearchRequest
from agora.utils.pagination import paginate
from agora.utils.permissions import Action, community_scope, ensure_allowed

logger = logging.getLogger(__name__)

REMOVE_POST = "remove_post"
RESTORE_POST = "restore_post"
REMOVE_COMMENT = "remove_comment"
BAN = "ban"
UPDATE_BAN = "update_ban"
LIFT_BAN = "lift_ban"
ASSIGN_MODERATOR = "assign_moderator"
REMOVE_MODERATOR = "remove_moderator"
RESOLVE_REPORT = "resolve_report"
DISMISS_REPORT = "dismiss_report"


def record_action(
    db: Session,
    *,
    community_id: int,
    actor: User,
    action: str,
    target_type: str,
    target_id: int,
    reason: str | None = None,
) -> ModerationLog:
    row = ModerationLog(
        community_id=community_id,
        actor_id=actor.user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        reason=reason,
    )
    db.add(row)
    logger.info(
        "moderation action=%s community=%s actor=%s target=%s:%s",
        action, community_id, actor.user_id, target_type, target_id,
    )
    return row


def search_logs(db: Session, community_id: int, request: ModerationLogSearchRequest, actor: User) -> dict:
    if not db.query(Community.community_id).filter(Community.community_id == community_id).first():
        raise NotFound("커뮤니티를 찾을 수 없습니다.")
    ensure_allowed(db, actor, community_scope(community_id), Action.VIEW_MODERATION_LOG)

    query = db.query(ModerationLog).filter(ModerationLog.community_id == community_id)
    if request.action:
        query = query.filter(ModerationLog.action == request.action)
    if request.actor_id is not None:
        query = query.filter(ModerationLog.actor_id == request.actor_id)
    return paginate(
        query,
        request,
        {"created_at": ModerationLog.created_at, "action": ModerationLog.action},
        ModerationLog.log_id,
    )
