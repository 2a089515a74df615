"""Permissions 관련 공용 유틸리티 헬퍼입니다.

역할별 capability 테이블과 소유권/커뮤니티 범위를 함께 평가하는 ``authorize``를 제공합니다.
평가 순서: 관리자 override → 담당 커뮤니티 모더레이터 → 소유자 → 거부.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Set

from sqlalchemy.orm import Session

from agora.errors import Forbidden
from agora.models.community import Community, CommunityModerator
from agora.models.moderation import CommunityBan, ContentReport
from agora.models.post import Comment, Post
from agora.models.user import User


GUEST = "guest"
MEMBER = "member"
MODERATOR = "moderator"
ADMIN = "admin"

ACCOUNT_ROLES = (MEMBER, MODERATOR, ADMIN)
ALL_ROLES = (GUEST, *ACCOUNT_ROLES)


class Action(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    RESTORE = "restore"
    VOTE = "vote"
    SUBSCRIBE = "subscribe"
    BAN = "ban"
    UPDATE_BAN = "update_ban"
    LIFT_BAN = "lift_ban"
    VIEW_DELETED = "view_deleted"
    VIEW_MODERATION_LOG = "view_moderation_log"
    MANAGE_MODERATORS = "manage_moderators"
    REPORT = "report"
    REVIEW_REPORTS = "review_reports"


MODERATION_ACTIONS: FrozenSet[Action] = frozenset({
    Action.DELETE,
    Action.RESTORE,
    Action.BAN,
    Action.UPDATE_BAN,
    Action.LIFT_BAN,
    Action.VIEW_DELETED,
    Action.VIEW_MODERATION_LOG,
    Action.REVIEW_REPORTS,
})

OWNER_ACTIONS: FrozenSet[Action] = frozenset({
    Action.EDIT,
    Action.DELETE,
    Action.MANAGE_MODERATORS,
})

_MEMBER_CAPABILITIES = frozenset({
    Action.CREATE,
    Action.EDIT,
    Action.DELETE,
    Action.VOTE,
    Action.SUBSCRIBE,
    Action.REPORT,
    Action.MANAGE_MODERATORS,
})

ROLE_CAPABILITIES: Dict[str, FrozenSet[Action]] = {
    GUEST: frozenset(),
    MEMBER: _MEMBER_CAPABILITIES,
    MODERATOR: _MEMBER_CAPABILITIES | MODERATION_ACTIONS,
    ADMIN: frozenset(Action),
}


@dataclass(frozen=True)
class ResourceRef:
    kind: str
    owner_id: Optional[int]
    community_id: Optional[int]


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def role_of(actor: Optional[User]) -> str:
    if actor is None:
        return GUEST
    return actor.role if actor.role in ACCOUNT_ROLES else GUEST


def is_admin(actor: Optional[User]) -> bool:
    return role_of(actor) == ADMIN


def is_moderator(actor: Optional[User]) -> bool:
    return role_of(actor) == MODERATOR


def community_scope(community_id: int) -> ResourceRef:
    # 밴/로그처럼 커뮤니티 내부에서 수행되는 작업의 범위
    return ResourceRef("community_scope", None, int(community_id))


def resource_ref(resource) -> ResourceRef:
    if isinstance(resource, ResourceRef):
        return resource
    if isinstance(resource, Community):
        # 커뮤니티 자체는 상위 범위가 없으므로 모더레이터 권한이 미치지 않는다.
        return ResourceRef("community", resource.owner_id, None)
    if isinstance(resource, Post):
        return ResourceRef("post", resource.author_id, resource.community_id)
    if isinstance(resource, Comment):
        return ResourceRef("comment", resource.author_id, resource.post.community_id)
    if isinstance(resource, CommunityBan):
        return ResourceRef("ban", resource.issued_by, resource.community_id)
    if isinstance(resource, ContentReport):
        return ResourceRef("report", resource.reporter_id, resource.community_id)
    raise TypeError(f"unsupported resource type: {type(resource).__name__}")


def _moderated_community_ids(db: Session, user: User) -> Set[int]:
    cached = getattr(user, "_moderated_community_cache", None)
    if cached is not None:
        return cached
    community_ids = {
        int(row[0])
        for row in db.query(CommunityModerator.community_id)
        .filter(CommunityModerator.user_id == user.user_id)
        .all()
    }
    setattr(user, "_moderated_community_cache", community_ids)
    return community_ids


def forget_moderation_scope(user: User) -> None:
    if hasattr(user, "_moderated_community_cache"):
        delattr(user, "_moderated_community_cache")


def is_community_moderator(db: Session, community_id: int, user: Optional[User]) -> bool:
    if not is_moderator(user):
        return False
    return int(community_id) in _moderated_community_ids(db, user)


def can_moderate_community(db: Session, actor: Optional[User], community_id: int) -> bool:
    return is_admin(actor) or is_community_moderator(db, community_id, actor)


def has_capability(actor: Optional[User], action: Action) -> bool:
    return action in ROLE_CAPABILITIES[role_of(actor)]


def ensure_capability(actor: Optional[User], action: Action, detail: str | None = None) -> None:
    # 특정 리소스에 묶이지 않는 작업(작성/투표/구독)은 역할 capability만 본다.
    if not has_capability(actor, action):
        raise Forbidden(detail or f"'{role_of(actor)}' 역할은 '{action.value}' 작업을 할 수 없습니다.")


def authorize(db: Session, actor: Optional[User], resource, action: Action) -> Decision:
    role = role_of(actor)
    if action not in ROLE_CAPABILITIES[role]:
        return Decision(False, f"'{role}' 역할은 '{action.value}' 작업을 할 수 없습니다.")
    if role == ADMIN:
        return Decision(True, "admin override")

    ref = resource_ref(resource)
    if (
        action in MODERATION_ACTIONS
        and ref.community_id is not None
        and is_community_moderator(db, ref.community_id, actor)
    ):
        return Decision(True, "community moderator")
    if action in OWNER_ACTIONS and ref.owner_id is not None and ref.owner_id == actor.user_id:
        return Decision(True, "owner")
    return Decision(False, "본인 리소스 또는 권한 있는 관리자만 처리할 수 있습니다.")


def ensure_allowed(db: Session, actor: Optional[User], resource, action: Action, detail: str | None = None) -> Decision:
    decision = authorize(db, actor, resource, action)
    if not decision:
        raise Forbidden(detail or decision.reason)
    return decision
