"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from agora.models.user import User
from agora.models.session import AuthSession
from agora.models.community import Community, CommunityModerator, Subscription
from agora.models.post import Post, Comment
from agora.models.vote import Vote
from agora.models.moderation import CommunityBan, ContentReport, ModerationLog

__all__ = [
    "User",
    "AuthSession",
    "Community", "CommunityModerator", "Subscription",
    "Post", "Comment",
    "Vote",
    "CommunityBan", "ContentReport", "ModerationLog",
]
