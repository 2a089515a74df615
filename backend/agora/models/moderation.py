"""커뮤니티 밴/신고/모더레이션 로그 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship
from agora.database import Base
from agora.utils.helpers import utcnow


class CommunityBan(Base):
    __tablename__ = "community_ban"

    ban_id = Column(Integer, primary_key=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("community.community_id"), nullable=False)
    banned_user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    issued_by = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    reason_category = Column(String(30), nullable=False)
    reason_text = Column(Text)
    is_permanent = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, onupdate=utcnow)
    lifted_at = Column(DateTime)
    lifted_by = Column(Integer, ForeignKey("users.user_id"))
    lift_reason = Column(Text)

    community = relationship("Community")
    banned_user = relationship("User", foreign_keys=[banned_user_id])
    issuer = relationship("User", foreign_keys=[issued_by])

    __table_args__ = (
        # 해제되지 않은 밴은 (커뮤니티, 사용자)당 1건
        Index(
            "uq_community_ban_open",
            "community_id",
            "banned_user_id",
            unique=True,
            sqlite_where=text("lifted_at IS NULL"),
            postgresql_where=text("lifted_at IS NULL"),
        ),
        Index("idx_community_ban_community", "community_id", "created_at"),
    )


class ModerationLog(Base):
    __tablename__ = "moderation_log"

    log_id = Column(Integer, primary_key=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("community.community_id"), nullable=False)
    actor_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    action = Column(String(30), nullable=False)
    # remove_post/restore_post/remove_comment/ban/update_ban/lift_ban/assign_moderator/remove_moderator
    # resolve_report/dismiss_report
    target_type = Column(String(20), nullable=False)  # post/comment/user
    target_id = Column(Integer, nullable=False)
    reason = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_moderation_log_community", "community_id", "created_at"),
    )


class ContentReport(Base):
    __tablename__ = "content_report"

    report_id = Column(Integer, primary_key=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("community.community_id"), nullable=False)
    reporter_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    target_type = Column(String(20), nullable=False)  # post/comment
    target_id = Column(Integer, nullable=False)
    reason_category = Column(String(30), nullable=False)
    reason_text = Column(Text)
    status = Column(String(20), default="open", nullable=False)  # open/resolved/dismissed
    resolved_by = Column(Integer, ForeignKey("users.user_id"))
    resolved_at = Column(DateTime)
    resolution_note = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("reporter_id", "target_type", "target_id", name="uq_content_report_reporter_target"),
        Index("idx_content_report_community", "community_id", "status", "created_at"),
    )
