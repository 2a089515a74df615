"""Community 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from agora.database import Base
from agora.utils.helpers import utcnow


class Community(Base):
    __tablename__ = "community"

    community_id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(30), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    owner_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    posting_permission = Column(String(30), nullable=False, default="anyone")
    # anyone/subscribers_only/moderators_only
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime)  # 본문 수정 시에만 갱신
    deleted_at = Column(DateTime)

    owner = relationship("User")
    moderators = relationship("CommunityModerator", back_populates="community", cascade="all, delete-orphan")
    posts = relationship("Post", back_populates="community")


class CommunityModerator(Base):
    __tablename__ = "community_moderator"

    assignment_id = Column(Integer, primary_key=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("community.community_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    assigned_by = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    community = relationship("Community", back_populates="moderators")
    user = relationship("User", foreign_keys=[user_id], back_populates="moderated_communities")

    __table_args__ = (
        UniqueConstraint("community_id", "user_id", name="uq_community_moderator"),
    )


class Subscription(Base):
    __tablename__ = "subscription"

    subscription_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    community_id = Column(Integer, ForeignKey("community.community_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    community = relationship("Community")

    __table_args__ = (
        UniqueConstraint("user_id", "community_id", name="uq_subscription_user_community"),
        Index("idx_subscription_community", "community_id"),
    )
