"""User 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from agora.database import Base
from agora.utils.helpers import utcnow


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    role = Column(String(20), nullable=False)  # member/moderator/admin
    username = Column(String(30), nullable=False)
    email = Column(String(100), nullable=False)
    password_hash = Column(String(100), nullable=False)
    display_name = Column(String(50))
    bio = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)

    # 로그인 실패 잠금 상태
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    last_failed_login_at = Column(DateTime)
    locked_until = Column(DateTime)

    last_login_at = Column(DateTime)
    password_changed_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, onupdate=utcnow)

    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")
    moderated_communities = relationship(
        "CommunityModerator",
        foreign_keys="CommunityModerator.user_id",
        back_populates="user",
    )

    __table_args__ = (
        UniqueConstraint("role", "email", name="uq_users_role_email"),
        UniqueConstraint("role", "username", name="uq_users_role_username"),
        Index("idx_users_email", "email"),
    )
