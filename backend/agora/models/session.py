"""로그인 세션(access/refresh 토큰 쌍) 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from agora.database import Base
from agora.utils.helpers import utcnow


class AuthSession(Base):
    __tablename__ = "auth_session"

    session_id = Column(String(32), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    refresh_token_hash = Column(String(64), nullable=False)
    access_expires_at = Column(DateTime, nullable=False)
    refresh_expires_at = Column(DateTime, nullable=False)
    user_agent = Column(String(300))
    ip_address = Column(String(64))
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_refreshed_at = Column(DateTime)
    revoked_at = Column(DateTime)

    user = relationship("User", back_populates="sessions")

    __table_args__ = (
        Index("idx_auth_session_user", "user_id", "revoked_at"),
    )
