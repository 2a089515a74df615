"""게시글/댓글 투표 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
from agora.database import Base
from agora.utils.helpers import utcnow


class Vote(Base):
    __tablename__ = "vote"

    vote_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    target_type = Column(String(20), nullable=False)  # post/comment
    target_id = Column(Integer, nullable=False)
    value = Column(Integer, nullable=False)  # +1/-1
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_vote_user_target"),
        Index("idx_vote_target", "target_type", "target_id"),
    )
