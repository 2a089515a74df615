"""Post/Comment 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from agora.database import Base
from agora.utils.helpers import utcnow


class Post(Base):
    __tablename__ = "post"

    post_id = Column(Integer, primary_key=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("community.community_id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    title = Column(String(300), nullable=False)
    body = Column(Text)
    vote_score = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime)  # 본문 수정 시에만 갱신
    deleted_at = Column(DateTime)
    deleted_by = Column(Integer, ForeignKey("users.user_id"))

    community = relationship("Community", back_populates="posts")
    author = relationship("User", foreign_keys=[author_id])
    comments = relationship("Comment", back_populates="post")

    __table_args__ = (
        Index("idx_post_community", "community_id", "created_at"),
        Index("idx_post_author", "author_id"),
    )


class Comment(Base):
    __tablename__ = "comment"

    comment_id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("post.post_id"), nullable=False)
    parent_id = Column(Integer, ForeignKey("comment.comment_id"))
    author_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    content = Column(Text, nullable=False)
    depth = Column(Integer, default=0, nullable=False)
    vote_score = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime)  # 본문 수정 시에만 갱신
    deleted_at = Column(DateTime)
    deleted_by = Column(Integer, ForeignKey("users.user_id"))

    post = relationship("Post", back_populates="comments")
    author = relationship("User", foreign_keys=[author_id])
    parent = relationship("Comment", remote_side=[comment_id])

    __table_args__ = (
        Index("idx_comment_post", "post_id", "created_at"),
        Index("idx_comment_parent", "parent_id"),
    )
