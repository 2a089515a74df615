"""Post Service 도메인 서비스 레이어입니다. 게시글/댓글 작성, 수정, 삭제, 복원 흐름을 캡슐화합니다."""

import logging
from typing import Optional, Union

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from agora.config import settings
from agora.errors import DomainRuleViolation, Forbidden, NotFound
from agora.models.community import Community
from agora.models.post import Comment, Post
from agora.models.user import User
from agora.schemas.post import (
    CommentCreate,
    CommentSearchRequest,
    CommentUpdate,
    PostCreate,
    PostSearchRequest,
    PostUpdate,
)
from agora.services import audit_service
from agora.services.community_service import get_active_community, is_subscribed
from agora.services.moderation_service import ensure_not_banned
from agora.utils import lifecycle
from agora.utils.helpers import normalize_keyword, utcnow
from agora.utils.pagination import paginate
from agora.utils.permissions import (
    Action,
    can_moderate_community,
    ensure_allowed,
    ensure_capability,
    is_admin,
)

logger = logging.getLogger(__name__)

ANYONE = "anyone"
SUBSCRIBERS_ONLY = "subscribers_only"
MODERATORS_ONLY = "moderators_only"

POST = "post"
COMMENT = "comment"


def _comment_count_expr():
    return (
        select(func.count(Comment.comment_id))
        .where(Comment.post_id == Post.post_id)
        .correlate(Post)
        .scalar_subquery()
    )


def _serialize_post(post: Post, comment_count: Optional[int] = None, author_name: Optional[str] = None) -> Post:
    setattr(post, "author_name", author_name if author_name is not None else (post.author.display_name if post.author else None))
    if comment_count is not None:
        setattr(post, "comment_count", int(comment_count))
    return post


def _serialize_comment(comment: Comment) -> Comment:
    setattr(comment, "author_name", comment.author.display_name if comment.author else None)
    return comment


def _load_post(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.post_id == post_id).first()
    if not post or lifecycle.is_deleted(post.community):
        raise NotFound("게시글을 찾을 수 없습니다.")
    return post


def get_visible_post(db: Session, post_id: int, viewer: Optional[User] = None) -> Post:
    post = _load_post(db, post_id)
    if lifecycle.is_deleted(post) and not can_moderate_community(db, viewer, post.community_id):
        raise NotFound("게시글을 찾을 수 없습니다.")
    return post


def _with_comment_count(db: Session, post: Post) -> Post:
    count = db.query(func.count(Comment.comment_id)).filter(Comment.post_id == post.post_id).scalar()
    return _serialize_post(post, count)


def get_post_with_meta(db: Session, post_id: int, viewer: Optional[User] = None) -> Post:
    return _with_comment_count(db, get_visible_post(db, post_id, viewer))


def _ensure_posting_permission(db: Session, community: Community, user: User) -> None:
    if community.posting_permission == ANYONE:
        return
    if can_moderate_community(db, user, community.community_id):
        return
    if community.posting_permission == SUBSCRIBERS_ONLY:
        if not is_subscribed(db, community.community_id, user.user_id):
            raise DomainRuleViolation("구독자만 글을 작성할 수 있는 커뮤니티입니다.")
        return
    if community.posting_permission == MODERATORS_ONLY:
        raise DomainRuleViolation("모더레이터만 글을 작성할 수 있는 커뮤니티입니다.")


def create_post(db: Session, community_id: int, data: PostCreate, current_user: User) -> Post:
    community = get_active_community(db, community_id)
    ensure_capability(current_user, Action.CREATE)
    ensure_not_banned(db, community_id, current_user)
    _ensure_posting_permission(db, community, current_user)

    post = Post(
        community_id=community_id,
        author_id=current_user.user_id,
        title=data.title,
        body=data.body,
        vote_score=0,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("post created id=%s community=%s author=%s", post.post_id, community_id, current_user.user_id)
    return _serialize_post(post, 0)


def update_post(db: Session, post_id: int, data: PostUpdate, current_user: User) -> Post:
    post = get_visible_post(db, post_id, current_user)
    ensure_allowed(db, current_user, post, Action.EDIT, "작성자 또는 관리자만 수정할 수 있습니다.")
    if lifecycle.is_deleted(post):
        raise DomainRuleViolation("삭제된 게시글은 수정할 수 없습니다.")
    payload = data.model_dump(exclude_unset=True)
    if payload.get("title") is not None:
        post.title = payload["title"]
    if "body" in payload:
        post.body = payload["body"]
    post.updated_at = utcnow()
    db.commit()
    return get_post_with_meta(db, post.post_id, current_user)


def delete_post(db: Session, post_id: int, current_user: User) -> Post:
    post = get_visible_post(db, post_id, current_user)
    ensure_allowed(db, current_user, post, Action.DELETE, "작성자, 담당 모더레이터 또는 관리자만 삭제할 수 있습니다.")
    if lifecycle.soft_delete(post, current_user.user_id):
        if post.author_id != current_user.user_id:
            audit_service.record_action(
                db,
                community_id=post.community_id,
                actor=current_user,
                action=audit_service.REMOVE_POST,
                target_type="post",
                target_id=post.post_id,
            )
        db.commit()
        logger.info("post deleted id=%s by=%s", post.post_id, current_user.user_id)
    return _with_comment_count(db, post)


def restore_post(db: Session, post_id: int, current_user: User) -> Post:
    post = get_visible_post(db, post_id, current_user)
    ensure_allowed(db, current_user, post, Action.RESTORE, "담당 모더레이터 또는 관리자만 복원할 수 있습니다.")
    lifecycle.restore(post)
    audit_service.record_action(
        db,
        community_id=post.community_id,
        actor=current_user,
        action=audit_service.RESTORE_POST,
        target_type="post",
        target_id=post.post_id,
    )
    db.commit()
    logger.info("post restored id=%s by=%s", post.post_id, current_user.user_id)
    return get_post_with_meta(db, post.post_id, current_user)


def search_posts(db: Session, request: PostSearchRequest, viewer: Optional[User] = None) -> dict:
    if request.include_deleted:
        if request.community_id is None and not is_admin(viewer):
            raise Forbidden("삭제된 게시글은 관리자 또는 담당 모더레이터만 조회할 수 있습니다.")
        if request.community_id is not None and not can_moderate_community(db, viewer, request.community_id):
            raise Forbidden("삭제된 게시글은 관리자 또는 담당 모더레이터만 조회할 수 있습니다.")

    comment_count = _comment_count_expr()
    query = (
        db.query(Post, comment_count.label("comment_count"), User.display_name)
        .join(Community, Community.community_id == Post.community_id)
        .join(User, User.user_id == Post.author_id)
        .filter(Community.deleted_at.is_(None))
    )
    if not request.include_deleted:
        query = query.filter(Post.deleted_at.is_(None))
    if request.community_id is not None:
        query = query.filter(Post.community_id == request.community_id)
    if request.author_id is not None:
        query = query.filter(Post.author_id == request.author_id)
    keyword = normalize_keyword(request.keyword)
    if keyword:
        like = f"%{keyword}%"
        query = query.filter(or_(Post.title.ilike(like), Post.body.ilike(like)))

    return paginate(
        query,
        request,
        {
            "created_at": Post.created_at,
            "updated_at": Post.updated_at,
            "vote_score": Post.vote_score,
            "title": Post.title,
            "comment_count": comment_count,
        },
        Post.post_id,
        serialize=lambda row: _serialize_post(row[0], row[1], row[2]),
    )


def create_comment(db: Session, post_id: int, data: CommentCreate, current_user: User) -> Comment:
    post = get_visible_post(db, post_id, current_user)
    if lifecycle.is_deleted(post):
        raise DomainRuleViolation("삭제된 게시글에는 댓글을 작성할 수 없습니다.")
    ensure_capability(current_user, Action.CREATE)
    ensure_not_banned(db, post.community_id, current_user)

    depth = 0
    if data.parent_id is not None:
        parent = (
            db.query(Comment)
            .filter(Comment.comment_id == data.parent_id, Comment.post_id == post.post_id)
            .first()
        )
        if not parent:
            raise NotFound("상위 댓글을 찾을 수 없습니다.")
        if lifecycle.is_deleted(parent):
            raise DomainRuleViolation("삭제된 댓글에는 답글을 작성할 수 없습니다.")
        depth = parent.depth + 1
        if depth > settings.MAX_COMMENT_DEPTH:
            raise DomainRuleViolation(f"댓글은 최대 {settings.MAX_COMMENT_DEPTH}단계까지만 작성할 수 있습니다.")

    comment = Comment(
        post_id=post.post_id,
        parent_id=data.parent_id,
        author_id=current_user.user_id,
        content=data.content,
        depth=depth,
        vote_score=0,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return _serialize_comment(comment)


def _load_comment(db: Session, comment_id: int, viewer: Optional[User] = None) -> Comment:
    comment = db.query(Comment).filter(Comment.comment_id == comment_id).first()
    if not comment:
        raise NotFound("댓글을 찾을 수 없습니다.")
    # 게시글이 보이지 않으면 댓글도 보이지 않는다.
    get_visible_post(db, comment.post_id, viewer)
    return comment


def get_comment(db: Session, comment_id: int, viewer: Optional[User] = None) -> Comment:
    return _serialize_comment(_load_comment(db, comment_id, viewer))


def get_active_target(db: Session, target_type: str, target_id: int, viewer: Optional[User] = None) -> Union[Post, Comment]:
    """투표/신고 대상 게시글 또는 댓글을 불러옵니다. 삭제된 게시글은 404, 삭제된 댓글은 규칙 위반입니다."""
    if target_type == POST:
        post = get_visible_post(db, target_id, viewer)
        if lifecycle.is_deleted(post):
            raise NotFound("게시글을 찾을 수 없습니다.")
        return post
    comment = _load_comment(db, target_id, viewer)
    if lifecycle.is_deleted(comment):
        raise DomainRuleViolation("삭제된 댓글입니다.")
    return comment


def update_comment(db: Session, comment_id: int, data: CommentUpdate, current_user: User) -> Comment:
    comment = _load_comment(db, comment_id, current_user)
    if lifecycle.is_deleted(comment):
        raise DomainRuleViolation("삭제된 댓글은 수정할 수 없습니다.")
    ensure_allowed(db, current_user, comment, Action.EDIT, "작성자 또는 관리자만 수정할 수 있습니다.")
    comment.content = data.content
    comment.updated_at = utcnow()
    db.commit()
    db.refresh(comment)
    return _serialize_comment(comment)


def delete_comment(db: Session, comment_id: int, current_user: User) -> Comment:
    comment = _load_comment(db, comment_id, current_user)
    ensure_allowed(db, current_user, comment, Action.DELETE, "작성자, 담당 모더레이터 또는 관리자만 삭제할 수 있습니다.")
    removed = lifecycle.soft_delete(
        comment,
        current_user.user_id,
        content_field="content",
        placeholder=settings.DELETED_COMMENT_PLACEHOLDER,
    )
    if removed:
        if comment.author_id != current_user.user_id:
            audit_service.record_action(
                db,
                community_id=comment.post.community_id,
                actor=current_user,
                action=audit_service.REMOVE_COMMENT,
                target_type="comment",
                target_id=comment.comment_id,
            )
        db.commit()
        db.refresh(comment)
        logger.info("comment deleted id=%s by=%s", comment.comment_id, current_user.user_id)
    return _serialize_comment(comment)


def search_comments(db: Session, post_id: int, request: CommentSearchRequest, viewer: Optional[User] = None) -> dict:
    post = get_visible_post(db, post_id, viewer)
    query = db.query(Comment).filter(Comment.post_id == post.post_id)
    if request.top_level_only:
        query = query.filter(Comment.parent_id.is_(None))
    elif request.parent_id is not None:
        query = query.filter(Comment.parent_id == request.parent_id)
    if request.author_id is not None:
        query = query.filter(Comment.author_id == request.author_id)
    return paginate(
        query,
        request,
        {"created_at": Comment.created_at, "vote_score": Comment.vote_score, "depth": Comment.depth},
        Comment.comment_id,
        serialize=_serialize_comment,
    )
