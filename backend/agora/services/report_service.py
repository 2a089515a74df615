"""Report Service 도메인 서비스 레이어입니다. 게시글/댓글 신고 접수와 모더레이터 처리 흐름을 캡슐화합니다."""

import logging
from typing import Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.errors import DomainRuleViolation, DuplicateAction, NotFound
from agora.models.moderation import ContentReport
from agora.models.post import Comment, Post
from agora.models.user import User
from agora.schemas.moderation import ReportCreate, ReportResolve, ReportSearchRequest
from agora.services import audit_service
from agora.services.community_service import get_active_community
from agora.services.post_service import POST, get_active_target
from agora.utils.helpers import utcnow
from agora.utils.pagination import paginate
from agora.utils.permissions import Action, authorize, community_scope, ensure_allowed, ensure_capability

logger = logging.getLogger(__name__)

OPEN = "open"
RESOLVED = "resolved"
DISMISSED = "dismissed"

DUPLICATE_REPORT = "이미 신고한 콘텐츠입니다."

_LOG_ACTIONS = {
    RESOLVED: audit_service.RESOLVE_REPORT,
    DISMISSED: audit_service.DISMISS_REPORT,
}


def _community_of(target_type: str, target: Union[Post, Comment]) -> int:
    return target.community_id if target_type == POST else target.post.community_id


def _already_reported(db: Session, reporter_id: int, target_type: str, target_id: int) -> bool:
    return db.query(ContentReport.report_id).filter(
        ContentReport.reporter_id == reporter_id,
        ContentReport.target_type == target_type,
        ContentReport.target_id == target_id,
    ).first() is not None


def create_report(db: Session, target_type: str, target_id: int, data: ReportCreate, current_user: User) -> ContentReport:
    ensure_capability(current_user, Action.REPORT)
    target = get_active_target(db, target_type, target_id, current_user)
    if target.author_id == current_user.user_id:
        raise DomainRuleViolation("본인이 작성한 콘텐츠는 신고할 수 없습니다.")
    if _already_reported(db, current_user.user_id, target_type, target_id):
        raise DuplicateAction(DUPLICATE_REPORT)

    report = ContentReport(
        community_id=_community_of(target_type, target),
        reporter_id=current_user.user_id,
        target_type=target_type,
        target_id=target_id,
        reason_category=data.reason_category,
        reason_text=data.reason_text,
        status=OPEN,
    )
    db.add(report)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateAction(DUPLICATE_REPORT)
    db.refresh(report)
    logger.info(
        "report created id=%s %s:%s community=%s by=%s",
        report.report_id, target_type, target_id, report.community_id, current_user.user_id,
    )
    return report


def _load_report(db: Session, community_id: int, report_id: int) -> ContentReport:
    report = (
        db.query(ContentReport)
        .filter(ContentReport.report_id == report_id, ContentReport.community_id == community_id)
        .first()
    )
    if not report:
        raise NotFound("신고를 찾을 수 없습니다.")
    return report


def get_report(db: Session, community_id: int, report_id: int, current_user: User) -> ContentReport:
    report = _load_report(db, community_id, report_id)
    if report.reporter_id != current_user.user_id:
        ensure_allowed(db, current_user, report, Action.REVIEW_REPORTS)
    return report


def resolve_report(
    db: Session, community_id: int, report_id: int, data: ReportResolve, current_user: User
) -> ContentReport:
    report = _load_report(db, community_id, report_id)
    ensure_allowed(db, current_user, report, Action.REVIEW_REPORTS, "담당 모더레이터 또는 관리자만 신고를 처리할 수 있습니다.")

    # 열린 신고만 한 번 처리된다
    changed = (
        db.query(ContentReport)
        .filter(ContentReport.report_id == report.report_id, ContentReport.status == OPEN)
        .update(
            {
                ContentReport.status: data.status,
                ContentReport.resolved_by: current_user.user_id,
                ContentReport.resolved_at: utcnow(),
                ContentReport.resolution_note: data.resolution_note,
                ContentReport.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
    )
    if not changed:
        db.rollback()
        raise DomainRuleViolation("이미 처리된 신고입니다.")

    audit_service.record_action(
        db,
        community_id=community_id,
        actor=current_user,
        action=_LOG_ACTIONS[data.status],
        target_type=report.target_type,
        target_id=report.target_id,
        reason=data.resolution_note or report.reason_category,
    )
    db.commit()
    db.refresh(report)
    return report


def search_reports(db: Session, community_id: int, request: ReportSearchRequest, current_user: User) -> dict:
    get_active_community(db, community_id)
    query = db.query(ContentReport).filter(ContentReport.community_id == community_id)
    if not authorize(db, current_user, community_scope(community_id), Action.REVIEW_REPORTS):
        # 일반 사용자는 자신이 접수한 신고만 조회
        query = query.filter(ContentReport.reporter_id == current_user.user_id)
    elif request.reporter_id is not None:
        query = query.filter(ContentReport.reporter_id == request.reporter_id)

    if request.status:
        query = query.filter(ContentReport.status == request.status)
    if request.reason_category:
        query = query.filter(ContentReport.reason_category == request.reason_category)
    if request.target_type:
        query = query.filter(ContentReport.target_type == request.target_type)
    return paginate(
        query,
        request,
        {"created_at": ContentReport.created_at, "resolved_at": ContentReport.resolved_at},
        ContentReport.report_id,
    )
