"""Communities 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from agora.database import get_db
from agora.schemas.common import Page
from agora.schemas.community import (
    CommunityCreate,
    CommunityOut,
    CommunitySearchRequest,
    CommunityUpdate,
    ModeratorAssign,
    ModeratorOut,
    SubscriptionOut,
)
from agora.schemas.moderation import (
    BanCreate,
    BanLift,
    BanOut,
    BanSearchRequest,
    BanUpdate,
    ModerationLogOut,
    ModerationLogSearchRequest,
    ReportOut,
    ReportResolve,
    ReportSearchRequest,
)
from agora.schemas.post import PostCreate, PostOut, PostSearchRequest
from agora.services import audit_service, community_service, moderation_service, post_service, report_service
from agora.middleware.auth_middleware import get_current_user, get_optional_user
from agora.models.user import User

router = APIRouter(prefix="/api/communities", tags=["communities"])


@router.post("", response_model=CommunityOut, status_code=status.HTTP_201_CREATED)
def create_community(
    data: CommunityCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return community_service.create_community(db, data, current_user)


@router.patch("", response_model=Page[CommunityOut])
def search_communities(data: CommunitySearchRequest, db: Session = Depends(get_db)):
    return community_service.search_communities(db, data)


@router.get("/{community_id}", response_model=CommunityOut)
def get_community(
    community_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    return community_service.get_community_with_meta(db, community_id, viewer)


@router.put("/{community_id}", response_model=CommunityOut)
def update_community(
    community_id: int,
    data: CommunityUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return community_service.update_community(db, community_id, data, current_user)


@router.delete("/{community_id}", response_model=CommunityOut)
def delete_community(
    community_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return community_service.delete_community(db, community_id, current_user)


@router.post("/{community_id}/restore", response_model=CommunityOut)
def restore_community(
    community_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return community_service.restore_community(db, community_id, current_user)


@router.get("/{community_id}/moderators", response_model=List[ModeratorOut])
def list_moderators(community_id: int, db: Session = Depends(get_db)):
    return community_service.list_moderators(db, community_id)


@router.post("/{community_id}/moderators", response_model=ModeratorOut, status_code=status.HTTP_201_CREATED)
def assign_moderator(
    community_id: int,
    data: ModeratorAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return community_service.assign_moderator(db, community_id, data, current_user)


@router.delete("/{community_id}/moderators/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_moderator(
    community_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    community_service.remove_moderator(db, community_id, user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{community_id}/subscription", response_model=SubscriptionOut, status_code=status.HTTP_201_CREATED)
def subscribe(
    community_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return community_service.subscribe(db, community_id, current_user)


@router.delete("/{community_id}/subscription", status_code=status.HTTP_204_NO_CONTENT)
def unsubscribe(
    community_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    community_service.unsubscribe(db, community_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{community_id}/bans", response_model=BanOut, status_code=status.HTTP_201_CREATED)
def create_ban(
    community_id: int,
    data: BanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return moderation_service.create_ban(db, community_id, data, current_user)


@router.patch("/{community_id}/bans", response_model=Page[BanOut])
def search_bans(
    community_id: int,
    data: BanSearchRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return moderation_service.search_bans(db, community_id, data, current_user)


@router.get("/{community_id}/bans/{ban_id}", response_model=BanOut)
def get_ban(
    community_id: int,
    ban_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return moderation_service.get_ban(db, community_id, ban_id, current_user)


@router.put("/{community_id}/bans/{ban_id}", response_model=BanOut)
def update_ban(
    community_id: int,
    ban_id: int,
    data: BanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return moderation_service.update_ban(db, community_id, ban_id, data, current_user)


@router.delete("/{community_id}/bans/{ban_id}", response_model=BanOut)
def lift_ban(
    community_id: int,
    ban_id: int,
    data: Optional[BanLift] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return moderation_service.lift_ban(db, community_id, ban_id, data or BanLift(), current_user)


@router.patch("/{community_id}/moderation-logs", response_model=Page[ModerationLogOut])
def search_moderation_logs(
    community_id: int,
    data: ModerationLogSearchRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return audit_service.search_logs(db, community_id, data, current_user)


@router.patch("/{community_id}/reports", response_model=Page[ReportOut])
def search_reports(
    community_id: int,
    data: ReportSearchRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.search_reports(db, community_id, data, current_user)


@router.get("/{community_id}/reports/{report_id}", response_model=ReportOut)
def get_report(
    community_id: int,
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.get_report(db, community_id, report_id, current_user)


@router.put("/{community_id}/reports/{report_id}", response_model=ReportOut)
def resolve_report(
    community_id: int,
    report_id: int,
    data: ReportResolve,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.resolve_report(db, community_id, report_id, data, current_user)


@router.post("/{community_id}/posts", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_post(
    community_id: int,
    data: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return post_service.create_post(db, community_id, data, current_user)


@router.patch("/{community_id}/posts", response_model=Page[PostOut])
def search_community_posts(
    community_id: int,
    data: PostSearchRequest,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    community_service.get_active_community(db, community_id)
    data = data.model_copy(update={"community_id": community_id})
    return post_service.search_posts(db, data, viewer)
