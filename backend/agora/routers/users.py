"""Users 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agora.database import get_db
from agora.middleware.auth_middleware import get_current_user, require_roles
from agora.models.user import User
from agora.schemas.common import Page, PageRequest
from agora.schemas.community import SubscriptionOut
from agora.schemas.user import UserOut, UserProfileUpdate, UserPublicOut, UserSearchRequest
from agora.services import community_service, user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.patch("", response_model=Page[UserOut])
def search_users(
    data: UserSearchRequest,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_roles("admin")),
):
    return user_service.search_users(db, data)


@router.put("/me", response_model=UserOut)
def update_me(
    data: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.update_profile(db, current_user, data)


@router.patch("/me/subscriptions", response_model=Page[SubscriptionOut])
def list_my_subscriptions(
    data: PageRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return community_service.list_subscriptions(db, current_user, data)


@router.get("/{user_id}", response_model=UserPublicOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return user_service.get_user(db, user_id)


@router.post("/{user_id}/deactivate", response_model=UserOut)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin")),
):
    return user_service.deactivate_user(db, user_id, current_user)


@router.post("/{user_id}/activate", response_model=UserOut)
def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin")),
):
    return user_service.activate_user(db, user_id, current_user)
