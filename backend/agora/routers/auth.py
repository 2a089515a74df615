"""Auth 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session
from typing import List
from agora.database import get_db
from agora.schemas.common import MessageOut
from agora.schemas.user import (
    AuthorizedOut,
    LoginRequest,
    PasswordChangeRequest,
    RefreshRequest,
    SessionOut,
    UserJoinRequest,
    UserOut,
)
from agora.services import auth_service
from agora.services.auth_service import ClientInfo
from agora.middleware.auth_middleware import get_current_session, get_current_user
from agora.models.session import AuthSession
from agora.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )


@router.post("/{role}/join", response_model=AuthorizedOut, status_code=status.HTTP_201_CREATED)
def join(role: str, data: UserJoinRequest, request: Request, db: Session = Depends(get_db)):
    return auth_service.register(db, role, data, _client_info(request)).to_response()


@router.post("/{role}/login", response_model=AuthorizedOut)
def login(role: str, data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    return auth_service.login(db, role, data, _client_info(request)).to_response()


@router.post("/refresh", response_model=AuthorizedOut)
def refresh(data: RefreshRequest, db: Session = Depends(get_db)):
    return auth_service.refresh(db, data.refresh_token).to_response()


@router.post("/logout", response_model=MessageOut)
def logout(auth_session: AuthSession = Depends(get_current_session), db: Session = Depends(get_db)):
    auth_service.logout(db, auth_session)
    return {"message": "로그아웃 되었습니다."}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/password", response_model=MessageOut)
def change_password(
    data: PasswordChangeRequest,
    auth_session: AuthSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    auth_service.change_password(db, auth_session.user, auth_session, data)
    return {"message": "비밀번호가 변경되었습니다."}


@router.get("/sessions", response_model=List[SessionOut])
def list_sessions(auth_session: AuthSession = Depends(get_current_session), db: Session = Depends(get_db)):
    return auth_service.list_sessions(db, auth_session.user, auth_session.session_id)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    auth_service.revoke_session(db, current_user, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
