from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from agora.database import get_db
from agora.errors import Forbidden, InvalidToken
from agora.models.session import AuthSession
from agora.models.user import User
from agora.services import auth_service

security = HTTPBearer(auto_error=False)


def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> AuthSession:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidToken("Not authenticated")
    return auth_service.resolve_access_token(db, credentials.credentials)


def get_current_user(auth_session: AuthSession = Depends(get_current_session)) -> User:
    return auth_session.user


def require_roles(*roles: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden(f"Requires role: {', '.join(roles)}")
        return current_user
    return checker


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
):
    if credentials is None:
        return None
    try:
        return auth_service.resolve_access_token(db, credentials.credentials).user
    except InvalidToken:
        return None
