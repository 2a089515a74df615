"""Auth Service 도메인 서비스 레이어입니다. 가입/로그인/토큰 갱신/세션 폐기 흐름을 캡슐화합니다."""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora.config import settings
from agora.errors import (
    AccountLocked,
    DuplicateIdentity,
    Forbidden,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    ValidationFailed,
)
from agora.models.session import AuthSession
from agora.models.user import User
from agora.schemas.user import LoginRequest, PasswordChangeRequest, UserJoinRequest
from agora.utils.helpers import new_session_id, sha256_hex, utcnow
from agora.utils.permissions import ACCOUNT_ROLES, ADMIN

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"[0-9]")


@dataclass
class ClientInfo:
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


@dataclass
class Authorized:
    user: User
    session: AuthSession
    access: str
    refresh: str

    def to_response(self) -> dict:
        return {
            "user": self.user,
            "session_id": self.session.session_id,
            "token": {
                "access": self.access,
                "refresh": self.refresh,
                "token_type": "bearer",
                "expired_at": self.session.access_expires_at,
                "refreshable_until": self.session.refresh_expires_at,
            },
        }


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def validate_password_policy(password: str) -> None:
    if not (settings.PASSWORD_MIN_LENGTH <= len(password) <= settings.PASSWORD_MAX_LENGTH):
        raise ValidationFailed(
            f"비밀번호는 {settings.PASSWORD_MIN_LENGTH}~{settings.PASSWORD_MAX_LENGTH}자여야 합니다."
        )
    if not _LETTER.search(password) or not _DIGIT.search(password):
        raise ValidationFailed("비밀번호에는 영문자와 숫자가 각각 1자 이상 포함되어야 합니다.")


def _ensure_account_role(role: str) -> str:
    if role not in ACCOUNT_ROLES:
        raise NotFound("지원하지 않는 역할입니다.")
    return role


def _encode(payload: dict) -> str:
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise InvalidToken()
    if payload.get("type") != expected_type or not payload.get("sid") or not payload.get("sub"):
        raise InvalidToken("Invalid token payload")
    return payload


def _issue_tokens(user: User, auth_session: AuthSession, now: datetime) -> tuple[str, str]:
    access_expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    refresh_expire = now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    access = _encode({
        "sub": str(user.user_id),
        "role": user.role,
        "sid": auth_session.session_id,
        "type": ACCESS,
        "exp": access_expire,
    })
    refresh = _encode({
        "sub": str(user.user_id),
        "sid": auth_session.session_id,
        "type": REFRESH,
        "jti": uuid.uuid4().hex,
        "exp": refresh_expire,
    })
    auth_session.access_expires_at = access_expire
    auth_session.refresh_expires_at = refresh_expire
    auth_session.refresh_token_hash = sha256_hex(refresh)
    return access, refresh


def _open_session(db: Session, user: User, client: ClientInfo, now: datetime) -> Authorized:
    auth_session = AuthSession(
        session_id=new_session_id(),
        user_id=user.user_id,
        user_agent=(client.user_agent or "")[:300] or None,
        ip_address=client.ip_address,
        created_at=now,
    )
    access, refresh = _issue_tokens(user, auth_session, now)
    db.add(auth_session)
    return Authorized(user=user, session=auth_session, access=access, refresh=refresh)


def register(db: Session, role: str, data: UserJoinRequest, client: ClientInfo) -> Authorized:
    _ensure_account_role(role)
    email = str(data.email).lower()
    if role == ADMIN and not settings.ALLOW_ADMIN_SIGNUP:
        if db.query(User.user_id).filter(User.role == ADMIN).first():
            raise Forbidden("관리자 가입이 허용되지 않습니다.")

    duplicate = (
        db.query(User.user_id)
        .filter(User.role == role, or_(User.email == email, User.username == data.username))
        .first()
    )
    if duplicate:
        raise DuplicateIdentity()
    validate_password_policy(data.password)

    now = utcnow()
    user = User(
        role=role,
        username=data.username,
        email=email,
        password_hash=hash_password(data.password),
        display_name=data.display_name or data.username,
        is_active=True,
        failed_login_attempts=0,
        last_login_at=now,
        created_at=now,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise DuplicateIdentity()
    authorized = _open_session(db, user, client, now)
    db.commit()
    db.refresh(user)
    logger.info("registered %s user_id=%s", role, user.user_id)
    return authorized


def _record_failed_login(db: Session, user: User, now: datetime) -> None:
    """실패 횟수를 SQL 식으로 누적하고, 한도에 닿으면 잠금을 겁니다."""
    window = timedelta(minutes=settings.LOGIN_LOCK_MINUTES)
    scope = db.query(User).filter(User.user_id == user.user_id)
    # 잠금 창을 벗어난 실패나 이미 풀린 잠금은 새로 센다
    scope.filter(or_(
        User.last_failed_login_at.is_(None),
        User.last_failed_login_at < now - window,
        User.locked_until <= now,
    )).update({User.failed_login_attempts: 0, User.locked_until: None}, synchronize_session=False)
    scope.update(
        {
            User.failed_login_attempts: func.coalesce(User.failed_login_attempts, 0) + 1,
            User.last_failed_login_at: now,
        },
        synchronize_session=False,
    )
    locked = scope.filter(
        User.failed_login_attempts >= settings.LOGIN_MAX_FAILED_ATTEMPTS,
        User.locked_until.is_(None),
    ).update({User.locked_until: now + window}, synchronize_session=False)
    db.commit()
    if locked:
        logger.warning(
            "locked user_id=%s after %s failed logins until %s",
            user.user_id, user.failed_login_attempts, user.locked_until,
        )


def login(db: Session, role: str, data: LoginRequest, client: ClientInfo) -> Authorized:
    _ensure_account_role(role)
    email = str(data.email).lower()
    user = db.query(User).filter(User.role == role, User.email == email).first()
    if not user or not user.is_active:
        raise InvalidCredentials()

    now = utcnow()
    if user.locked_until is not None and user.locked_until > now:
        remaining = int((user.locked_until - now).total_seconds() // 60) + 1
        raise AccountLocked(f"로그인 실패가 반복되어 계정이 잠겼습니다. {remaining}분 후 다시 시도하세요.")

    if not verify_password(data.password, user.password_hash):
        _record_failed_login(db, user, now)
        logger.info("failed login user_id=%s attempts=%s", user.user_id, user.failed_login_attempts)
        raise InvalidCredentials()

    user.failed_login_attempts = 0
    user.last_failed_login_at = None
    user.locked_until = None
    user.last_login_at = now
    authorized = _open_session(db, user, client, now)
    db.commit()
    db.refresh(user)
    logger.info("login user_id=%s session=%s", user.user_id, authorized.session.session_id)
    return authorized


def _live_session(db: Session, session_id: str, now: datetime) -> AuthSession:
    auth_session = db.query(AuthSession).filter(AuthSession.session_id == session_id).first()
    if not auth_session or auth_session.revoked_at is not None:
        raise InvalidToken("Session has been revoked")
    if auth_session.refresh_expires_at <= now:
        raise InvalidToken("Session has expired")
    if not auth_session.user or not auth_session.user.is_active:
        raise InvalidToken("User not found or inactive")
    return auth_session


def refresh(db: Session, refresh_token: str) -> Authorized:
    payload = decode_token(refresh_token, REFRESH)
    now = utcnow()
    auth_session = _live_session(db, payload["sid"], now)
    if auth_session.refresh_token_hash != sha256_hex(refresh_token):
        # 이미 교체된 refresh 토큰
        logger.warning("stale refresh token presented for session=%s", auth_session.session_id)
        raise InvalidToken("Refresh token has already been used")
    user = auth_session.user
    access, new_refresh = _issue_tokens(user, auth_session, now)
    auth_session.last_refreshed_at = now
    db.commit()
    db.refresh(auth_session)
    return Authorized(user=user, session=auth_session, access=access, refresh=new_refresh)


def resolve_access_token(db: Session, token: str) -> AuthSession:
    payload = decode_token(token, ACCESS)
    auth_session = _live_session(db, payload["sid"], utcnow())
    if str(auth_session.user_id) != str(payload["sub"]):
        raise InvalidToken("Invalid token payload")
    return auth_session


def logout(db: Session, auth_session: AuthSession) -> None:
    if auth_session.revoked_at is None:
        auth_session.revoked_at = utcnow()
        db.commit()
    logger.info("logout user_id=%s session=%s", auth_session.user_id, auth_session.session_id)


def revoke_all_sessions(db: Session, user_id: int, keep_session_id: str | None = None) -> int:
    query = db.query(AuthSession).filter(
        AuthSession.user_id == user_id,
        AuthSession.revoked_at.is_(None),
    )
    if keep_session_id is not None:
        query = query.filter(AuthSession.session_id != keep_session_id)
    return query.update({"revoked_at": utcnow()}, synchronize_session=False)


def change_password(db: Session, user: User, auth_session: AuthSession, data: PasswordChangeRequest) -> int:
    if not verify_password(data.current_password, user.password_hash):
        raise InvalidCredentials("현재 비밀번호가 올바르지 않습니다.")
    validate_password_policy(data.new_password)
    user.password_hash = hash_password(data.new_password)
    user.password_changed_at = utcnow()
    revoked = revoke_all_sessions(db, user.user_id, keep_session_id=auth_session.session_id)
    db.commit()
    logger.info("password changed user_id=%s revoked_sessions=%s", user.user_id, revoked)
    return revoked


def list_sessions(db: Session, user: User, current_session_id: str) -> List[AuthSession]:
    rows = (
        db.query(AuthSession)
        .filter(
            AuthSession.user_id == user.user_id,
            AuthSession.revoked_at.is_(None),
            AuthSession.refresh_expires_at > utcnow(),
        )
        .order_by(AuthSession.created_at.desc())
        .all()
    )
    for row in rows:
        setattr(row, "is_current", row.session_id == current_session_id)
    return rows


def revoke_session(db: Session, user: User, session_id: str) -> None:
    auth_session = (
        db.query(AuthSession)
        .filter(AuthSession.session_id == session_id, AuthSession.user_id == user.user_id)
        .first()
    )
    if not auth_session or auth_session.revoked_at is not None:
        raise NotFound("세션을 찾을 수 없습니다.")
    auth_session.revoked_at = utcnow()
    db.commit()
    logger.info("revoked session=%s user_id=%s", session_id, user.user_id)
