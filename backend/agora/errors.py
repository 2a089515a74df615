"""도메인 오류 분류와 JSON 오류 응답 핸들러를 정의합니다.

서비스 레이어는 아래 예외를 그대로 raise 하고, 응답 본문은
``{"detail": ..., "code": ...}`` 형태로 직렬화됩니다.
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse


class AgoraError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    default_detail = "요청을 처리할 수 없습니다."

    def __init__(self, detail: str | None = None, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationFailed(AgoraError):
    status_code = 422
    code = "validation_error"
    default_detail = "입력값이 올바르지 않습니다."


class InvalidCredentials(AgoraError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    default_detail = "이메일 또는 비밀번호가 올바르지 않습니다."


class InvalidToken(AgoraError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_token"
    default_detail = "Invalid or expired token"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AccountLocked(AgoraError):
    status_code = status.HTTP_423_LOCKED
    code = "account_locked"
    default_detail = "로그인 실패가 반복되어 계정이 일시적으로 잠겼습니다."


class Forbidden(AgoraError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "권한이 없습니다."


class NotFound(AgoraError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "대상을 찾을 수 없습니다."


class DuplicateIdentity(AgoraError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_identity"
    default_detail = "이미 사용 중인 계정 정보입니다."


class DuplicateAction(AgoraError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_action"
    default_detail = "이미 처리된 요청입니다."


class DomainRuleViolation(AgoraError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_rule_violation"
    default_detail = "허용되지 않는 작업입니다."


def setup_exception_handlers(app: FastAPI):
    @app.exception_handler(AgoraError)
    async def agora_error_handler(request: Request, exc: AgoraError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": exc.code},
            headers=exc.headers,
        )
