"""서비스 레이어 패키지 초기화 모듈입니다."""

from agora.services import (
    audit_service,
    auth_service,
    community_service,
    moderation_service,
    post_service,
    report_service,
    vote_service,
    user_service,
)
