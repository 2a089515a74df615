"""soft-delete/restore 상태 전이 공용 헬퍼입니다.

active → deleted → active(restore) 또는 active → deleted(terminal).
id, 작성자, created_at은 어떤 전이에서도 바뀌지 않습니다.
"""

from datetime import datetime
from typing import Optional

from agora.errors import DomainRuleViolation
from agora.utils.helpers import utcnow


def is_deleted(resource) -> bool:
    return getattr(resource, "deleted_at", None) is not None


def soft_delete(resource, actor_id: int, *, content_field: str | None = None, placeholder: str | None = None,
                now: Optional[datetime] = None) -> bool:
    """삭제 표시를 남깁니다. 이미 삭제된 리소스면 아무것도 바꾸지 않고 False를 반환합니다."""
    if is_deleted(resource):
        return False
    resource.deleted_at = now or utcnow()
    if hasattr(resource, "deleted_by"):
        resource.deleted_by = actor_id
    if content_field and placeholder is not None:
        setattr(resource, content_field, placeholder)
    return True


def restore(resource) -> None:
    if not is_deleted(resource):
        raise DomainRuleViolation("삭제되지 않은 항목은 복원할 수 없습니다.")
    resource.deleted_at = None
    if hasattr(resource, "deleted_by"):
        resource.deleted_by = None
