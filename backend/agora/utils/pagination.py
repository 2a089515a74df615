"""목록 조회 요청을 정규화하고 공통 페이지 envelope을 구성하는 헬퍼입니다."""

import math
from typing import Any, Callable, Iterable, Mapping

from sqlalchemy.orm import Query

from agora.schemas.common import PageRequest

DEFAULT_SORT_FIELD = "created_at"


def page_count(records: int, limit: int) -> int:
    # 0건이면 0페이지
    return int(math.ceil(records / limit)) if records else 0


def resolve_sort_field(sort_by: str | None, allowed: Iterable[str], default: str = DEFAULT_SORT_FIELD) -> str:
    allowed_fields = set(allowed)
    if sort_by and sort_by in allowed_fields:
        return sort_by
    return default


def envelope(request: PageRequest, records: int, data: list) -> dict:
    return {
        "pagination": {
            "current": request.page,
            "limit": request.limit,
            "records": records,
            "pages": page_count(records, request.limit),
        },
        "data": data,
    }


def paginate(
    query: Query,
    request: PageRequest,
    sort_columns: Mapping[str, Any],
    tie_breaker: Any,
    serialize: Callable[[Any], Any] = lambda row: row,
) -> dict:
    """정렬 키를 화이트리스트로 해석한 뒤 한 페이지를 잘라 envelope으로 반환합니다.

    ``sort_columns``에 없는 정렬 키는 ``created_at``으로 대체됩니다.
    ``tie_breaker``는 동일 정렬 값 사이의 순서를 고정하는 PK 컬럼입니다.
    """
    field = resolve_sort_field(request.sort_by, sort_columns.keys())
    column = sort_columns[field]
    if request.order == "asc":
        ordering = (column.asc(), tie_breaker.asc())
    else:
        ordering = (column.desc(), tie_breaker.desc())

    records = query.order_by(None).count()
    rows = (
        query.order_by(*ordering)
        .offset((request.page - 1) * request.limit)
        .limit(request.limit)
        .all()
    )
    return envelope(request, records, [serialize(row) for row in rows])
