import hashlib
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    # DB 컬럼은 naive UTC로 저장한다.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_session_id() -> str:
    return uuid.uuid4().hex


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def normalize_keyword(value: str | None) -> str | None:
    keyword = (value or "").strip()
    return keyword or None


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
