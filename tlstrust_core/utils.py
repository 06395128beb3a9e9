"""
tlstrust_core.utils
-------------------
Clock and timestamp helpers. All persisted timestamps are RFC3339 / ISO 8601
UTC strings with second precision, so they order lexicographically in SQL.
"""

from __future__ import annotations
import hashlib
from datetime import datetime, timezone
from typing import Optional

TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_ts(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(TS_FORMAT)


def from_ts(s: Optional[str]) -> Optional[datetime]:
    if not s:
        return None
    return datetime.strptime(s, TS_FORMAT).replace(tzinfo=timezone.utc)


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")
