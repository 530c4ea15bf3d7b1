"""Cache entry data model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """A cached JSON value and its lifetime.

    Attributes:
        key: Cache key, e.g. ``eodhd/div/ASML.AS``.
        data: JSON-serializable payload.
        created_at: When the entry was written (UTC).
        expires_at: ``created_at + ttl``; None for a permanent entry.
    """

    key: str
    data: Any
    created_at: datetime
    expires_at: datetime | None = None

    @classmethod
    def create(cls, key: str, data: Any, ttl_seconds: int | None) -> CacheEntry:
        now = datetime.now(timezone.utc)
        expires = now + timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        return cls(key=key, data=data, created_at=now, expires_at=expires)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) > self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "_id": self.key,
            "data": self.data,
            "createdAt": self.created_at.isoformat(),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any], key: str | None = None) -> CacheEntry:
        expires = raw.get("expiresAt")
        created = raw.get("createdAt")
        return cls(
            key=key or raw.get("_id", ""),
            data=raw.get("data"),
            created_at=_parse_ts(created) if created else datetime.now(timezone.utc),
            expires_at=_parse_ts(expires) if expires else None,
        )


def _parse_ts(raw: str | datetime) -> datetime:
    ts = raw if isinstance(raw, datetime) else datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts
