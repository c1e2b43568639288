"""
Session record.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Session:
    session_id: str
    started_at: int  # epoch milliseconds
    device: str
    user_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def expires_at(self, ttl_ms: int) -> int:
        return self.started_at + ttl_ms

    def is_expired(self, ttl_ms: int, *, now: int | None = None) -> bool:
        current = now_ms() if now is None else now
        return current >= self.expires_at(ttl_ms)

    def to_public(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at,
            "device": self.device,
            "user_id": self.user_id,
            "session_id": self.session_id,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Session":
        user_id = row.get("user_id")
        return cls(
            session_id=str(row["session_id"]),
            started_at=int(row["started_at"]),
            device=str(row.get("device") or ""),
            user_id=str(user_id) if user_id is not None else None,
        )
