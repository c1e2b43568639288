"""
Server-side session store.

Lifecycle:
- created on the first request without a valid cookie (anonymous)
- rotated to a fresh id when a user logs in
- destroyed on logout, when read after expiry, or by the periodic sweep

An expired session is never returned: `get` deletes it and answers None, so
the caller falls back to a brand-new anonymous session.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Callable

from core.config import DEFAULT_SESSION_TTL_MS
from core.errors import StoreUnavailable

from . import repository
from .models import Session, now_ms

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 3
_MAX_DEVICE_LENGTH = 255


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore:
    def __init__(
        self,
        *,
        ttl_ms: int = DEFAULT_SESSION_TTL_MS,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_session_id,
    ) -> None:
        if ttl_ms <= 0:
            raise ValueError("Session TTL must be positive.")
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._id_factory = id_factory

    async def get(self, session_id: str) -> Session | None:
        row = await repository.get_session(session_id)
        if row is None:
            return None

        session = Session.from_row(row)
        if session.is_expired(self.ttl_ms, now=self._clock()):
            await repository.delete_session(session.session_id)
            logger.info("session_expired user_id=%s started_at=%s", session.user_id, session.started_at)
            return None
        return session

    async def create(self, *, device: str, user_id: str | None = None) -> Session:
        device = (device or "unknown")[:_MAX_DEVICE_LENGTH]
        for _ in range(_MAX_ID_ATTEMPTS):
            row = await repository.insert_session(
                session_id=self._id_factory(),
                started_at=self._clock(),
                device=device,
                user_id=user_id,
            )
            if row is not None:
                return Session.from_row(row)
            logger.warning("session_id_collision device=%s", device)
        raise RuntimeError("Could not allocate a unique session id.")

    async def delete(self, session_id: str) -> None:
        await repository.delete_session(session_id)

    async def delete_for_user(self, user_id: str) -> int:
        return await repository.delete_sessions_for_user(user_id)

    async def rotate(self, session: Session, *, user_id: str | None) -> Session:
        """
        Replace `session` with a new id bound to `user_id`.
        """
        fresh = await self.create(device=session.device, user_id=user_id)
        await repository.delete_session(session.session_id)
        return fresh

    async def sweep(self) -> int:
        removed = await repository.delete_sessions_started_before(self._clock() - self.ttl_ms)
        if removed:
            logger.info("session_sweep removed=%s", removed)
        return removed

    def expires_at(self, session: Session) -> int:
        return session.expires_at(self.ttl_ms)


async def run_sweeper(store: SessionStore, interval_s: float) -> None:
    """
    Periodically delete expired sessions until cancelled.
    """
    while True:
        await asyncio.sleep(interval_s)
        try:
            await store.sweep()
        except StoreUnavailable as exc:
            logger.warning("session_sweep_failed detail=%s", exc.detail or exc.message)
