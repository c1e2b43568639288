"""
Session gate: attaches a live session to every request under `path`.

Inbound:
1) verify the `current-session` cookie signature
2) resolve the session (expired sessions are deleted by the store)
3) otherwise create a new anonymous session

Outbound:
- `request.state.session is None` (logout, account deletion) -> clear cookie
- session id differs from the one the request arrived with   -> set cookie
- anything else                                              -> no header
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.errors import StoreUnavailable, error_response

from .models import Session
from .signer import COOKIE_NAME, CookieSigner
from .store import SessionStore

logger = logging.getLogger(__name__)


def request_device(request: Request) -> str:
    user_agent = (request.headers.get("user-agent") or "").strip()
    if user_agent:
        return user_agent
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


def is_secure(request: Request) -> bool:
    if request.url.scheme == "https":
        return True
    forwarded = (request.headers.get("x-forwarded-proto") or "").split(",")[0].strip().lower()
    return forwarded == "https"


class SessionMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        store: SessionStore,
        signer: CookieSigner,
        path: str = "/",
    ) -> None:
        super().__init__(app)
        self.store = store
        self.signer = signer
        self.path = path or "/"

    def covers(self, path: str) -> bool:
        """
        Match on segment boundaries, like the cookie `Path` attribute.
        """
        prefix = self.path.rstrip("/")
        return not prefix or path == prefix or path.startswith(prefix + "/")

    async def _resolve(self, request: Request, incoming_id: str | None) -> Session:
        if incoming_id is not None:
            session = await self.store.get(incoming_id)
            if session is not None:
                return session
        return await self.store.create(device=request_device(request))

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Any]]):
        if not self.covers(request.url.path):
            return await call_next(request)

        incoming_id = self.signer.unsign(request.cookies.get(COOKIE_NAME))
        try:
            session = await self._resolve(request, incoming_id)
        except StoreUnavailable as exc:
            logger.error(
                "session_resolve_failed method=%s path=%s detail=%s",
                request.method,
                request.url.path,
                exc.detail or exc.message,
            )
            return error_response(exc)

        request.state.session = session
        response = await call_next(request)

        outgoing: Session | None = getattr(request.state, "session", None)
        if outgoing is None:
            response.delete_cookie(COOKIE_NAME, path=self.path, httponly=True, samesite="lax")
        elif outgoing.session_id != incoming_id:
            response.set_cookie(
                COOKIE_NAME,
                self.signer.sign(outgoing.session_id),
                max_age=self.store.ttl_ms // 1000,
                path=self.path,
                httponly=True,
                samesite="lax",
                secure=is_secure(request),
            )
        return response
