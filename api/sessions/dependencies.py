"""
Session dependencies for FastAPI routes.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from .models import Session
from .store import SessionStore


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_session(request: Request) -> Session:
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No session is attached to this request.",
        )
    return session
