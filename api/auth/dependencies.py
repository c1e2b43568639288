"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from sessions.dependencies import get_session, get_session_store
from sessions.models import Session
from sessions.store import SessionStore
from users import repository as users_repository

LOGIN_REQUIRED = "You must be logged in to access this resource."


async def get_current_user(
    request: Request,
    session: Session = Depends(get_session),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    if not session.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_REQUIRED)

    user_row = await users_repository.get_user_by_id(session.user_id)
    if user_row is None:
        # Account is gone: the session must not be used again.
        await store.delete(session.session_id)
        request.state.session = None
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_REQUIRED)
    return user_row
