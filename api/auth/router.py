"""
Login/logout endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from sessions.dependencies import get_session, get_session_store
from sessions.models import Session
from sessions.store import SessionStore

from . import schemas, service

router = APIRouter(prefix="/api")


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    request: Request,
    session: Session = Depends(get_session),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    user_row, fresh = await service.login(payload, session=session, store=store)
    request.state.session = fresh
    return {
        "statusCode": 200,
        "data": {
            "username": user_row["username"],
            "session": {
                "id": fresh.session_id,
                "expiresAt": store.expires_at(fresh),
            },
        },
    }


@router.post("/logout")
async def logout(
    request: Request,
    session: Session = Depends(get_session),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    await service.logout(session=session, store=store)
    request.state.session = None
    return {"statusCode": 200, "data": {"loggedOut": True}}
