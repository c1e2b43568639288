"""
Diagnostic session endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from .dependencies import get_session_store
from .store import SessionStore

router = APIRouter()


@router.get("/sessions/{session_id}")
async def get_session_info(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> dict:
    session = await store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session ID `{session_id}` doesn't exist")
    return session.to_public()
