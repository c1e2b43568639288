"""
User API endpoints.

`/users/@me...` routes are declared before `/users/{username}` so the literal
path wins.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from auth import dependencies as auth_dependencies
from auth import service as auth_service
from core.config import Settings, get_settings
from core.snowflake import Snowflake, get_snowflake
from sessions.dependencies import get_session, get_session_store
from sessions.models import Session
from sessions.store import SessionStore

from . import schemas, service

router = APIRouter(prefix="/api")


@router.put("/users", status_code=201)
async def create_user(
    payload: schemas.CreateUserRequest,
    ids: Snowflake = Depends(get_snowflake),
) -> dict:
    await service.create_user(payload, ids=ids)
    return {"statusCode": 201}


@router.get("/users/@me")
async def get_self(
    session: Session = Depends(get_session),
    store: SessionStore = Depends(get_session_store),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return {
        "statusCode": 200,
        "data": service.self_profile(current_user, session=session, store=store),
    }


@router.patch("/users/@me")
async def update_self(
    payload: schemas.UpdateSelfRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    await service.update_self(current_user, payload.data)
    return {"statusCode": 200, "data": {"updated": True}}


@router.delete("/users/@me", status_code=204)
async def delete_self(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> Response:
    await service.delete_self(current_user, store=store)
    request.state.session = None
    return Response(status_code=204)


@router.get("/users/@me/jwt")
async def get_jwt(
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    token = await auth_service.current_token(current_user, settings)
    return {"statusCode": 200, "data": {"token": token}}


@router.post("/users/@me/jwt/generate")
async def generate_jwt(
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    token = await auth_service.generate_token(current_user, settings)
    return {"statusCode": 200, "data": {"token": token}}


@router.get("/users/{username}")
async def get_user(username: str) -> dict:
    user_row = await service.get_user(username)
    return {"statusCode": 200, "data": service.public_profile(user_row)}
