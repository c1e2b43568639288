"""
User account business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException

from auth import security
from core.errors import UniquenessViolation
from core.snowflake import Snowflake
from sessions.models import Session
from sessions.store import SessionStore

from . import repository, schemas

logger = logging.getLogger(__name__)

_FLAG_FIELDS = ("contributor", "translator")
_MAX_USERNAME_LENGTH = 64
_MAX_DESCRIPTION_LENGTH = 500


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _not_acceptable(message: str) -> HTTPException:
    return HTTPException(status_code=406, detail=message)


def _require_string(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise _not_acceptable(f'"{key}" must be a string (received {_type_name(value)})')
    return value


def public_profile(user_row: dict) -> dict:
    return {
        "id": str(user_row["id"]),
        "organisations": list(user_row.get("organisations") or []),
        "contributor": bool(user_row.get("contributor")),
        "translator": bool(user_row.get("translator")),
        "username": str(user_row["username"]),
        "projects": list(user_row.get("projects") or []),
        "description": str(user_row.get("description") or ""),
        "github": user_row.get("github") or "none",
        "email": str(user_row["email"]),
    }


def self_profile(user_row: dict, *, session: Session, store: SessionStore) -> dict:
    profile = public_profile(user_row)
    profile["session"] = {
        "id": session.session_id,
        "expiresAt": store.expires_at(session),
    }
    return profile


async def get_user(username: str) -> dict:
    user_row = await repository.get_user_by_username(username)
    if user_row is None:
        raise HTTPException(status_code=404, detail=f'User with username "{username}" was not found')
    return user_row


async def create_user(payload: schemas.CreateUserRequest, *, ids: Snowflake) -> dict:
    username = payload.username.strip()
    email = repository.normalize_email(payload.email)
    if not username:
        raise _not_acceptable('"username" must not be blank')

    if await repository.get_user_by_username(username) is not None:
        raise UniquenessViolation("username", username, f'User with username "{username}" already exists')
    if await repository.get_user_by_email(email) is not None:
        raise UniquenessViolation("email", email, f'User with email "{email}" already exists')

    user_row = await repository.create_user(
        user_id=ids.generate(),
        username=username,
        email=email,
        password_hash=security.hash_password(payload.password),
    )
    logger.info("user_created user_id=%s", user_row["id"])
    return user_row


async def update_self(user_row: dict, data: dict[str, Any]) -> dict:
    values: dict[str, Any] = {}

    unknown = sorted(set(data) - {*_FLAG_FIELDS, "username", "email", "password", "description"})
    if unknown:
        raise _not_acceptable(f'"{unknown[0]}" cannot be updated')

    for flag in _FLAG_FIELDS:
        if flag in data:
            value = data[flag]
            if not isinstance(value, bool):
                raise _not_acceptable(f'"{flag}" must be a boolean (received {_type_name(value)})')
            values[flag] = value

    if "username" in data:
        username = _require_string(data, "username").strip()
        if not username or len(username) > _MAX_USERNAME_LENGTH:
            raise _not_acceptable(f'"username" must be 1-{_MAX_USERNAME_LENGTH} characters long')
        if username != user_row["username"]:
            if await repository.get_user_by_username(username) is not None:
                raise UniquenessViolation("username", username)
            values["username"] = username
            values["jwt"] = None

    if "email" in data:
        email = repository.normalize_email(_require_string(data, "email"))
        if len(email) < 3:
            raise _not_acceptable('"email" is not a valid email address')
        if email != repository.normalize_email(str(user_row["email"])):
            if await repository.get_user_by_email(email) is not None:
                raise UniquenessViolation("email", email)
            values["email"] = email

    if "password" in data:
        password = _require_string(data, "password")
        values["password"] = security.hash_password(password)
        values["jwt"] = None

    if "description" in data:
        description = _require_string(data, "description")
        if len(description) > _MAX_DESCRIPTION_LENGTH:
            raise _not_acceptable(f'"description" must be at most {_MAX_DESCRIPTION_LENGTH} characters long')
        values["description"] = description

    updated = await repository.update_user(str(user_row["id"]), values)
    if updated is None:
        raise HTTPException(status_code=404, detail="User no longer exists.")
    if values:
        logger.info("user_updated user_id=%s fields=%s", user_row["id"], ",".join(sorted(values)))
    return updated


async def delete_self(user_row: dict, *, store: SessionStore) -> None:
    user_id = str(user_row["id"])
    await repository.delete_user(user_id)
    await store.delete_for_user(user_id)
    logger.info("user_deleted user_id=%s", user_id)
