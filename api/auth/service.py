"""
Auth business logic: login/logout on sessions and the cached-JWT policy.

JWT read policy (`current_token`):
- no cached token      -> issue, persist, return
- cached, valid        -> return as-is
- cached, expired      -> issue, persist, return the new one
- cached, invalid      -> 401 with the validator's reason
- cached, undecodable  -> 401 with a generic message (details go to logs)

Persistence is compare-and-set against the value that was read, so concurrent
rotations converge on a single stored token.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from core.config import Settings
from core.errors import ConfigurationMissing, InvalidToken, TokenDecodeFailure
from sessions.models import Session
from sessions.store import SessionStore
from users import repository as users_repository

from . import repository, schemas, security, tokens

logger = logging.getLogger(__name__)

SALT_MISSING_MESSAGE = "Administrators hasn't set a salt token, please contact them!"


def require_salt(settings: Settings) -> str:
    if not settings.salt:
        raise ConfigurationMissing(SALT_MISSING_MESSAGE, detail="JWT_SALT is not configured.")
    return settings.salt


async def login(
    payload: schemas.LoginRequest,
    *,
    session: Session,
    store: SessionStore,
) -> tuple[dict, Session]:
    user_row = await users_repository.get_user_by_username(payload.username.strip())
    is_valid = user_row is not None and security.verify_password(
        payload.password,
        str(user_row.get("password") or ""),
    )
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )

    fresh = await store.rotate(session, user_id=str(user_row["id"]))
    logger.info("login user_id=%s device=%s", user_row["id"], fresh.device)
    return user_row, fresh


async def logout(*, session: Session, store: SessionStore) -> None:
    await store.delete(session.session_id)
    logger.info("logout user_id=%s", session.user_id)


async def _issue_and_store(user_row: dict, *, salt: str, expected: str | None, expires_in: int) -> str:
    user_id = str(user_row["id"])
    token = tokens.issue(
        str(user_row["username"]),
        str(user_row["password"]),
        salt,
        expires_in=expires_in,
    )
    if await repository.compare_and_set_jwt(user_id=user_id, expected=expected, token=token):
        logger.info("jwt_issued user_id=%s", user_id)
        return token

    # Another request rotated first; its token is the one that counts.
    exists, winner = await repository.get_jwt(user_id)
    if not exists or winner is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer exists.",
        )
    logger.info("jwt_rotation_superseded user_id=%s", user_id)
    return winner


async def current_token(user_row: dict, settings: Settings) -> str:
    salt = require_salt(settings)
    cached = user_row.get("jwt")
    if not cached:
        return await _issue_and_store(
            user_row,
            salt=salt,
            expected=cached,
            expires_in=settings.jwt_expire_seconds,
        )

    decoded = tokens.decode(cached, salt)
    if decoded.status is tokens.TokenStatus.VALID:
        if decoded.subject != user_row["username"] or not tokens.matches_password(
            decoded,
            str(user_row["password"]),
            salt,
        ):
            raise InvalidToken("Token no longer matches this account, generate a new one.")
        return cached

    if decoded.status is tokens.TokenStatus.EXPIRED:
        return await _issue_and_store(
            user_row,
            salt=salt,
            expected=cached,
            expires_in=settings.jwt_expire_seconds,
        )

    if decoded.status is tokens.TokenStatus.INVALID:
        logger.warning("jwt_invalid user_id=%s reason=%s", user_row["id"], decoded.reason)
        raise InvalidToken(decoded.reason or InvalidToken.message)

    logger.warning("jwt_undecodable user_id=%s reason=%s", user_row["id"], decoded.reason)
    raise TokenDecodeFailure(detail=decoded.reason)


async def generate_token(user_row: dict, settings: Settings) -> str:
    salt = require_salt(settings)
    return await _issue_and_store(
        user_row,
        salt=salt,
        expected=user_row.get("jwt"),
        expires_in=settings.jwt_expire_seconds,
    )
