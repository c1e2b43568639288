"""
User persistence helpers (raw SQL).
"""

from __future__ import annotations

from typing import Any

import asyncpg

from core import db
from core.errors import UniquenessViolation

_USER_COLUMNS = """
    id, username, email, password, jwt, contributor, translator,
    description, github, projects, organisations, created_at
"""

# Columns a caller may change through update_user().
UPDATABLE_COLUMNS = (
    "username",
    "email",
    "password",
    "jwt",
    "contributor",
    "translator",
    "description",
)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _uniqueness_error(exc: asyncpg.UniqueViolationError, values: dict[str, Any]) -> UniquenessViolation:
    constraint = (getattr(exc, "constraint_name", None) or "").lower()
    field = "email" if "email" in constraint else "username"
    return UniquenessViolation(field, str(values.get(field, "")))


async def get_user_by_username(username: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE username = $1
        """,
        username,
    )


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def create_user(*, user_id: str, username: str, email: str, password_hash: str) -> dict:
    values = {"username": username, "email": normalize_email(email)}
    try:
        row = await db.fetch_one(
            f"""
            INSERT INTO users (id, username, email, password)
            VALUES ($1, $2, $3, $4)
            RETURNING {_USER_COLUMNS}
            """,
            user_id,
            username,
            values["email"],
            password_hash,
        )
    except asyncpg.UniqueViolationError as exc:
        raise _uniqueness_error(exc, values) from exc
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def update_user(user_id: str, values: dict[str, Any]) -> dict | None:
    unknown = set(values) - set(UPDATABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Columns cannot be updated: {sorted(unknown)}")
    if not values:
        return await get_user_by_id(user_id)

    columns = list(values)
    assignments = ", ".join(f"{column} = ${index}" for index, column in enumerate(columns, start=2))
    try:
        return await db.fetch_one(
            f"""
            UPDATE users
            SET {assignments}
            WHERE id = $1
            RETURNING {_USER_COLUMNS}
            """,
            user_id,
            *(values[column] for column in columns),
        )
    except asyncpg.UniqueViolationError as exc:
        raise _uniqueness_error(exc, values) from exc


async def delete_user(user_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM users
        WHERE id = $1
        RETURNING id
        """,
        user_id,
    )
    return row is not None
