"""
Token persistence helpers.

The cached JWT lives in `users.jwt`; no token exists outside that column.
"""

from __future__ import annotations

from core import db


async def get_jwt(user_id: str) -> tuple[bool, str | None]:
    """
    Return (user_exists, cached_token).
    """
    row = await db.fetch_one(
        """
        SELECT jwt
        FROM users
        WHERE id = $1
        """,
        user_id,
    )
    if row is None:
        return False, None
    return True, row["jwt"]


async def compare_and_set_jwt(*, user_id: str, expected: str | None, token: str) -> bool:
    """
    Store `token` only if the cached value is still `expected`.

    Returns False when another request replaced the token first.
    """
    row = await db.fetch_one(
        """
        UPDATE users
        SET jwt = $3
        WHERE id = $1
          AND jwt IS NOT DISTINCT FROM $2
        RETURNING id
        """,
        user_id,
        expected,
        token,
    )
    return row is not None
