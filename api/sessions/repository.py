"""
Session persistence (raw SQL).
"""

from __future__ import annotations

from core import db


async def insert_session(
    *,
    session_id: str,
    started_at: int,
    device: str,
    user_id: str | None = None,
) -> dict | None:
    """
    Insert-if-absent. Returns None when the id already exists.
    """
    return await db.fetch_one(
        """
        INSERT INTO sessions (session_id, started_at, device, user_id)
        VALUES ($1, $2, $3, $4)
        ON CONFLICT (session_id) DO NOTHING
        RETURNING session_id, started_at, device, user_id
        """,
        session_id,
        started_at,
        device,
        user_id,
    )


async def get_session(session_id: str) -> dict | None:
    return await db.fetch_one(
        """
        SELECT session_id, started_at, device, user_id
        FROM sessions
        WHERE session_id = $1
        """,
        session_id,
    )


async def delete_session(session_id: str) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM sessions
        WHERE session_id = $1
        RETURNING session_id
        """,
        session_id,
    )
    return row is not None


async def delete_sessions_for_user(user_id: str) -> int:
    rows = await db.fetch_all(
        """
        DELETE FROM sessions
        WHERE user_id = $1
        RETURNING session_id
        """,
        user_id,
    )
    return len(rows)


async def delete_sessions_started_before(cutoff_ms: int) -> int:
    rows = await db.fetch_all(
        """
        DELETE FROM sessions
        WHERE started_at <= $1
        RETURNING session_id
        """,
        cutoff_ms,
    )
    return len(rows)
