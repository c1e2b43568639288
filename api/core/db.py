"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every round-trip is bounded by the request deadline (see `deadline()`), and
connectivity failures surface as `StoreUnavailable`. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

# Monotonic timestamp after which no new query may start for this request.
_deadline: ContextVar[float | None] = ContextVar("db_deadline", default=None)

_CONNECTIVITY_ERRORS: tuple[type[BaseException], ...] = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.InterfaceError,
    asyncpg.PostgresConnectionError,
    asyncpg.CannotConnectNowError,
    asyncpg.TooManyConnectionsError,
)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url(raw: str) -> str:
    url = (raw or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool(
    *,
    dsn: str,
    min_size: int = 1,
    max_size: int = 5,
    command_timeout: float = 30.0,
) -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(dsn),
        min_size=min_size,
        max_size=max_size,
        command_timeout=command_timeout,
    )
    logger.info("db_pool_ready min_size=%s max_size=%s", min_size, max_size)


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


@contextmanager
def deadline(seconds: float) -> Iterator[None]:
    """
    Bound every query issued inside this context to `seconds` in total.
    """
    token = _deadline.set(time.monotonic() + seconds)
    try:
        yield
    finally:
        _deadline.reset(token)


def _remaining_timeout() -> float | None:
    expires_at = _deadline.get()
    if expires_at is None:
        return None
    remaining = expires_at - time.monotonic()
    if remaining <= 0:
        raise StoreUnavailable(detail="Request deadline exceeded before the query was sent.")
    return remaining


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    timeout = _remaining_timeout()
    try:
        row = await pool().fetchrow(sql, *args, timeout=timeout)
    except _CONNECTIVITY_ERRORS as exc:
        raise StoreUnavailable(detail=f"{type(exc).__name__}: {exc}") from exc
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    timeout = _remaining_timeout()
    try:
        rows = await pool().fetch(sql, *args, timeout=timeout)
    except _CONNECTIVITY_ERRORS as exc:
        raise StoreUnavailable(detail=f"{type(exc).__name__}: {exc}") from exc
    return [_record_to_dict(r) for r in rows]


async def execute(sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    timeout = _remaining_timeout()
    try:
        await pool().execute(sql, *args, timeout=timeout)
    except _CONNECTIVITY_ERRORS as exc:
        raise StoreUnavailable(detail=f"{type(exc).__name__}: {exc}") from exc


async def ping() -> bool:
    if _pool is None:
        return False
    try:
        row = await fetch_one("SELECT 1 AS ok")
    except StoreUnavailable:
        logger.warning("db_ping_failed")
        return False
    return row is not None
