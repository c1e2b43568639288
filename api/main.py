from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from core import db
from core.config import DEFAULT_SESSION_SECRET, Settings, get_settings, load_settings
from core.errors import install_error_handlers
from core.log import configure_logging
from core.middleware import RequestContextMiddleware
from core.snowflake import Snowflake
from sessions import router as sessions_router
from sessions.middleware import SessionMiddleware
from sessions.signer import CookieSigner
from sessions.store import SessionStore, run_sweeper
from users import router as users_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    if settings.is_production and settings.session_secret == DEFAULT_SESSION_SECRET:
        raise RuntimeError("SESSION_SECRET must be set in production.")

    store = SessionStore(ttl_ms=settings.session_ttl_ms)
    signer = CookieSigner(settings.session_secret)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        # Initialize the DB pool once per process.
        await db.init_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min,
            max_size=settings.db_pool_max,
            command_timeout=settings.db_command_timeout_s,
        )
        sweeper: asyncio.Task | None = None
        try:
            await store.sweep()
            if settings.session_sweep_interval_s > 0:
                sweeper = asyncio.create_task(run_sweeper(store, settings.session_sweep_interval_s))
            if settings.salt is None:
                logger.warning("JWT_SALT is not set; JWT endpoints will answer with 500.")
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper
            await db.close_pool()

    app = FastAPI(title="monori", lifespan=lifespan)
    app.state.settings = settings
    app.state.sessions = store
    app.state.ids = Snowflake(worker_id=settings.snowflake_worker_id)

    # Last added runs first: CORS -> request context (deadline, access log) -> session gate.
    app.add_middleware(SessionMiddleware, store=store, signer=signer, path=settings.session_path)
    app.add_middleware(RequestContextMiddleware, timeout_s=settings.request_timeout_s)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(users_router.router, tags=["users"])
    app.include_router(sessions_router.router, tags=["sessions"])

    @app.get("/health")
    async def health() -> dict:
        return {"statusCode": 200, "data": {"database": await db.ping()}}

    @app.get("/")
    def root(current: Settings = Depends(get_settings)) -> dict:
        return {"statusCode": 200, "data": {"name": "monori", "env": current.env}}

    return app


app = create_app()
