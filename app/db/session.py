"""Database engine and session factory.

A single synchronous SQLAlchemy engine backs the API (the route handlers run
in FastAPI's threadpool). Local development falls back to SQLite when the
configured PostgreSQL instance is unreachable.
"""

from __future__ import annotations

import logging
import os
from time import perf_counter
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite:///./sakubun_local.db"
SLOW_QUERY_PREVIEW_CHARS = 200

# Populated by ``configure_database``.
engine: Engine
SessionLocal: sessionmaker


def _safe_url(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def _connect_args_for(url: str) -> dict[str, Any]:
    if make_url(url).drivername.startswith("sqlite"):
        # Sessions are created in the request thread but the engine is shared.
        return {"check_same_thread": False}
    return {}


def _sqlite_fallback_allowed() -> bool:
    if os.getenv("DISABLE_SQLITE_FALLBACK") == "1":
        return False
    return (settings.ENVIRONMENT or "").lower() in {"development", "local"}


def _log_slow_queries(target: Engine, threshold_ms: int) -> None:
    """Warn about statements slower than ``threshold_ms`` (0 disables)."""

    if threshold_ms <= 0:
        return

    @event.listens_for(target, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_started_at", []).append(perf_counter())

    @event.listens_for(target, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.get("query_started_at")
        if not started:
            return
        elapsed_ms = (perf_counter() - started.pop()) * 1000.0
        if elapsed_ms >= threshold_ms:
            preview = " ".join(str(statement).split())[:SLOW_QUERY_PREVIEW_CHARS]
            logger.warning("Slow SQL (%.1f ms) - %s", elapsed_ms, preview)


def configure_database(database_url: str | None = None, *, allow_fallback: bool = True) -> None:
    """Create the engine and the session factory, pinging the database first.

    ``database_url`` defaults to ``settings.DATABASE_URL``. When the ping
    fails in development the API switches to a local SQLite file instead.
    """

    global engine, SessionLocal

    target_url = str(database_url or settings.DATABASE_URL)
    logger.info("Configuring database: %s", _safe_url(target_url))

    candidate = create_engine(target_url, pool_pre_ping=True, connect_args=_connect_args_for(target_url))
    _log_slow_queries(candidate, settings.SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS)

    try:
        with candidate.connect() as connection:
            connection.execute(text("SELECT 1"))
    except (OperationalError, OSError) as exc:
        candidate.dispose()
        if allow_fallback and _sqlite_fallback_allowed():
            logger.warning("Database '%s' unreachable (%s). Falling back to SQLite.", _safe_url(target_url), exc)
            configure_database(SQLITE_FALLBACK_URL, allow_fallback=False)
            return
        logger.error("Database connection failed: %s", exc)
        raise

    engine = candidate
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


configure_database()
