# src/agentreview/db/engine.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from agentreview.config.settings import settings


@dataclass(frozen=True)
class DBPingResult:
    ok: bool
    detail: str


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    # SQLite ignores ON DELETE CASCADE unless this is set per connection.
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(db_url: Optional[str] = None) -> Engine:
    """
    Build a SQLAlchemy Engine.

    Why allow db_url override?
    - tests need in-memory or temp DBs
    - CLI/API should default to settings.db_url
    """
    url = db_url or os.getenv("DATABASE_URL") or settings.db_url
    if url.startswith("postgresql"):
        return create_engine(url, future=True, pool_pre_ping=True)

    if url.startswith("sqlite:///") and ":memory:" not in url:
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, future=True)
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def ping_db(engine: Engine) -> DBPingResult:
    """
    Lightweight DB connectivity check.
    Must NEVER return None (health endpoint depends on this).
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("select 1")).scalar_one()
        return DBPingResult(ok=True, detail="ok")
    except Exception as e:
        return DBPingResult(ok=False, detail=f"{type(e).__name__}: {e}")
