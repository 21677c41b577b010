"""Database session helpers."""

from __future__ import annotations

from typing import Callable, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from agentreview.db.engine import build_engine

T = TypeVar("T")


def get_session() -> Session:
    """Build and return a SQLAlchemy session bound to the project engine."""
    engine = build_engine()
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal()


def run_in_transaction(session: Session, fn: Callable[[Session], T]) -> T:
    """
    Run `fn(session)` all-or-nothing.

    Commits when fn returns, rolls back and re-raises when it raises. Nothing fn
    wrote is visible to other connections until the commit.
    """
    try:
        result = fn(session)
        session.commit()
    except Exception:
        session.rollback()
        raise
    return result
