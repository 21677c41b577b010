from __future__ import annotations

from sqlalchemy.engine import Engine

from agentreview.db.schema import Base


def init_db(engine: Engine) -> None:
    """
    Reset the schema: drop every table, then create it again.
    """
    with engine.begin() as conn:
        Base.metadata.drop_all(bind=conn)
        Base.metadata.create_all(bind=conn)


def ensure_db(engine: Engine) -> None:
    """Create missing tables, keeping existing rows."""
    Base.metadata.create_all(bind=engine)
