"""API dependencies."""

from __future__ import annotations

from collections.abc import Generator
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from agentreview.db.engine import build_engine
from agentreview.db.init_db import ensure_db
from agentreview.services.llm_judge import LLMJudge, get_llm_judge
from agentreview.services.process_runner import CommandRunner, execute_command
from agentreview.services.tdx_commands import build_run_context


def get_db() -> Generator[Session, None, None]:
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_runner() -> CommandRunner:
    return execute_command


def get_judge() -> Generator[Optional[LLMJudge], None, None]:
    judge = get_llm_judge(build_run_context().api_key)
    try:
        yield judge
    finally:
        if judge is not None:
            judge.client.close()
