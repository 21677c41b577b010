# src/agentreview/db/schema.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid4())


RUN_STATUSES = ("pending", "running", "completed", "failed")
RUNNER_STATUSES = ("pass", "fail", "needs_review")
RATINGS = ("pass", "fail")


class Base(DeclarativeBase):
    pass


class TestRun(Base):
    """
    One row per invocation of an agent's test suite.
    """
    __tablename__ = "test_runs"
    __test__ = False  # keep pytest from collecting the model

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    agent_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    agent_path: Mapped[str] = mapped_column(String, nullable=False)
    executed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    raw_output: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recovery_attempted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    test_cases: Mapped[List["TestCase"]] = relationship(
        back_populates="test_run",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TestCase.position",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="ck_test_runs_status",
        ),
    )


class TestCase(Base):
    """
    One prompt/response unit parsed from a run. Immutable except llm_judge_result.
    """
    __tablename__ = "test_cases"
    __test__ = False

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    test_run_id: Mapped[str] = mapped_column(
        String, ForeignKey("test_runs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    ground_truth: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    agent_response: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    traces: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    runner_status: Mapped[str] = mapped_column(String, nullable=False, default="needs_review")
    chat_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    llm_judge_result: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    test_run: Mapped[TestRun] = relationship(back_populates="test_cases")
    evaluation: Mapped[Optional["Evaluation"]] = relationship(
        back_populates="test_case",
        cascade="all, delete-orphan",
        passive_deletes=True,
        uselist=False,
    )


class Evaluation(Base):
    """
    Human (or LLM-assisted) judgment for exactly one test case.
    """
    __tablename__ = "evaluations"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    test_case_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("test_cases.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    rating: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)  # pass/fail/None
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    test_case: Mapped[TestCase] = relationship(back_populates="evaluation")

    __table_args__ = (
        CheckConstraint("rating IN ('pass', 'fail') OR rating IS NULL", name="ck_evaluations_rating"),
    )
