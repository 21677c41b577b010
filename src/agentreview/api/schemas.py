"""API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class TestRequest(BaseModel):
    agent_path: str = Field(..., min_length=1)
    project: Optional[str] = None


class TestResponse(BaseModel):
    test_run_id: str
    status: str
    test_case_count: int = 0
    error: Optional[str] = None
    raw_output: Optional[str] = None
    recovery_attempted: bool = False
    judged_count: int = 0


class TestRunOut(BaseModel):
    id: str
    agent_id: str
    agent_path: str
    executed_at: datetime
    status: str
    raw_output: Optional[str]
    error_text: Optional[str]
    recovery_attempted: bool
    created_at: datetime


class TestCaseOut(BaseModel):
    id: str
    test_run_id: str
    position: int
    name: str
    prompt: str
    ground_truth: Optional[str]
    agent_response: Optional[str]
    traces: Optional[str]
    runner_status: str
    chat_link: Optional[str]
    llm_judge_result: Optional[dict[str, Any]]
    created_at: datetime


class TestRunDetail(BaseModel):
    test_run: TestRunOut
    test_cases: list[TestCaseOut]
    test_case_count: int


class TestRunList(BaseModel):
    test_runs: list[TestRunOut]
    count: int


class EvaluationOut(BaseModel):
    id: str
    test_case_id: str
    rating: Optional[str]
    notes: str
    duration_ms: Optional[int]
    created_at: datetime
    updated_at: datetime


class EvaluationWithCase(BaseModel):
    evaluation: EvaluationOut
    test_case: Optional[TestCaseOut]


class RatingSummaryOut(BaseModel):
    total: int
    passed: int
    failed: int
    unrated: int


class EvaluationList(BaseModel):
    evaluations: list[EvaluationWithCase]
    count: int
    summary: RatingSummaryOut


class EvaluationUpdate(BaseModel):
    rating: Optional[Literal["pass", "fail"]] = None
    notes: Optional[str] = None
    duration_ms: Optional[int] = Field(None, ge=0)


class DeleteResponse(BaseModel):
    success: bool
    message: str
