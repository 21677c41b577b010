"""Test execution and test run routes."""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from agentreview.api.deps import get_db, get_judge, get_runner
from agentreview.api.schemas import (
    DeleteResponse,
    TestCaseOut,
    TestRequest,
    TestResponse,
    TestRunDetail,
    TestRunList,
    TestRunOut,
)
from agentreview.db.schema import TestCase, TestRun
from agentreview.repos.runs_repo import TestRunRepository
from agentreview.repos.test_case_repo import TestCaseRepository
from agentreview.services.llm_judge import LLMJudge
from agentreview.services.process_runner import CommandRunner
from agentreview.services.tdx_commands import build_run_context
from agentreview.services.test_pipeline import TestPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["test-runs"])


def run_out(run: TestRun) -> TestRunOut:
    return TestRunOut(
        id=run.id,
        agent_id=run.agent_id,
        agent_path=run.agent_path,
        executed_at=run.executed_at,
        status=run.status,
        raw_output=run.raw_output,
        error_text=run.error_text,
        recovery_attempted=run.recovery_attempted,
        created_at=run.created_at,
    )


def case_out(row: TestCase) -> TestCaseOut:
    judge = None
    if row.llm_judge_result:
        try:
            judge = json.loads(row.llm_judge_result)
        except json.JSONDecodeError:
            judge = None
    return TestCaseOut(
        id=row.id,
        test_run_id=row.test_run_id,
        position=row.position,
        name=row.name,
        prompt=row.prompt,
        ground_truth=row.ground_truth,
        agent_response=row.agent_response,
        traces=row.traces,
        runner_status=row.runner_status,
        chat_link=row.chat_link,
        llm_judge_result=judge,
        created_at=row.created_at,
    )


@router.post("/test", response_model=TestResponse)
def run_test_endpoint(
    payload: TestRequest,
    session: Session = Depends(get_db),
    runner: CommandRunner = Depends(get_runner),
    judge: Optional[LLMJudge] = Depends(get_judge),
):
    if "/" not in payload.agent_path:
        raise HTTPException(
            status_code=400,
            detail='agent_path must be in format "project/agent" or "agents/project/agent"',
        )

    logger.info("POST /api/test for %s", payload.agent_path)
    ctx = build_run_context(project=payload.project)
    pipeline = TestPipeline(session, ctx, runner=runner, judge=judge)
    try:
        result = pipeline.run(payload.agent_path)
    except Exception as e:
        logger.exception("Test execution error")
        raise HTTPException(status_code=500, detail={"error": str(e)})

    return TestResponse(
        test_run_id=result.test_run_id,
        status=result.status,
        test_case_count=result.test_case_count,
        error=result.error,
        raw_output=result.raw_output if result.status == "failed" else None,
        recovery_attempted=result.recovery_attempted,
        judged_count=result.judged_count,
    )


@router.get("/test-runs", response_model=TestRunList)
def list_test_runs(session: Session = Depends(get_db)):
    runs = TestRunRepository(session).list_all()
    return TestRunList(test_runs=[run_out(r) for r in runs], count=len(runs))


@router.get("/test-runs/{run_id}", response_model=TestRunDetail)
def get_test_run(run_id: str, session: Session = Depends(get_db)):
    run = TestRunRepository(session).get(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Test run not found")
    cases = TestCaseRepository(session).list_by_run(run_id)
    return TestRunDetail(
        test_run=run_out(run),
        test_cases=[case_out(c) for c in cases],
        test_case_count=len(cases),
    )


@router.delete("/test-runs/{run_id}", response_model=DeleteResponse)
def delete_test_run(run_id: str, session: Session = Depends(get_db)):
    if not TestRunRepository(session).delete(run_id):
        raise HTTPException(status_code=404, detail="Test run not found or already deleted")
    logger.info("Test run %s deleted with its test cases and evaluations", run_id)
    return DeleteResponse(success=True, message="Test run and all associated data deleted")
