"""Reviewer-facing evaluation routes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from agentreview.api.deps import get_db
from agentreview.api.routes_runs import case_out
from agentreview.api.schemas import (
    EvaluationList,
    EvaluationOut,
    EvaluationUpdate,
    EvaluationWithCase,
    RatingSummaryOut,
)
from agentreview.db.schema import Evaluation
from agentreview.errors import NotFoundError, ValidationError
from agentreview.repos.evaluation_repo import RATING_FILTERS, EvaluationRepository
from agentreview.repos.test_case_repo import TestCaseRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


def evaluation_out(row: Evaluation) -> EvaluationOut:
    return EvaluationOut(
        id=row.id,
        test_case_id=row.test_case_id,
        rating=row.rating,
        notes=row.notes,
        duration_ms=row.duration_ms,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


@router.get("", response_model=EvaluationList)
def list_evaluations(
    test_run_id: str = Query(..., min_length=1),
    rating: Optional[str] = Query(None),
    session: Session = Depends(get_db),
):
    if rating is not None and rating not in RATING_FILTERS:
        raise HTTPException(status_code=400, detail="rating must be pass, fail or unrated")

    repo = EvaluationRepository(session)
    cases = {c.id: c for c in TestCaseRepository(session).list_by_run(test_run_id)}
    rows = repo.list_by_run(test_run_id, rating=rating)
    summary = repo.summary_for_run(test_run_id)

    items = [
        EvaluationWithCase(
            evaluation=evaluation_out(e),
            test_case=case_out(cases[e.test_case_id]) if e.test_case_id in cases else None,
        )
        for e in rows
    ]
    return EvaluationList(
        evaluations=items,
        count=len(items),
        summary=RatingSummaryOut(
            total=summary.total,
            passed=summary.passed,
            failed=summary.failed,
            unrated=summary.unrated,
        ),
    )


@router.get("/{evaluation_id}", response_model=EvaluationWithCase)
def get_evaluation(evaluation_id: str, session: Session = Depends(get_db)):
    row = EvaluationRepository(session).get(evaluation_id)
    if not row:
        raise HTTPException(status_code=404, detail="Evaluation not found")
    case = TestCaseRepository(session).get(row.test_case_id)
    return EvaluationWithCase(evaluation=evaluation_out(row), test_case=case_out(case) if case else None)


@router.api_route("/{evaluation_id}", methods=["PATCH", "PUT"], response_model=EvaluationOut)
def update_evaluation(
    evaluation_id: str,
    payload: EvaluationUpdate,
    session: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        row = EvaluationRepository(session).update(evaluation_id, **changes)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("Evaluation %s updated", evaluation_id)
    return evaluation_out(row)
