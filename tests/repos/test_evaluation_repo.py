from __future__ import annotations

from datetime import datetime

import pytest

from agentreview.errors import NotFoundError, ValidationError
from agentreview.models.domain import MergedTestCase
from agentreview.repos.evaluation_repo import EvaluationRepository
from agentreview.repos.runs_repo import TestRunRepository
from agentreview.repos.test_case_repo import TestCaseRepository


def _seed(session, n=3):
    run = TestRunRepository(session).create(agent_id="p/a", agent_path="p/a")
    cases = TestCaseRepository(session)
    for i in range(n):
        cases.add_with_evaluation(run.id, MergedTestCase(f"t{i}", "pass", "q", None, None), position=i)
    session.commit()
    evals = EvaluationRepository(session).list_by_run(run.id)
    return run.id, [e.id for e in evals]


def test_fail_without_notes_is_rejected(session):
    _, (ev_id, *_) = _seed(session)
    repo = EvaluationRepository(session)

    with pytest.raises(ValidationError):
        repo.update(ev_id, rating="fail")
    with pytest.raises(ValidationError):
        repo.update(ev_id, rating="fail", notes="   ")
    assert repo.get(ev_id).rating is None


def test_fail_with_prior_notes_is_accepted(session):
    _, (ev_id, *_) = _seed(session)
    repo = EvaluationRepository(session)
    repo.update(ev_id, notes="Wrong number")

    row = repo.update(ev_id, rating="fail")
    assert row.rating == "fail"
    assert row.notes == "Wrong number"


def test_update_bumps_updated_at_and_can_clear_rating(session):
    _, (ev_id, *_) = _seed(session)
    repo = EvaluationRepository(session)
    row = repo.get(ev_id)
    row.updated_at = datetime(2000, 1, 1)
    session.commit()

    row = repo.update(ev_id, rating="pass", duration_ms=1200)
    assert row.updated_at > datetime(2000, 1, 1)
    assert row.duration_ms == 1200

    row = repo.update(ev_id, rating=None)
    assert row.rating is None


def test_invalid_values_rejected(session):
    _, (ev_id, *_) = _seed(session)
    repo = EvaluationRepository(session)
    with pytest.raises(ValidationError):
        repo.update(ev_id, rating="maybe")
    with pytest.raises(ValidationError):
        repo.update(ev_id, duration_ms=-5)
    with pytest.raises(NotFoundError):
        repo.update("nope", rating="pass")


def test_rating_filters_and_summary(session):
    run_id, ids = _seed(session, n=3)
    repo = EvaluationRepository(session)
    repo.update(ids[0], rating="pass")
    repo.update(ids[1], rating="fail", notes="bad")

    assert [e.id for e in repo.list_by_run(run_id, rating="pass")] == [ids[0]]
    assert [e.id for e in repo.list_by_run(run_id, rating="fail")] == [ids[1]]
    assert [e.id for e in repo.list_by_run(run_id, rating="unrated")] == [ids[2]]

    summary = repo.summary_for_run(run_id)
    assert (summary.total, summary.passed, summary.failed, summary.unrated) == (3, 1, 1, 1)
