from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from agentreview.db.session import run_in_transaction
from agentreview.models.domain import LlmJudgeResult, MergedTestCase
from agentreview.repos.runs_repo import TestRunRepository
from agentreview.repos.test_case_repo import TestCaseRepository, load_llm_judge_result


def _judge_result() -> LlmJudgeResult:
    return LlmJudgeResult(
        verdict="pass",
        reasoning="ok",
        conversation_url="https://llm.example.com/chats/c1",
        test_number=1,
        total_tests=1,
        test_name="Greeting",
        prompt="hi",
        evaluated_at="2025-01-01T00:00:00",
    )


def test_case_is_created_with_unrated_evaluation(session):
    run = TestRunRepository(session).create(agent_id="p/a", agent_path="p/a")
    repo = TestCaseRepository(session)
    merged = MergedTestCase("Greeting", "pass", "Hello?", "Greets back", "said hi", "https://x/chats/1")

    row = run_in_transaction(session, lambda s: repo.add_with_evaluation(run.id, merged, position=0))

    stored = repo.get(row.id)
    assert stored.runner_status == "pass"
    assert stored.ground_truth == "Greets back"
    assert stored.chat_link == "https://x/chats/1"
    assert stored.evaluation.rating is None
    assert stored.evaluation.notes == ""


def test_failed_transaction_leaves_no_partial_rows(session):
    run = TestRunRepository(session).create(agent_id="p/a", agent_path="p/a")
    repo = TestCaseRepository(session)

    def _persist(s):
        repo.add_with_evaluation(run.id, MergedTestCase("ok", "pass", "q", None, None), position=0)
        # Unknown run id violates the foreign key.
        repo.add_with_evaluation("missing-run", MergedTestCase("bad", "pass", "q", None, None), position=1)

    with pytest.raises(IntegrityError):
        run_in_transaction(session, _persist)

    assert repo.list_by_run(run.id) == []


def test_llm_judge_result_round_trips_as_json(session):
    run = TestRunRepository(session).create(agent_id="p/a", agent_path="p/a")
    repo = TestCaseRepository(session)
    row = repo.add_with_evaluation(run.id, MergedTestCase("Greeting", "pass", "hi", None, None), position=0)
    session.commit()

    repo.set_llm_judge_result(row.id, _judge_result())
    loaded = load_llm_judge_result(repo.get(row.id))
    assert loaded == _judge_result()

    assert repo.set_llm_judge_result("missing", _judge_result()) is None


def test_list_by_run_in_position_order(session):
    run = TestRunRepository(session).create(agent_id="p/a", agent_path="p/a")
    repo = TestCaseRepository(session)
    for pos, name in ((1, "second"), (0, "first")):
        repo.add_with_evaluation(run.id, MergedTestCase(name, "pass", "q", None, None), position=pos)
    session.commit()
    assert [c.name for c in repo.list_by_run(run.id)] == ["first", "second"]
