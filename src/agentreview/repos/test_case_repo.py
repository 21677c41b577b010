"""Test case repository."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from agentreview.db.schema import Evaluation, TestCase
from agentreview.models.domain import LlmJudgeResult, MergedTestCase

logger = logging.getLogger(__name__)


class TestCaseRepository:
    """Repository for test_cases. Every case is created together with its Evaluation."""

    __test__ = False

    def __init__(self, session: Session):
        self.session = session

    def add_with_evaluation(self, test_run_id: str, case: MergedTestCase, position: int) -> TestCase:
        """
        Stage a test case and its unrated evaluation. Does not commit: call it
        inside run_in_transaction so both rows land together or not at all.
        """
        row = TestCase(
            test_run_id=test_run_id,
            position=position,
            name=case.name,
            prompt=case.prompt,
            ground_truth=case.ground_truth,
            agent_response=case.agent_response,
            traces=None,
            runner_status=case.status,
            chat_link=case.chat_link,
            llm_judge_result=None,
        )
        row.evaluation = Evaluation(rating=None, notes="")
        self.session.add(row)
        self.session.flush()
        return row

    def get(self, test_case_id: str) -> Optional[TestCase]:
        return self.session.get(TestCase, test_case_id)

    def list_by_run(self, test_run_id: str) -> List[TestCase]:
        return (
            self.session.query(TestCase)
            .filter(TestCase.test_run_id == test_run_id)
            .order_by(TestCase.position, TestCase.created_at)
            .all()
        )

    def set_llm_judge_result(self, test_case_id: str, result: LlmJudgeResult) -> Optional[TestCase]:
        row = self.session.get(TestCase, test_case_id)
        if row is None:
            logger.error("Failed to update llm_judge_result for test case %s: not found", test_case_id)
            return None
        row.llm_judge_result = json.dumps(result.to_dict())
        self.session.commit()
        return row


def load_llm_judge_result(row: TestCase) -> Optional[LlmJudgeResult]:
    if not row.llm_judge_result:
        return None
    try:
        return LlmJudgeResult.from_dict(json.loads(row.llm_judge_result))
    except (json.JSONDecodeError, TypeError):
        return None
