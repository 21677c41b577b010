"""Test run repository."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from agentreview.db.schema import Evaluation, TestCase, TestRun


class TestRunRepository:
    """
    Repository for the `test_runs` table.

    Responsibility:
    - create runs
    - update run status exactly once (completed/failed)
    - fetch runs
    - delete a run with all of its cases and evaluations
    """

    __test__ = False

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        agent_id: str,
        agent_path: str,
        status: str = "running",
        executed_at: Optional[datetime] = None,
    ) -> TestRun:
        run = TestRun(
            agent_id=agent_id,
            agent_path=agent_path,
            executed_at=executed_at or datetime.utcnow(),
            status=status,
            raw_output=None,
        )
        self.session.add(run)
        self.session.commit()
        return run

    def get(self, run_id: str) -> Optional[TestRun]:
        return self.session.get(TestRun, run_id)

    def list_all(self, limit: int = 100) -> List[TestRun]:
        return (
            self.session.query(TestRun)
            .order_by(TestRun.created_at.desc())
            .limit(limit)
            .all()
        )

    def mark_completed(self, run_id: str, raw_output: str, recovery_attempted: bool = False) -> None:
        run = self.session.get(TestRun, run_id)
        if run is None:
            return
        run.status = "completed"
        run.raw_output = raw_output
        run.error_text = None
        run.recovery_attempted = recovery_attempted
        self.session.commit()

    def mark_failed(
        self,
        run_id: str,
        error_text: str,
        raw_output: Optional[str] = None,
        recovery_attempted: bool = False,
    ) -> None:
        run = self.session.get(TestRun, run_id)
        if run is None:
            return
        run.status = "failed"
        run.error_text = error_text
        if raw_output is not None:
            run.raw_output = raw_output
        run.recovery_attempted = recovery_attempted
        self.session.commit()

    def delete(self, run_id: str) -> bool:
        """
        Hard delete a run, its test cases and their evaluations in one transaction.

        Children are deleted explicitly so the result does not depend on the
        backend enforcing ON DELETE CASCADE.
        """
        try:
            if self.session.get(TestRun, run_id) is None:
                return False
            case_ids = select(TestCase.id).where(TestCase.test_run_id == run_id)
            self.session.execute(delete(Evaluation).where(Evaluation.test_case_id.in_(case_ids)))
            self.session.execute(delete(TestCase).where(TestCase.test_run_id == run_id))
            self.session.execute(delete(TestRun).where(TestRun.id == run_id))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.expire_all()
        return True
