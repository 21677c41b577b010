"""Evaluation repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from agentreview.db.schema import RATINGS, Evaluation, TestCase
from agentreview.errors import NotFoundError, ValidationError

_UNSET: Any = object()

RATING_FILTERS = ("pass", "fail", "unrated")


@dataclass(frozen=True)
class RatingSummary:
    total: int
    passed: int
    failed: int
    unrated: int


def validate_update(
    existing: Evaluation,
    rating: Any = _UNSET,
    notes: Any = _UNSET,
    duration_ms: Any = _UNSET,
) -> None:
    """
    Reject invalid reviewer updates.

    A "fail" rating needs an explanation: the notes supplied with the update,
    or the ones already stored.
    """
    if rating is not _UNSET and rating is not None and rating not in RATINGS:
        raise ValidationError('rating must be "pass", "fail", or null')
    if notes is not _UNSET and not isinstance(notes, str):
        raise ValidationError("notes must be a string")
    if duration_ms is not _UNSET and duration_ms is not None:
        if isinstance(duration_ms, bool) or not isinstance(duration_ms, int) or duration_ms < 0:
            raise ValidationError("duration_ms must be a non-negative integer")
    if rating == "fail":
        effective = notes if notes is not _UNSET else existing.notes
        if not (effective or "").strip():
            raise ValidationError('Notes are required when rating is "fail"')


class EvaluationRepository:
    """Repository for evaluations."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, evaluation_id: str) -> Optional[Evaluation]:
        return self.session.get(Evaluation, evaluation_id)

    def get_by_test_case(self, test_case_id: str) -> Optional[Evaluation]:
        return (
            self.session.query(Evaluation)
            .filter(Evaluation.test_case_id == test_case_id)
            .one_or_none()
        )

    def list_by_run(self, test_run_id: str, rating: Optional[str] = None) -> List[Evaluation]:
        """Evaluations for a run in test order; `rating` may be pass, fail or unrated."""
        q = (
            self.session.query(Evaluation)
            .join(TestCase, Evaluation.test_case_id == TestCase.id)
            .filter(TestCase.test_run_id == test_run_id)
        )
        if rating == "unrated":
            q = q.filter(Evaluation.rating.is_(None))
        elif rating in RATINGS:
            q = q.filter(Evaluation.rating == rating)
        return q.order_by(TestCase.position, Evaluation.created_at).all()

    def summary_for_run(self, test_run_id: str) -> RatingSummary:
        rows = self.list_by_run(test_run_id)
        return RatingSummary(
            total=len(rows),
            passed=sum(1 for e in rows if e.rating == "pass"),
            failed=sum(1 for e in rows if e.rating == "fail"),
            unrated=sum(1 for e in rows if e.rating is None),
        )

    def update(
        self,
        evaluation_id: str,
        rating: Any = _UNSET,
        notes: Any = _UNSET,
        duration_ms: Any = _UNSET,
    ) -> Evaluation:
        """
        Apply a reviewer update; omitted fields are left alone.

        Raises NotFoundError or ValidationError. Bumps updated_at on every call.
        """
        row = self.session.get(Evaluation, evaluation_id)
        if row is None:
            raise NotFoundError(f"Evaluation {evaluation_id} not found")

        validate_update(row, rating=rating, notes=notes, duration_ms=duration_ms)

        if rating is not _UNSET:
            row.rating = rating
        if notes is not _UNSET:
            row.notes = notes
        if duration_ms is not _UNSET:
            row.duration_ms = duration_ms
        row.updated_at = datetime.utcnow()
        self.session.commit()
        return row
