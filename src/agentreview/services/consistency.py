"""
Read-after-write retries.

A reader that runs right after the pipeline commits may see zero rows: the
write happened on another connection or process and is not visible yet. These
helpers retry a bounded number of times instead of treating "empty" as final.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

import httpx
from sqlalchemy.orm import Session

from agentreview.config.settings import settings
from agentreview.db.schema import Evaluation
from agentreview.errors import ReadConsistencyExhausted
from agentreview.repos.evaluation_repo import EvaluationRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    try:
        return len(value) == 0  # type: ignore[arg-type]
    except TypeError:
        return False


def read_with_retry(
    reader: Callable[[], T],
    attempts: Optional[int] = None,
    delay_s: Optional[float] = None,
    is_empty: Callable[[T], bool] = _is_empty,
    sleep_fn: Callable[[float], None] = time.sleep,
    label: str = "read",
) -> T:
    """
    Call `reader` until it returns something non-empty, at most `attempts` times.

    Exceptions count as attempts too. When the budget is spent the last result is
    returned (possibly empty); if the final attempt raised and nothing was ever
    read, ReadConsistencyExhausted is raised from the last error.
    """
    attempts = settings.read_retry_attempts if attempts is None else attempts
    delay_s = settings.read_retry_delay_s if delay_s is None else delay_s
    attempts = max(1, attempts)

    result: Optional[T] = None
    have_result = False
    last_error: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        try:
            result = reader()
            have_result = True
            last_error = None
            if not is_empty(result):
                logger.debug("%s returned data on attempt %d", label, attempt)
                return result
            logger.info("%s returned nothing (attempt %d/%d)", label, attempt, attempts)
        except Exception as e:
            last_error = e
            logger.warning("%s failed (attempt %d/%d): %s", label, attempt, attempts, e)

        if attempt < attempts:
            sleep_fn(delay_s)

    if last_error is not None and not have_result:
        raise ReadConsistencyExhausted(f"{label} failed after {attempts} attempts: {last_error}") from last_error
    logger.warning("%s still empty after %d attempts", label, attempts)
    return result  # type: ignore[return-value]


def fetch_run_evaluations(
    session_factory: Callable[[], Session],
    test_run_id: str,
    **retry_kwargs,
) -> list[Evaluation]:
    """Evaluations of a run, opening a fresh session for every attempt."""

    def _read() -> list[Evaluation]:
        with session_factory() as session:
            rows = EvaluationRepository(session).list_by_run(test_run_id)
            session.expunge_all()
            return rows

    return read_with_retry(_read, label=f"evaluations of run {test_run_id}", **retry_kwargs)


def fetch_run_evaluations_http(
    base_url: str,
    test_run_id: str,
    client: Optional[httpx.Client] = None,
    **retry_kwargs,
) -> list[dict]:
    """Same policy against the HTTP API; returns the `evaluations` payload list."""
    close_client = False
    if client is None:
        client = httpx.Client(timeout=10.0)
        close_client = True

    def _read() -> list[dict]:
        r = client.get(f"{base_url.rstrip('/')}/api/evaluations", params={"test_run_id": test_run_id})
        r.raise_for_status()
        return r.json().get("evaluations", [])

    try:
        return read_with_retry(_read, label=f"GET evaluations of run {test_run_id}", **retry_kwargs)
    finally:
        if close_client:
            client.close()
