"""
Client for the chat-session API that hosts the evaluator agent.

The API has no webhook: `continue` only acknowledges the input and the reply
shows up in the session history some time later, so callers poll.

Wire format (JSON:API flavoured):
- POST {base}/chats                 {"data": {"type": "chats", "attributes": {"agentId": ...}}}
- POST {base}/chats/{id}/continue   {"input": "..."}
- GET  {base}/chats/{id}/history    {"data": [{"input": "..."} | {"content": "..."}, "at": ...]}
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from agentreview.config.settings import settings
from agentreview.errors import EvaluationError, EvaluationTimeout
from agentreview.models.domain import HistoryEntry

logger = logging.getLogger(__name__)

JSONAPI_CONTENT_TYPE = "application/vnd.api+json"

SESSION_CREATED = "created"
SESSION_AWAITING = "awaiting_response"
SESSION_COMPLETED = "completed"
SESSION_TIMED_OUT = "timed_out"
SESSION_FAILED = "failed"


def normalize_api_url(url: str) -> str:
    url = url.rstrip("/")
    return url if url.endswith("/api") else f"{url}/api"


def console_url_for(api_url: str) -> str:
    """https://llm-api-xxx.example.com/api -> https://llm-xxx.example.com"""
    base = normalize_api_url(api_url)[: -len("/api")]
    return base.replace("llm-api", "llm", 1)


def build_conversation_url(api_url: str, session_id: str) -> str:
    return f"{console_url_for(api_url)}/chats/{session_id}"


def _parse_at(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    # Compared against naive UTC submission times.
    if parsed.tzinfo:
        return parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass
class JudgeSession:
    """Tracks one evaluator conversation through its lifecycle."""

    id: str
    state: str = SESSION_CREATED
    submitted_at: Optional[datetime] = None


class EvaluatorSessionClient:
    """
    Sync httpx client for evaluator sessions.

    Dependency injection via `client` keeps it testable without real HTTP.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout_s: Optional[float] = None,
        sleep_fn: Callable[[float], None] = time.sleep,
        now_fn: Callable[[], datetime] = datetime.utcnow,
    ):
        self.api_url = normalize_api_url(base_url or settings.llm_base_url)
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_s or settings.judge_request_timeout_s)
        self._sleep = sleep_fn
        self._now = now_fn

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "EvaluatorSessionClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": JSONAPI_CONTENT_TYPE,
            "Authorization": f"TD1 {self._api_key}",
        }

    def _request(self, method: str, path: str, what: str, json: Any = None) -> httpx.Response:
        try:
            r = self._client.request(method, f"{self.api_url}{path}", headers=self._headers(), json=json)
        except httpx.HTTPError as e:
            raise EvaluationError(f"Failed to {what}: {type(e).__name__}: {e}") from e
        if r.status_code >= 400:
            raise EvaluationError(f"Failed to {what}: {r.status_code} {r.text}")
        return r

    def create_session(self, evaluator_agent_id: str) -> JudgeSession:
        r = self._request(
            "POST",
            "/chats",
            "create chat",
            json={"data": {"type": "chats", "attributes": {"agentId": evaluator_agent_id}}},
        )
        try:
            session_id = r.json()["data"]["id"]
        except (ValueError, KeyError, TypeError) as e:
            raise EvaluationError(f"Unexpected create chat response: {r.text}") from e
        logger.debug("Created evaluator chat %s", session_id)
        return JudgeSession(id=str(session_id))

    def submit_prompt(self, session: JudgeSession, text: str) -> None:
        """Fire the prompt; the reply is produced out of band."""
        try:
            self._request("POST", f"/chats/{session.id}/continue", "continue chat", json={"input": text})
        except EvaluationError:
            session.state = SESSION_FAILED
            raise
        session.submitted_at = self._now()
        session.state = SESSION_AWAITING

    def get_history(self, session_id: str) -> list[HistoryEntry]:
        r = self._request("GET", f"/chats/{session_id}/history", "get chat history")
        try:
            items = r.json().get("data") or []
        except ValueError as e:
            raise EvaluationError(f"Unexpected history response: {r.text}") from e

        entries: list[HistoryEntry] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            at = _parse_at(item.get("at"))
            if "content" in item:
                entries.append(HistoryEntry(at=at, generated_text=item.get("content") or ""))
            elif "input" in item:
                entries.append(HistoryEntry(at=at, submitted_text=item.get("input") or ""))
        return entries

    def poll_for_response(
        self,
        session: JudgeSession,
        interval_s: Optional[float] = None,
        max_wait_s: Optional[float] = None,
    ) -> str:
        """
        Wait for the evaluator's reply.

        Polls the history every `interval_s` for at most `max_wait_s`; returns the
        first non-empty generated entry after our submission.
        """
        interval_s = settings.judge_poll_interval_s if interval_s is None else interval_s
        max_wait_s = settings.judge_max_wait_s if max_wait_s is None else max_wait_s
        max_attempts = max(1, math.ceil(max_wait_s / interval_s)) if interval_s > 0 else 1

        for attempt in range(1, max_attempts + 1):
            try:
                history = self.get_history(session.id)
            except EvaluationError:
                session.state = SESSION_FAILED
                raise

            reply = first_reply_after_submission(history, session.submitted_at)
            if reply:
                session.state = SESSION_COMPLETED
                logger.debug("Evaluator replied on attempt %d for chat %s", attempt, session.id)
                return reply

            if attempt < max_attempts:
                self._sleep(interval_s)

        session.state = SESSION_TIMED_OUT
        raise EvaluationTimeout(
            f"Timeout waiting for evaluator response after {max_wait_s:g} seconds ({max_attempts} polls)"
        )


def first_reply_after_submission(
    history: list[HistoryEntry],
    submitted_at: Optional[datetime] = None,
) -> str:
    """
    First non-empty generated entry that follows the last submitted entry.

    If our input is not in the history yet, fall back to timestamps.
    """
    last_input = max((i for i, e in enumerate(history) if not e.is_generated), default=None)
    if last_input is not None:
        candidates = history[last_input + 1:]
    elif submitted_at is not None:
        candidates = [e for e in history if e.at is None or e.at >= submitted_at]
    else:
        candidates = history

    for entry in candidates:
        if entry.is_generated and (entry.generated_text or "").strip():
            return entry.generated_text
    return ""
