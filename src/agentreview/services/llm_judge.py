"""LLM-as-a-judge pre-grading of persisted test cases."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from agentreview.config.settings import settings
from agentreview.models.domain import LlmJudgeResult
from agentreview.services.judge_client import EvaluatorSessionClient, build_conversation_url
from agentreview.services.judge_prompts import build_conversation_history, format_evaluation_prompt
from agentreview.services.verdict_parser import parse_verdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JudgeInput:
    test_case_id: str
    test_name: str
    prompt: str
    agent_response: Optional[str]
    criteria: Optional[str]


class LLMJudge:
    """Grades test cases one at a time through evaluator chat sessions."""

    def __init__(
        self,
        client: EvaluatorSessionClient,
        evaluator_agent_id: Optional[str] = None,
        poll_interval_s: Optional[float] = None,
        max_wait_s: Optional[float] = None,
        now_fn: Callable[[], datetime] = datetime.utcnow,
    ):
        self.client = client
        self.evaluator_agent_id = evaluator_agent_id or settings.evaluator_agent_id
        self.poll_interval_s = poll_interval_s
        self.max_wait_s = max_wait_s
        self.now_fn = now_fn

    def evaluate_case(self, item: JudgeInput, test_number: int, total_tests: int) -> LlmJudgeResult:
        """Run one judge session. Raises EvaluationError/EvaluationTimeout."""
        prompt = format_evaluation_prompt(
            test_name=item.test_name,
            criteria=item.criteria,
            conversation_history=build_conversation_history(item.prompt, item.agent_response),
        )

        session = self.client.create_session(self.evaluator_agent_id)
        self.client.submit_prompt(session, prompt)
        reply = self.client.poll_for_response(
            session,
            interval_s=self.poll_interval_s,
            max_wait_s=self.max_wait_s,
        )
        verdict = parse_verdict(reply)

        return LlmJudgeResult(
            verdict=verdict.verdict,
            reasoning=verdict.reasoning,
            conversation_url=build_conversation_url(self.client.api_url, session.id),
            test_number=test_number,
            total_tests=total_tests,
            test_name=item.test_name,
            prompt=item.prompt,
            evaluated_at=self.now_fn().isoformat(),
            evaluator_agent_id=self.evaluator_agent_id,
        )

    def _placeholder(self, item: JudgeInput, test_number: int, total_tests: int, error: Exception) -> LlmJudgeResult:
        return LlmJudgeResult(
            verdict="fail",
            reasoning=f"Evaluation failed: {error}",
            conversation_url="",
            test_number=test_number,
            total_tests=total_tests,
            test_name=item.test_name,
            prompt=item.prompt,
            evaluated_at=self.now_fn().isoformat(),
            evaluator_agent_id=self.evaluator_agent_id,
            error=True,
        )

    def evaluate_all(
        self,
        items: Iterable[JudgeInput],
        on_result: Optional[Callable[[JudgeInput, LlmJudgeResult], None]] = None,
        on_progress: Optional[Callable[[int, int, str], None]] = None,
    ) -> List[LlmJudgeResult]:
        """
        Grade every item sequentially.

        A failure on one item becomes a fail-verdict placeholder carrying the error
        text, and the loop moves on. `on_result` fires after each item so callers
        can persist results one by one.
        """
        items = list(items)
        total = len(items)
        results: List[LlmJudgeResult] = []

        for number, item in enumerate(items, start=1):
            if on_progress:
                on_progress(number, total, item.test_name)
            logger.info("Evaluating test case %d/%d: %s", number, total, item.test_name)

            try:
                result = self.evaluate_case(item, number, total)
                logger.info("LLM evaluation complete for %s: %s", item.test_name, result.verdict)
            except Exception as e:
                logger.error("LLM evaluation failed for %s: %s", item.test_name, e)
                result = self._placeholder(item, number, total, e)

            if on_result:
                on_result(item, result)
            results.append(result)

        return results


def get_llm_judge(api_key: Optional[str]) -> Optional[LLMJudge]:
    """Factory: a judge when a credential is available, else None (grading skipped)."""
    if not api_key:
        return None
    return LLMJudge(EvaluatorSessionClient(api_key=api_key))
