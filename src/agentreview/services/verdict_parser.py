"""
Pull a pass/fail verdict out of free-text judge output.

Strategies run in order and each either returns a Verdict or None. When none
matches, the verdict is "fail": an unreadable judgment never counts as a pass.
"""

from __future__ import annotations

import json
import re
from typing import Callable, Optional, Sequence

from agentreview.models.domain import Verdict

VerdictStrategy = Callable[[str], Optional[Verdict]]

NO_REASONING = "No reasoning provided"

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

PASS_PHRASES = ("verdict: pass", 'verdict": "pass', "passes the criteria", "meets the criteria")
FAIL_PHRASES = ("verdict: fail", 'verdict": "fail', "fails the criteria", "does not meet")


def _from_payload(payload: object) -> Optional[Verdict]:
    if not isinstance(payload, dict) or "verdict" not in payload:
        return None
    verdict = "pass" if str(payload.get("verdict", "")).strip().lower() == "pass" else "fail"
    reasoning = payload.get("reasoning") or NO_REASONING
    return Verdict(verdict=verdict, reasoning=str(reasoning))


def fenced_json_strategy(text: str) -> Optional[Verdict]:
    for match in _FENCED_JSON.finditer(text):
        try:
            result = _from_payload(json.loads(match.group(1)))
        except json.JSONDecodeError:
            continue
        if result is not None:
            return result
    return None


def bare_json_strategy(text: str) -> Optional[Verdict]:
    """Any JSON object in the text that has both a verdict and a reasoning key."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            payload, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict) and "verdict" in payload and "reasoning" in payload:
            return _from_payload(payload)
        start = text.find("{", start + 1)
    return None


def keyword_strategy(text: str) -> Optional[Verdict]:
    lowered = text.lower()
    has_pass = any(p in lowered for p in PASS_PHRASES)
    has_fail = any(p in lowered for p in FAIL_PHRASES)
    if has_fail:
        return Verdict(verdict="fail", reasoning=text.strip())
    if has_pass:
        return Verdict(verdict="pass", reasoning=text.strip())
    return None


DEFAULT_STRATEGIES: tuple[VerdictStrategy, ...] = (
    fenced_json_strategy,
    bare_json_strategy,
    keyword_strategy,
)


def parse_verdict(text: str, strategies: Sequence[VerdictStrategy] = DEFAULT_STRATEGIES) -> Verdict:
    text = text or ""
    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            return result
    return Verdict(verdict="fail", reasoning=text.strip() or "Unable to parse evaluator response")
