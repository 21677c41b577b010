"""
Turn `tdx agent test` text output into structured test cases.

The runner prints, per test:

    Test 1/8: Test Name
      Round 1/1... ✓ (2.1s)
      Evaluating... ✓ (6.7s)
    ✓ PASS: Evaluation reasoning...
    Conversation URL: https://...

Parsing is line based and pure: the same text always yields the same list.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from agentreview.models.domain import MergedTestCase, ParsedTestCase, TestDefinition
from agentreview.services.test_definitions import definitions_by_name

STATUS_PASS = "pass"
STATUS_FAIL = "fail"
STATUS_NEEDS_REVIEW = "needs_review"

_HEADER = re.compile(r"^\s*Test\s+(\d+)/(\d+):\s*(.+?)\s*$", re.IGNORECASE)
_PASS = re.compile(r"[✓✔]\s*PASS\b:?\s*(.*)$", re.IGNORECASE)
_FAIL = re.compile(r"[✗✘×]\s*FAIL\b:?\s*(.*)$", re.IGNORECASE)
_LINK = re.compile(r"(?:Conversation|Chat)\s*URL:\s*(https?://\S+)", re.IGNORECASE)
_BARE_URL = re.compile(r"^\s*(https?://\S+)\s*$")
# Progress lines ("Round 1/1... ✓ (2.1s)") are runner chatter, not reasoning.
_PROGRESS = re.compile(r"^\s*(Round\s+\d+/\d+|Evaluating)\b.*", re.IGNORECASE)


class _OpenCase:
    def __init__(self, name: str) -> None:
        self.name = name
        self.status: Optional[str] = None
        self.reasoning: List[str] = []
        self.chat_link: Optional[str] = None

    def close(self) -> ParsedTestCase:
        return ParsedTestCase(
            name=self.name,
            status=self.status or STATUS_NEEDS_REVIEW,
            evaluation_reasoning=" ".join(self.reasoning).strip(),
            chat_link=self.chat_link,
        )


def extract_test_cases(raw_text: str) -> list[ParsedTestCase]:
    """
    Extract ordered test cases from runner output.

    A "Test i/N: <name>" header opens a case. Lines until the verdict marker are
    reasoning; the marker sets the status and its trailing text is the reasoning
    the runner's own evaluator gave, and it closes the case. After that only a
    chat link is picked up; everything else up to the next header (summary
    blocks included) is ignored. A case that never sees a verdict is
    `needs_review`.
    """
    cases: list[ParsedTestCase] = []
    current: Optional[_OpenCase] = None

    for line in (raw_text or "").splitlines():
        header = _HEADER.match(line)
        if header:
            if current is not None:
                cases.append(current.close())
            current = _OpenCase(header.group(3))
            continue

        if current is None:
            continue

        if current.status is not None:
            # Closed: only the chat link may still follow.
            if current.chat_link is None:
                link = _LINK.search(line) or _BARE_URL.match(line)
                if link:
                    current.chat_link = link.group(1)
            continue

        for pattern, status in ((_PASS, STATUS_PASS), (_FAIL, STATUS_FAIL)):
            m = pattern.search(line)
            if m and not _PROGRESS.match(line):
                current.status = status
                if m.group(1).strip():
                    current.reasoning.append(m.group(1).strip())
                break
        else:
            link = _LINK.search(line)
            if link:
                current.chat_link = link.group(1)
            elif line.strip() and not _PROGRESS.match(line):
                current.reasoning.append(line.strip())

    if current is not None:
        cases.append(current.close())
    return cases


def merge_with_definitions(
    cases: Iterable[ParsedTestCase],
    definitions: Iterable[TestDefinition],
) -> list[MergedTestCase]:
    """
    Attach prompt and criteria from test.yml by exact test name.

    Without a match the test name stands in for the prompt and there is no
    ground truth. The runner's reasoning is kept as the agent response since the
    text output never includes the actual reply.
    """
    by_name = definitions_by_name(definitions)
    merged: list[MergedTestCase] = []
    for case in cases:
        definition = by_name.get(case.name)
        merged.append(
            MergedTestCase(
                name=case.name,
                status=case.status,
                prompt=definition.user_input if definition else case.name,
                ground_truth=(definition.criteria or None) if definition else None,
                agent_response=case.evaluation_reasoning or None,
                chat_link=case.chat_link,
            )
        )
    return merged
