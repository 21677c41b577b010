from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class RunContext:
    """
    Request-scoped settings for one pipeline invocation.

    Replaces a process-wide "current project": everything that used to read the
    global gets this value passed in instead.
    """

    project: str | None = None
    agents_root: Path = Path(".")
    tdx_bin: str = "tdx"
    api_key: str | None = None


@dataclass(frozen=True)
class AgentRef:
    project: str | None
    agent: str

    @property
    def agent_id(self) -> str:
        return f"{self.project}/{self.agent}" if self.project else self.agent

    @property
    def full_path(self) -> str:
        """TDX resource path: agents/<project>/<agent>."""
        if self.project:
            return f"agents/{self.project}/{self.agent}"
        return self.agent


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    stderr: str
    exit_code: int
    timed_out: bool = False
    duration_ms: int = 0

    @property
    def combined_output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


@dataclass(frozen=True)
class TestDefinition:
    __test__ = False

    name: str
    user_input: str
    criteria: str = ""


@dataclass(frozen=True)
class ParsedTestCase:
    name: str
    status: str  # pass / fail / needs_review
    evaluation_reasoning: str
    chat_link: str | None = None


@dataclass(frozen=True)
class MergedTestCase:
    name: str
    status: str
    prompt: str
    ground_truth: str | None
    agent_response: str | None
    chat_link: str | None = None


@dataclass(frozen=True)
class Verdict:
    verdict: str  # pass / fail
    reasoning: str


@dataclass(frozen=True)
class HistoryEntry:
    """One chat history item: exactly one of submitted_text / generated_text is set."""

    at: datetime | None
    submitted_text: str | None = None
    generated_text: str | None = None

    @property
    def is_generated(self) -> bool:
        return self.generated_text is not None


@dataclass(frozen=True)
class LlmJudgeResult:
    verdict: str
    reasoning: str
    conversation_url: str
    test_number: int
    total_tests: int
    test_name: str
    prompt: str
    evaluated_at: str
    evaluator_agent_id: str | None = None
    error: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LlmJudgeResult":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


@dataclass(frozen=True)
class RecoveryOutcome:
    agent_path: str
    category: str
    definitions_path: Path
    definitions: list[TestDefinition] = field(default_factory=list)
    pulled: bool = False
    should_retry: bool = True


@dataclass(frozen=True)
class PipelineResult:
    test_run_id: str
    status: str  # completed / failed
    test_case_count: int = 0
    test_case_ids: list[str] = field(default_factory=list)
    error: str | None = None
    raw_output: str | None = None
    recovery_attempted: bool = False
    judged_count: int = 0
