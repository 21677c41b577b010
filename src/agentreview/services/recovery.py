"""
One-shot recovery for agents that have no test definitions.

When `tdx agent test` fails because the agent has no test.yml, we write a
deterministic three-test fallback file and let the caller run the tests once
more. Recovery never loops: the pipeline calls `recover` at most once per run.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from agentreview.config.settings import settings
from agentreview.errors import MissingTestDefinitions
from agentreview.models.domain import (
    AgentRef,
    CommandResult,
    ParsedTestCase,
    RecoveryOutcome,
    RunContext,
)
from agentreview.services.agent_templates import classify_agent, templates_for
from agentreview.services.process_runner import CommandRunner, execute_command
from agentreview.services.tdx_commands import build_pull_command
from agentreview.services.test_definitions import (
    agent_dir,
    definitions_path,
    write_test_definitions,
)

logger = logging.getLogger(__name__)

MISSING_DEFINITION_PHRASES = (
    "no tests found",
    "no test file",
    "test.yml not found",
    "test file not found",
    "missing test file",
    "no test cases",
    "tests not defined",
    "run test-init",
)

INSTRUCTION_FILES = ("prompt.md", "instructions.md", "system_prompt.md")


def mentions_missing_definitions(text: str) -> bool:
    lowered = (text or "").lower()
    return any(phrase in lowered for phrase in MISSING_DEFINITION_PHRASES)


def needs_recovery(result: CommandResult, cases: Sequence[ParsedTestCase]) -> bool:
    """Non-zero exit, nothing parsed, and the runner said the tests are missing."""
    return (
        result.exit_code != 0
        and not cases
        and mentions_missing_definitions(result.combined_output)
    )


def read_agent_instructions(directory: Path) -> Optional[str]:
    for name in INSTRUCTION_FILES:
        candidate = directory / name
        if candidate.is_file():
            text = candidate.read_text(encoding="utf-8").strip()
            if text:
                return text
    return None


class TestFileRecoveryService:
    """Synthesizes a fallback test.yml for an agent."""

    __test__ = False

    def __init__(self, ctx: RunContext, runner: CommandRunner = execute_command):
        self.ctx = ctx
        self.runner = runner

    def ensure_agent_pulled(self, ref: AgentRef) -> bool:
        """Pull the agent when its local directory is missing. Returns True if pulled."""
        directory = agent_dir(self.ctx.agents_root, ref)
        if directory.exists():
            return False

        logger.info("Agent directory %s missing, pulling %s", directory, ref.full_path)
        result = self.runner(
            build_pull_command(self.ctx, ref),
            timeout_s=settings.recovery_timeout_s,
            cwd=str(self.ctx.agents_root),
            api_key=self.ctx.api_key,
        )
        if result.exit_code != 0:
            # Still write a generic file below; the retry will report the real problem.
            logger.warning("Pull of %s failed (exit %s): %s", ref.full_path, result.exit_code, result.stderr)
        return True

    def recover(self, ref: AgentRef) -> RecoveryOutcome:
        pulled = self.ensure_agent_pulled(ref)
        directory = agent_dir(self.ctx.agents_root, ref)
        instructions = read_agent_instructions(directory) if directory.exists() else None

        category = classify_agent(ref.agent, instructions)
        definitions = templates_for(category, has_instructions=instructions is not None)
        if instructions is None:
            logger.info("No instructions for %s, using generic fallback", ref.agent_id)

        path = definitions_path(self.ctx.agents_root, ref)
        try:
            write_test_definitions(path, definitions, agent_name=ref.agent)
        except OSError as e:
            raise MissingTestDefinitions(f"Could not write fallback tests to {path}: {e}") from e

        logger.info("Recovered %s as %r with %d tests", ref.agent_id, category, len(definitions))
        return RecoveryOutcome(
            agent_path=ref.full_path,
            category=category,
            definitions_path=path,
            definitions=definitions,
            pulled=pulled,
            should_retry=True,
        )
