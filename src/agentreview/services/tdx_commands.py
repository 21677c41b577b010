"""Command lines for the tdx CLI and the predicates that read its output."""

from __future__ import annotations

import re
import shlex
from pathlib import Path

from agentreview.config.settings import settings
from agentreview.models.domain import AgentRef, RunContext


_RESULT_MARKERS = re.compile(
    r"Test Summary|^\s*Test\s+\d+/\d+:|[✓✔✗✘×]\s*(PASS|FAIL)\b",
    re.IGNORECASE | re.MULTILINE,
)


def parse_agent_path(agent_path: str, default_project: str | None = None) -> AgentRef:
    """
    Split "agents/<project>/<agent>" or "<project>/<agent>".

    A bare agent name falls back to `default_project` (may be None).
    """
    parts = [p for p in agent_path.strip().strip("/").split("/") if p]
    if len(parts) >= 3 and parts[0] == "agents":
        return AgentRef(project=parts[1], agent=parts[2])
    if len(parts) >= 2:
        return AgentRef(project=parts[0], agent=parts[1])
    if not parts:
        raise ValueError("agent_path must not be empty")
    return AgentRef(project=default_project, agent=parts[0])


def _with_project(ctx: RunContext, ref: AgentRef, command: str) -> str:
    project = ref.project or ctx.project
    if project:
        return f"{ctx.tdx_bin} use llm_project {shlex.quote(project)} && {command}"
    return command


def build_test_command(ctx: RunContext, ref: AgentRef) -> str:
    return _with_project(ctx, ref, f"{ctx.tdx_bin} agent test {shlex.quote(ref.full_path)}")


def build_pull_command(ctx: RunContext, ref: AgentRef) -> str:
    return _with_project(ctx, ref, f"{ctx.tdx_bin} agent pull {shlex.quote(ref.full_path)}")


def looks_like_test_results(stdout: str) -> bool:
    """
    True when runner output carries test results despite a non-zero exit.

    tdx exits 1 whenever any test fails, so the exit code alone does not mean the
    run broke. All knowledge of the tool's summary format lives here.
    """
    return bool(stdout) and _RESULT_MARKERS.search(stdout) is not None


def build_run_context(project: str | None = None, api_key: str | None = None) -> RunContext:
    """Per-request context from explicit values, falling back to settings."""
    return RunContext(
        project=project or settings.default_project,
        agents_root=Path(settings.agents_root),
        tdx_bin=settings.tdx_bin,
        api_key=api_key or settings.td_api_key,
    )
