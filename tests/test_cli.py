"""CLI tests: every command against the temp DB from settings."""

from __future__ import annotations

import stat

from sqlalchemy.orm import sessionmaker
from typer.testing import CliRunner

from agentreview.cli.app import app
from agentreview.config.settings import settings
from agentreview.db.engine import build_engine
from agentreview.db.init_db import ensure_db
from agentreview.models.domain import MergedTestCase
from agentreview.repos.evaluation_repo import EvaluationRepository
from agentreview.repos.runs_repo import TestRunRepository
from agentreview.repos.test_case_repo import TestCaseRepository

from conftest import SAMPLE_OUTPUT

runner = CliRunner()


def _session_factory():
    engine = build_engine()
    ensure_db(engine)
    return sessionmaker(bind=engine)


def _seed_run() -> tuple[str, str]:
    SessionLocal = _session_factory()
    with SessionLocal() as s:
        run = TestRunRepository(s).create(agent_id="projA/agentB", agent_path="projA/agentB")
        TestCaseRepository(s).add_with_evaluation(
            run.id, MergedTestCase("Greeting", "pass", "hi", None, "hello"), position=0
        )
        s.commit()
        TestRunRepository(s).mark_completed(run.id, raw_output=SAMPLE_OUTPUT)
        ev = EvaluationRepository(s).list_by_run(run.id)[0]
        return run.id, ev.id


def _fake_tdx(tmp_path, monkeypatch):
    sample = tmp_path / "sample.txt"
    sample.write_text(SAMPLE_OUTPUT, encoding="utf-8")
    script = tmp_path / "fake_tdx"
    script.write_text(
        "#!/bin/sh\n"
        'if [ "$1" = "use" ]; then exit 0; fi\n'
        f'if [ "$2" = "test" ]; then cat "{sample}"; exit 1; fi\n'
        "exit 3\n",
        encoding="utf-8",
    )
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    monkeypatch.setattr(settings, "tdx_bin", str(script))


def test_init_db():
    result = runner.invoke(app, ["init-db"])
    assert result.exit_code == 0
    assert "Database initialized" in result.output


def test_run_test_with_fake_tdx(tmp_path, monkeypatch):
    _fake_tdx(tmp_path, monkeypatch)

    result = runner.invoke(app, ["run-test", "projA/agentB", "--skip-judge"])
    assert result.exit_code == 0, result.output
    assert "Completed with 2 test cases" in result.output

    with _session_factory()() as s:
        runs = TestRunRepository(s).list_all()
        assert len(runs) == 1
        assert runs[0].status == "completed"


def test_list_and_show_run():
    run_id, _ = _seed_run()

    result = runner.invoke(app, ["list-runs"])
    assert result.exit_code == 0
    assert "Test runs" in result.output

    result = runner.invoke(app, ["show-run", run_id])
    assert result.exit_code == 0, result.output
    assert "status=completed" in result.output

    assert runner.invoke(app, ["show-run", "missing"]).exit_code == 1


def test_rate_requires_notes_for_fail():
    _, ev_id = _seed_run()

    result = runner.invoke(app, ["rate", ev_id, "--rating", "fail"])
    assert result.exit_code == 1
    assert "Notes are required" in result.output

    result = runner.invoke(app, ["rate", ev_id, "--rating", "fail", "--notes", "Too terse"])
    assert result.exit_code == 0
    assert "rating=fail" in result.output

    result = runner.invoke(app, ["rate", ev_id, "--rating", "none"])
    assert result.exit_code == 0
    assert "rating=unrated" in result.output


def test_delete_run():
    run_id, _ = _seed_run()
    result = runner.invoke(app, ["delete-run", run_id])
    assert result.exit_code == 0
    assert "Deleted test run" in result.output
    assert runner.invoke(app, ["delete-run", run_id]).exit_code == 1


def test_recover_tests_writes_fallback_file(tmp_path):
    agent_dir = tmp_path / "workspace" / "agents" / "projA" / "mathbot"
    agent_dir.mkdir(parents=True)
    (agent_dir / "prompt.md").write_text("A calculator for arithmetic.", encoding="utf-8")

    result = runner.invoke(app, ["recover-tests", "projA/mathbot"])
    assert result.exit_code == 0, result.output
    assert "Wrote 3 arithmetic tests" in result.output
    assert (agent_dir / "test.yml").exists()
