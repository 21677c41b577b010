from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.orm import sessionmaker

from agentreview.cli.rate import rate_cmd
from agentreview.cli.run_test import run_test_cmd
from agentreview.db.engine import build_engine
from agentreview.db.init_db import ensure_db, init_db
from agentreview.logging_config import configure_logging
from agentreview.repos.evaluation_repo import EvaluationRepository
from agentreview.repos.runs_repo import TestRunRepository
from agentreview.repos.test_case_repo import TestCaseRepository, load_llm_judge_result
from agentreview.services.consistency import fetch_run_evaluations
from agentreview.services.recovery import TestFileRecoveryService
from agentreview.services.tdx_commands import build_run_context, parse_agent_path

app = typer.Typer(help="agentreview CLI (run agent tests, review results).")
console = Console()


@app.callback()
def _root(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")) -> None:
    configure_logging("DEBUG" if verbose else None)


@app.command("init-db")
def init_db_cmd(
    reset: bool = typer.Option(False, "--reset", help="Drop existing tables first."),
) -> None:
    engine = build_engine()
    if reset:
        init_db(engine)
    else:
        ensure_db(engine)
    typer.echo("✅ Database initialized and reachable.")


@app.command("list-runs")
def list_runs_cmd(limit: int = typer.Option(20, help="Max runs to show.")) -> None:
    """List recent test runs."""
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)

    with SessionLocal() as session:
        runs = TestRunRepository(session).list_all(limit=limit)
        table = Table(title="Test runs")
        table.add_column("ID", style="cyan")
        table.add_column("Agent", style="magenta")
        table.add_column("Executed", style="white")
        table.add_column("Status", style="green")
        for r in runs:
            table.add_row(r.id, r.agent_id, r.executed_at.isoformat(timespec="seconds"), r.status)
    console.print(table)


@app.command("show-run")
def show_run_cmd(run_id: str = typer.Argument(..., help="Test run ID")) -> None:
    """Show a run's test cases with their evaluations."""
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)

    with SessionLocal() as session:
        run = TestRunRepository(session).get(run_id)
        if run is None:
            console.print(f"[red]✗[/red] Test run {run_id} not found")
            raise typer.Exit(1)

        console.print(f"[bold blue]{run.agent_id}[/bold blue] status={run.status}")
        if run.status == "failed":
            console.print(run.error_text or "")
            return

        evaluations = {e.test_case_id: e for e in fetch_run_evaluations(SessionLocal, run_id)}
        summary = EvaluationRepository(session).summary_for_run(run_id)

        table = Table(title=f"Test cases ({summary.passed} pass / {summary.failed} fail / {summary.unrated} unrated)")
        table.add_column("Test", style="cyan")
        table.add_column("Runner", style="magenta")
        table.add_column("Judge", style="yellow")
        table.add_column("Rating", style="green")
        table.add_column("Evaluation ID", style="white")
        for case in TestCaseRepository(session).list_by_run(run_id):
            judged = load_llm_judge_result(case)
            ev = evaluations.get(case.id)
            table.add_row(
                case.name,
                case.runner_status,
                judged.verdict if judged else "-",
                (ev.rating or "unrated") if ev else "-",
                ev.id if ev else "-",
            )
    console.print(table)


@app.command("delete-run")
def delete_run_cmd(run_id: str = typer.Argument(..., help="Test run ID")) -> None:
    """Delete a run together with its test cases and evaluations."""
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)

    with SessionLocal() as session:
        deleted = TestRunRepository(session).delete(run_id)
    if not deleted:
        console.print(f"[red]✗[/red] Test run {run_id} not found")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Deleted test run {run_id}")


@app.command("recover-tests")
def recover_tests_cmd(
    agent_path: str = typer.Argument(..., help='Agent as "project/agent".'),
    project: str = typer.Option(None, "--project", help="Project to use when agent_path has none."),
) -> None:
    """Write fallback test definitions for an agent without running its tests."""
    ctx = build_run_context(project=project)
    outcome = TestFileRecoveryService(ctx).recover(parse_agent_path(agent_path, ctx.project))
    console.print(
        f"[green]✓[/green] Wrote {len(outcome.definitions)} {outcome.category} tests to {outcome.definitions_path}"
    )


app.command("run-test")(run_test_cmd)
app.command("rate")(rate_cmd)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
