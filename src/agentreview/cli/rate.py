"""CLI command for reviewer ratings."""

from __future__ import annotations

import typer
from rich.console import Console
from sqlalchemy.orm import sessionmaker

from agentreview.db.engine import build_engine
from agentreview.db.init_db import ensure_db
from agentreview.errors import NotFoundError, ValidationError
from agentreview.repos.evaluation_repo import EvaluationRepository

console = Console()


def rate_cmd(
    evaluation_id: str = typer.Argument(..., help="Evaluation ID"),
    rating: str = typer.Option(..., "--rating", help="pass, fail or none"),
    notes: str = typer.Option(None, "--notes", help="Reviewer notes (required for fail unless already set)"),
) -> None:
    """Rate a test case."""
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)

    changes = {"rating": None if rating.lower() == "none" else rating.lower()}
    if notes is not None:
        changes["notes"] = notes

    with SessionLocal() as session:
        try:
            row = EvaluationRepository(session).update(evaluation_id, **changes)
        except (NotFoundError, ValidationError) as e:
            console.print(f"[red]✗[/red] Error: {e}")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] Evaluation {row.id} rating={row.rating or 'unrated'}")
