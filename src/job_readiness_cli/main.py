"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from job_readiness_core.config.settings import Settings
from job_readiness_core.exceptions import JobReadinessError
from job_readiness_core.models.config import JobReadinessConfig
from job_readiness_core.models.criteria import CriterionDefinition
from job_readiness_core.models.progress import StudentJobReadiness
from job_readiness_infra.db.engine import create_engine
from job_readiness_infra.db.session import create_session_factory, init_db
from job_readiness_services.observability import bind_student_context, configure_logging
from job_readiness_services.registry import ConfigRegistry
from job_readiness_services.workflow import VerificationWorkflow

T = TypeVar("T")

app = typer.Typer(
    name="job-readiness",
    help="Job readiness configuration and scoring engine",
)
console = Console()


@asynccontextmanager
async def _services(
    settings: Settings,
) -> AsyncIterator[tuple[ConfigRegistry, VerificationWorkflow]]:
    """Build registry and workflow over one engine, disposing it afterwards."""
    engine = create_engine(settings)
    try:
        factory = create_session_factory(engine)
        yield ConfigRegistry(settings, factory), VerificationWorkflow(settings, factory)
    finally:
        await engine.dispose()


def _load_settings(verbose: bool) -> Settings:
    settings = Settings()
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)
    return settings


def _run(coro_factory: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine, turning domain errors into a red message and exit code 1."""
    try:
        return asyncio.run(coro_factory())  # type: ignore[arg-type]
    except JobReadinessError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command("init-db")
def init_db_command(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Create database tables."""
    settings = _load_settings(verbose)

    async def _init() -> None:
        engine = create_engine(settings)
        try:
            await init_db(engine)
        finally:
            await engine.dispose()

    _run(_init)
    console.print("[bold green]Database initialized[/bold green]")


@app.command("seed-defaults")
def seed_defaults(
    created_by: str = typer.Option(..., "--created-by", help="User id of the author"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Create the global Common config with the default criteria."""
    settings = _load_settings(verbose)

    async def _seed() -> JobReadinessConfig:
        async with _services(settings) as (registry, _):
            return await registry.seed_default_config(created_by)

    config = _run(_seed)
    console.print(
        f"[bold green]Seeded[/bold green] {config.school} config "
        f"with {len(config.criteria)} criteria ({config.id})"
    )


@app.command()
def criteria(
    school: str = typer.Argument(..., help="Student's school"),
    campus: str | None = typer.Option(None, "--campus", help="Student's campus id"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Show the effective criteria for a school and campus."""
    settings = _load_settings(verbose)

    async def _resolve() -> list[CriterionDefinition]:
        async with _services(settings) as (_, workflow):
            return await workflow.resolve_effective_criteria(school, campus)

    effective = _run(_resolve)
    if not effective:
        console.print("[yellow]No criteria apply: students are vacuously Job Ready[/yellow]")
        return

    table = Table(title=f"Effective criteria: {school}" + (f" / {campus}" if campus else ""))
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Weight", justify="right")
    table.add_column("Mandatory")
    table.add_column("Proof")
    for c in effective:
        table.add_row(
            c.criteria_id,
            c.name,
            str(c.category),
            f"{c.weight:g}",
            "yes" if c.is_mandatory else "no",
            "yes" if c.needs_proof else "no",
        )
    console.print(table)


@app.command()
def status(
    student_id: str = typer.Argument(..., help="Student id"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Show a student's recomputed readiness."""
    settings = _load_settings(verbose)
    bind_student_context(student_id)

    async def _status() -> StudentJobReadiness:
        async with _services(settings) as (_, workflow):
            return await workflow.get_progress(student_id)

    progress = _run(_status)
    _print_progress(progress)


@app.command()
def recompute(
    school: str = typer.Argument(..., help="School whose students to recompute"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Recompute cached readiness for every student of a school."""
    settings = _load_settings(verbose)

    async def _recompute() -> list[StudentJobReadiness]:
        async with _services(settings) as (_, workflow):
            return await workflow.recompute_school(school)

    refreshed = _run(_recompute)
    ready = sum(1 for p in refreshed if p.is_job_ready)
    console.print(f"[bold]Recomputed[/bold] {len(refreshed)} students in {school}")
    console.print(f"  Computed Job Ready: {ready}")


@app.command()
def approve(
    student_id: str = typer.Argument(..., help="Student id"),
    approver: str = typer.Option(..., "--by", help="Approving PoC or coordinator id"),
    notes: str | None = typer.Option(None, "--notes", help="Approval notes"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Manually approve a student as Job Ready."""
    settings = _load_settings(verbose)
    bind_student_context(student_id, actor_id=approver)

    async def _approve() -> StudentJobReadiness:
        async with _services(settings) as (_, workflow):
            return await workflow.approve_job_ready(student_id, approver, notes)

    progress = _run(_approve)
    console.print(f"[bold green]Approved[/bold green] {student_id} as Job Ready")
    if not progress.is_job_ready:
        console.print(
            f"[yellow]Note: computed readiness is {progress.readiness_percentage}% "
            f"({progress.readiness_status})[/yellow]"
        )


@app.command()
def version() -> None:
    """Show version."""
    console.print("job-readiness-engine v0.1.0")


def _print_progress(progress: StudentJobReadiness) -> None:
    """Render a progress document."""
    console.print(f"[bold]Student:[/bold] {progress.student_id}")
    console.print(f"  School: {progress.school}")
    if progress.campus_id:
        console.print(f"  Campus: {progress.campus_id}")
    console.print(f"  Readiness: {progress.readiness_percentage}% ({progress.readiness_status})")
    console.print(f"  Computed Job Ready: {'yes' if progress.is_job_ready else 'no'}")
    console.print(f"  Approved as Job Ready: {'yes' if progress.approved_as_job_ready else 'no'}")

    if not progress.criteria_status:
        return
    table = Table(title="Criteria")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Proof")
    table.add_column("PoC rating", justify="right")
    for entry in progress.criteria_status:
        label = str(entry.status)
        if entry.was_rejected:
            label += " (rejected)"
        table.add_row(
            entry.criteria_id,
            label,
            entry.proof_url or "",
            str(entry.poc_rating) if entry.poc_rating is not None else "",
        )
    console.print(table)


if __name__ == "__main__":
    app()
