"""Command-line interface using Typer."""

from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from batch_engine import __version__
from batch_engine.domain.enums import DeliveryMode, ProjectStatus
from batch_engine.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="batch-engine",
    help="Batch Engine - batch project pricing and status CLI",
    add_completion=False,
)

projects_app = typer.Typer(help="Project management commands")
app.add_typer(projects_app, name="projects")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Batch Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Batch Engine - price batches and track their videos."""
    pass


def _parse_project_id(project_id: str) -> UUID:
    try:
        return UUID(project_id)
    except ValueError:
        console.print(f"[bold red]Invalid project ID: {project_id}[/bold red]")
        raise typer.Exit(code=1)


@app.command()
def quote(
    base_price: str = typer.Argument(..., help="Price of a single video"),
    quantity: int = typer.Option(1, "--quantity", "-q", help="Number of videos"),
    delivery_mode: DeliveryMode = typer.Option(
        DeliveryMode.SEQUENTIAL, "--mode", "-m", help="Delivery mode"
    ),
    base_days: Optional[int] = typer.Option(
        None, "--days", "-d", help="Delivery days for a single video"
    ),
) -> None:
    """Quote the price of a project."""
    from batch_engine.domain.errors import InvalidBatchConfigurationError
    from batch_engine.domain.pricing import (
        calculate_batch_pricing,
        estimate_delivery_days,
        validate_batch_configuration,
    )
    from batch_engine.services.batches import default_pricing_config

    config = default_pricing_config()
    try:
        price = Decimal(base_price)
    except InvalidOperation:
        console.print(f"[bold red]Invalid price: {base_price}[/bold red]")
        raise typer.Exit(code=1)

    try:
        validate_batch_configuration(price, quantity, delivery_mode, config, is_batch=quantity > 1)
    except InvalidBatchConfigurationError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(code=1)

    pricing = calculate_batch_pricing(price, quantity, delivery_mode, config)

    table = Table(title=f"Quote: {quantity} x {pricing.base_price} ({delivery_mode.value})")
    table.add_column("Item", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Discount", f"{pricing.discount_percent}%")
    table.add_row("Subtotal before discount", str(pricing.subtotal_before_discount))
    table.add_row("Subtotal", str(pricing.subtotal))
    table.add_row("Urgency fee", str(pricing.urgency_fee))
    table.add_row("Total", f"[bold]{pricing.total}[/bold]")
    table.add_row("Price per video", str(pricing.price_per_video))
    table.add_row("Platform fee", str(pricing.platform_fee))
    table.add_row("Editor earnings", str(pricing.editor_earnings_total))
    table.add_row("Savings", f"[green]{pricing.savings}[/green]")
    if base_days is not None:
        table.add_row("Estimated delivery", f"{estimate_delivery_days(base_days, quantity, delivery_mode)} days")

    console.print(table)


@projects_app.command("list")
def projects_list(
    archived: bool = typer.Option(False, "--archived", "-a", help="List archived projects"),
) -> None:
    """List projects with their derived status."""
    from batch_engine.db.session import get_session_context
    from batch_engine.services.batches import list_overviews

    with get_session_context() as session:
        overviews = list_overviews(session, archived=archived)

        if not overviews:
            console.print("[dim]No projects found.[/dim]")
            return

        table = Table(title="Archived Projects" if archived else "Projects")
        table.add_column("ID", style="dim")
        table.add_column("Title", style="cyan")
        table.add_column("Videos", justify="right")
        table.add_column("Status")
        table.add_column("Progress", justify="right")
        table.add_column("Total", justify="right")

        for overview in overviews:
            project = overview.project
            progress = overview.progress
            table.add_row(
                str(project.id),
                project.title,
                str(project.batch_quantity),
                overview.status.value,
                f"{progress.percentage}%" if progress else "-",
                str(overview.pricing.total),
            )

        console.print(table)


@projects_app.command("show")
def projects_show(
    project_id: str = typer.Argument(..., help="Project ID (UUID)"),
) -> None:
    """Show a project with its videos, price and progress."""
    from batch_engine.db.session import get_session_context
    from batch_engine.services.batches import ProjectNotFoundError, build_overview, get_project

    project_uuid = _parse_project_id(project_id)

    with get_session_context() as session:
        try:
            overview = build_overview(get_project(session, project_uuid).to_domain())
        except ProjectNotFoundError:
            console.print(f"[bold red]Project not found: {project_id}[/bold red]")
            raise typer.Exit(code=1)

    project = overview.project
    console.print(f"[bold]{project.title}[/bold]")
    console.print(f"Status: [cyan]{overview.status.value}[/cyan]  Column: {overview.column.value}")
    console.print(f"Total: {overview.pricing.total}  Per video: {overview.pricing.price_per_video}")

    if overview.progress:
        progress = overview.progress
        console.print(f"Progress: {progress.completed}/{progress.total} ({progress.percentage}%)")
        if progress.has_delayed:
            console.print(f"[bold red]Delayed: {progress.delayed_count} videos past deadline[/bold red]")

        table = Table(title="Videos")
        table.add_column("#", justify="right")
        table.add_column("Title", style="cyan")
        table.add_column("Status")
        table.add_column("Revisions", justify="right")
        for video in sorted(project.videos, key=lambda v: v.sequence_order):
            table.add_row(str(video.sequence_order), video.title, str(video.status), str(video.revision_count))
        console.print(table)

    if overview.integrity_problems:
        for problem in overview.integrity_problems:
            console.print(f"[yellow]Warning: {problem}[/yellow]")


@projects_app.command("transition")
def projects_transition(
    project_id: str = typer.Argument(..., help="Project ID (UUID)"),
    target: ProjectStatus = typer.Argument(..., help="New status"),
) -> None:
    """Move a single-video project to a new status."""
    from batch_engine.db.session import get_session_context
    from batch_engine.domain.errors import InvalidStateTransitionError
    from batch_engine.services.batches import (
        DerivedStatusError,
        ProjectNotFoundError,
        transition_project,
    )

    project_uuid = _parse_project_id(project_id)

    with get_session_context() as session:
        try:
            transition_project(session, project_uuid, target)
        except ProjectNotFoundError:
            console.print(f"[bold red]Project not found: {project_id}[/bold red]")
            raise typer.Exit(code=1)
        except (DerivedStatusError, InvalidStateTransitionError) as e:
            console.print(f"[bold red]{e}[/bold red]")
            raise typer.Exit(code=1)

    console.print(f"[bold green]✓ Project moved to {target.value}[/bold green]")


@projects_app.command("archive")
def projects_archive(
    project_id: str = typer.Argument(..., help="Project ID (UUID)"),
) -> None:
    """Archive a finished project."""
    from batch_engine.db.session import get_session_context
    from batch_engine.domain.errors import ArchiveNotAllowedError
    from batch_engine.services.batches import ProjectNotFoundError, archive_project

    project_uuid = _parse_project_id(project_id)

    with get_session_context() as session:
        try:
            archive_project(session, project_uuid)
        except ProjectNotFoundError:
            console.print(f"[bold red]Project not found: {project_id}[/bold red]")
            raise typer.Exit(code=1)
        except ArchiveNotAllowedError as e:
            console.print(f"[bold red]Cannot archive: {e.reason}[/bold red]")
            raise typer.Exit(code=1)

    console.print("[bold green]✓ Project archived[/bold green]")


@projects_app.command("unarchive")
def projects_unarchive(
    project_id: str = typer.Argument(..., help="Project ID (UUID)"),
) -> None:
    """Move a project back out of the archive."""
    from batch_engine.db.session import get_session_context
    from batch_engine.services.batches import ProjectNotFoundError, unarchive_project

    project_uuid = _parse_project_id(project_id)

    with get_session_context() as session:
        try:
            unarchive_project(session, project_uuid)
        except ProjectNotFoundError:
            console.print(f"[bold red]Project not found: {project_id}[/bold red]")
            raise typer.Exit(code=1)

    console.print("[bold green]✓ Project unarchived[/bold green]")


@app.command()
def board(
    archived: bool = typer.Option(False, "--archived", "-a", help="Show the archived view"),
) -> None:
    """Show the project board."""
    from batch_engine.db.session import get_session_context
    from batch_engine.services.batches import build_board

    with get_session_context() as session:
        project_board = build_board(session, archived_view=archived)

    table = Table(title="Board")
    for column in project_board.visible:
        table.add_column(f"{column.value} ({len(project_board.columns[column])})")

    depth = max((len(project_board.columns[c]) for c in project_board.visible), default=0)
    for row in range(depth):
        cells = []
        for column in project_board.visible:
            items = project_board.columns[column]
            cells.append(items[row].project.title if row < len(items) else "")
        table.add_row(*cells)

    console.print(table)


@app.command()
def health() -> None:
    """Check the health of the API server."""
    import httpx

    from batch_engine.config import settings

    url = f"http://{settings.api_host}:{settings.api_port}/health/ready"

    try:
        response = httpx.get(url, timeout=10)
        data = response.json()

        table = Table(title="Service Health")
        table.add_column("Component", style="cyan")
        table.add_column("Status")
        table.add_row("Database", "✓" if data.get("database") else "✗")
        console.print(table)

        if data.get("ready"):
            console.print("[bold green]All services healthy![/bold green]")
        else:
            console.print("[bold yellow]Some services unhealthy[/bold yellow]")
            raise typer.Exit(code=1)

    except httpx.RequestError as e:
        console.print(f"[bold red]Cannot connect to API: {e}[/bold red]")
        console.print("[dim]Is the API server running?[/dim]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
