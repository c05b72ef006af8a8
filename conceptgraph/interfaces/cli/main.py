"""
CLI Main - Typer-based command-line interface.

Usage:
    conceptgraph build --force
    conceptgraph prerequisites calculus
    conceptgraph path sets calculus
    conceptgraph centrality --limit 5
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from conceptgraph.config import ConceptGraphError, Settings, get_settings
from conceptgraph.domains.building import (
    BuildReport,
    DirectoryContentSource,
    MetadataExtractionAdapter,
)
from conceptgraph.domains.orchestration import GraphService

app = typer.Typer(
    name="conceptgraph",
    help="ConceptGraph - Knowledge graph builder and query engine",
    add_completion=False,
)
console = Console()

ContentOption = typer.Option(None, "--content", "-c", help="Content directory")


def _service(content_dir: Path | None, strict: bool = False) -> GraphService:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    update: dict[str, object] = {}
    if content_dir is not None:
        update["content_dir"] = content_dir
    if strict:
        update["strict_validation"] = True
    if update:
        settings = settings.model_copy(update=update)

    source = DirectoryContentSource(
        settings.content_dir,
        exclude=_excluded_names(settings),
    )
    return GraphService(MetadataExtractionAdapter(), source, settings=settings)


def _excluded_names(settings: Settings) -> tuple[str, ...]:
    if settings.manual_edges_path is None:
        return ()
    return (settings.manual_edges_path.name,)


def _load(service: GraphService, force: bool = False) -> BuildReport:
    """Build or load the graph, exiting on failure."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Building graph...", total=None)
        try:
            return asyncio.run(service.rebuild(force=force))
        except ConceptGraphError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            if e.details:
                console.print(f"[dim]{e.details}[/dim]")
            raise typer.Exit(1)


def _query(service: GraphService, name: str, params: dict[str, object]):
    try:
        return service.run_algorithm(name, params)
    except ConceptGraphError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)


@app.command()
def build(
    content: Path | None = ContentOption,
    force: bool = typer.Option(False, "--force", "-f", help="Ignore the graph cache"),
    strict: bool = typer.Option(False, "--strict", help="Fail on integrity defects"),
) -> None:
    """Build the graph from content and persist the snapshot."""
    service = _service(content, strict=strict)
    report = _load(service, force=force)

    table = Table(title="Build Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("From Cache", "yes" if report.from_cache else "no")
    table.add_row("Units Discovered", str(report.units_discovered))
    table.add_row("Units Extracted", str(report.units_extracted))
    table.add_row("Units Reused", str(report.units_reused))
    table.add_row("Nodes", str(report.node_count))
    table.add_row("Edges", str(report.edge_count))
    table.add_row("Manual Edges", str(report.manual_edges_applied))
    table.add_row("Defects", str(report.defect_count))

    console.print(table)

    for defect in report.extraction_defects:
        console.print(f"  [yellow]![/yellow] {defect.path}: {defect.message}")
    for duplicate in report.duplicate_nodes:
        console.print(
            f"  [yellow]![/yellow] duplicate {duplicate.node_id}: "
            f"kept {duplicate.kept_path}, dropped {duplicate.dropped_path}"
        )


@app.command()
def info(content: Path | None = ContentOption) -> None:
    """Show graph statistics."""
    service = _service(content)
    _load(service)
    stats = service.info()

    table = Table(title="Graph Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Nodes", str(stats.total_nodes))
    table.add_row("Canonical", str(stats.canonical_nodes))
    table.add_row("Variants", str(stats.variant_nodes))
    table.add_row("Edges", str(stats.total_edges))
    table.add_row("Dangling Edges", str(stats.dangling_edges))
    for relationship, count in sorted(stats.edges_by_relationship.items()):
        table.add_row(f"  {relationship}", str(count))

    console.print(table)


@app.command()
def validate(content: Path | None = ContentOption) -> None:
    """Report dangling edges, orphan variants and canonical cycles."""
    service = _service(content)
    _load(service)
    report = service.validate()

    if report.is_valid:
        console.print("[green]Graph is valid[/green]")
        return

    lines = [
        f"[red]-[/red] {d.source_id} -[{d.relationship}]-> {d.target_id}"
        for d in report.dangling_edges
    ]
    lines += [
        f"[yellow]-[/yellow] orphan variant {d.node_id} ({d.reason.value})"
        for d in report.orphan_variants
    ]
    lines += [f"[magenta]-[/magenta] cycle {' -> '.join(d.node_ids)}" for d in report.canonical_cycles]
    console.print(Panel("\n".join(lines), title=report.summary(), style="yellow"))
    raise typer.Exit(1)


@app.command()
def path(
    from_id: str = typer.Argument(..., help="Start node id"),
    to_id: str = typer.Argument(..., help="End node id"),
    relationship: list[str] | None = typer.Option(
        None, "--relationship", "-r", help="Only follow these relationships"
    ),
    content: Path | None = ContentOption,
) -> None:
    """Find the lowest-cost path between two concepts."""
    service = _service(content)
    _load(service)

    params: dict[str, object] = {"from_id": from_id, "to_id": to_id}
    if relationship:
        params["relationships"] = relationship
    result = _query(service, "path", params)

    if not result.found:
        console.print(f"[yellow]No path from {from_id} to {to_id}[/yellow]")
        raise typer.Exit(1)

    for edge in result.edges:
        console.print(f"  {edge.describe()} [dim](weight {edge.weight:g})[/dim]")
    console.print(f"\n[dim]{result.hops} hops, cost {result.total_cost:.3f}[/dim]")


@app.command()
def prerequisites(
    node_id: str = typer.Argument(..., help="Target node id"),
    depth: int | None = typer.Option(None, "--depth", "-d", help="Maximum depth"),
    order: bool = typer.Option(False, "--order", help="Show as a study order"),
    content: Path | None = ContentOption,
) -> None:
    """Show everything a concept depends on."""
    service = _service(content)
    _load(service)

    if order:
        result = _query(service, "learning_order", {"node_id": node_id})
        for i, node in enumerate(result.ordered, 1):
            console.print(f"  {i}. {node.title} [dim]({node.id})[/dim]")
        return

    params: dict[str, object] = {"node_id": node_id}
    if depth is not None:
        params["max_depth"] = depth
    result = _query(service, "prerequisites", params)

    console.print(f"\n[bold cyan]{result.target.title}[/bold cyan]")
    for distance, layer in enumerate(result.layers, 1):
        console.print(f"[bold]Depth {distance}:[/bold] " + ", ".join(n.id for n in layer))
    if result.depth_limited:
        console.print(f"[dim]Stopped at depth {result.max_depth}[/dim]")
    for cycle in result.cycles:
        console.print(f"[yellow]Cycle:[/yellow] {' -> '.join(cycle)}")


@app.command()
def neighborhood(
    node_id: str = typer.Argument(..., help="Center node id"),
    radius: int = typer.Option(1, "--radius", "-r", help="Hops from the center"),
    content: Path | None = ContentOption,
) -> None:
    """Show the concepts within a radius of a node."""
    service = _service(content)
    _load(service)
    result = _query(service, "neighborhood", {"node_id": node_id, "radius": radius})

    table = Table(title=f"Neighborhood of {result.center.id}")
    table.add_column("Node", style="cyan")
    table.add_column("Title")
    table.add_column("Distance", style="green")
    for node in result.nodes:
        table.add_row(node.id, node.title, str(result.distances[node.id]))
    console.print(table)


@app.command()
def centrality(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of results"),
    content: Path | None = ContentOption,
) -> None:
    """Rank concepts by betweenness centrality."""
    service = _service(content)
    _load(service)
    result = _query(service, "centrality", {"limit": limit})

    table = Table(title="Centrality")
    table.add_column("Node", style="cyan")
    table.add_column("Title")
    table.add_column("Score", style="green")
    for score in result.scores:
        table.add_row(score.node_id, score.title, f"{score.score:.4f}")
    console.print(table)


@app.command()
def bridges(content: Path | None = ContentOption) -> None:
    """List edges whose removal splits the graph."""
    service = _service(content)
    _load(service)
    result = _query(service, "bridges", {})

    if not result.edges:
        console.print("[green]No bridge edges[/green]")
        return
    for edge in result.edges:
        console.print(f"  {edge.describe()}")


@app.command()
def version() -> None:
    """Show version information."""
    from conceptgraph import __version__

    console.print(f"ConceptGraph v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
