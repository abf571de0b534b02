"""
SiteScene CLI.

Command-line interface for site metrics and scene export.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.config import settings
from .data.sample_site import SAMPLE_NAME, sample_geojson_text
from .export.geojson_export import GeoJSONExporter
from .session.controller import FileReadResult, SessionController
from .utils.logging_config import setup_logging

app = typer.Typer(
    name="sitescene",
    help="SiteScene - site metrics and 3D scene assembly for building footprints",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (default: SITESCENE_LOG_LEVEL)"
    ),
    log_file: bool = typer.Option(
        False, "--log-file", help="Also write JSON logs under SITESCENE_LOG_DIR"
    ),
):
    """
    SiteScene - site metrics and 3D scene assembly for building footprints.
    """
    path = setup_logging(level=log_level, log_to_file=log_file)
    if path is not None:
        console.print(f"[dim]Logging to {path}[/dim]")


def _open_session(
    input_file: Optional[Path],
    coverage: Optional[float],
    floors: Optional[int],
    floor_height: Optional[float],
    points_file: Optional[Path] = None,
) -> SessionController:
    """Load a dataset (or the sample site) and apply parameter overrides."""
    controller = SessionController()

    if input_file is None:
        controller.load_default()
    else:
        if not input_file.exists():
            console.print(f"[red]File not found:[/red] {input_file}")
            raise typer.Exit(1)
        text = input_file.read_text(encoding="utf-8")
        controller.load_upload(FileReadResult(filename=input_file.name, text=text))
    _exit_on_error(controller)

    if points_file is not None:
        controller.set_observation_points(points_file.read_text(encoding="utf-8"))
        _exit_on_error(controller)

    overrides = {
        "lot_coverage_percent": coverage,
        "floor_count": floors,
        "floor_height": floor_height,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        controller.update_parameters(overrides)
        _exit_on_error(controller)

    return controller


def _exit_on_error(controller: SessionController) -> None:
    error = controller.last_error
    if error is None:
        return
    console.print(f"[red]{error.kind}:[/red] {error}")
    for suggestion in error.suggestions:
        console.print(f"  [dim]{suggestion}[/dim]")
    raise typer.Exit(1)


@app.command()
def metrics(
    input_file: Optional[Path] = typer.Argument(None, help="Site .geojson file (default: sample site)"),
    coverage: Optional[float] = typer.Option(None, "--coverage", "-c", help="Lot coverage (%)"),
    floors: Optional[int] = typer.Option(None, "--floors", "-f", help="Number of floors"),
    floor_height: Optional[float] = typer.Option(None, "--floor-height", help="Floor height (m)"),
):
    """
    Compute land area, building area, height and volume for a site.
    """
    controller = _open_session(input_file, coverage, floors, floor_height)
    snapshot = controller.snapshot
    m = snapshot.metrics
    p = snapshot.parameters

    table = Table(title=f"Site metrics: {snapshot.dataset.source_name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Unit", style="dim")

    table.add_row("Land area", f"{m.land_area_m2:,.2f}", "m²")
    table.add_row("Footprint area", f"{m.footprint_area_m2:,.2f}", "m²")
    table.add_row("Building area", f"{m.building_footprint_area_m2:,.2f}", "m²")
    table.add_row("Building height", f"{m.building_height_m:,.2f}", "m")
    table.add_row("Volume", f"{m.volume_m3:,.2f}", "m³")
    table.add_row("Centroid", f"{m.centroid[0]:.6f}, {m.centroid[1]:.6f}", "lon, lat")

    console.print(table)
    console.print(
        f"[dim]Lot coverage {p.lot_coverage_percent:g}% · "
        f"{p.floor_count} floors × {p.floor_height:g} m[/dim]"
    )


@app.command()
def scene(
    input_file: Optional[Path] = typer.Argument(None, help="Site .geojson file (default: sample site)"),
    output: Path = typer.Option(Path("scene.json"), "--output", "-o", help="Output JSON file"),
    points: Optional[Path] = typer.Option(None, "--points", "-p", help="Camera pose JSON"),
    coverage: Optional[float] = typer.Option(None, "--coverage", "-c", help="Lot coverage (%)"),
    floors: Optional[int] = typer.Option(None, "--floors", "-f", help="Number of floors"),
    floor_height: Optional[float] = typer.Option(None, "--floor-height", help="Floor height (m)"),
    pretty: bool = typer.Option(True, "--pretty/--compact", help="Indent JSON output"),
):
    """
    Assemble the 3D scene description and write it as JSON.
    """
    controller = _open_session(input_file, coverage, floors, floor_height, points)
    snapshot = controller.snapshot

    path = GeoJSONExporter(pretty=pretty).export_scene(snapshot.scene, output)
    console.print(Panel.fit(
        f"[bold]Scene written:[/bold] {path}\n"
        f"Extrusion {snapshot.scene.extrusion.elevation:g} m · "
        f"{len(snapshot.scene.markers)} markers",
        border_style="green",
    ))


@app.command()
def sample(
    output: Path = typer.Option(Path(SAMPLE_NAME), "--output", "-o", help="Output .geojson file"),
):
    """
    Write the built-in sample site to disk.
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(sample_geojson_text(), encoding="utf-8")
    console.print(f"[green]Sample site written:[/green] {output}")


@app.command()
def serve(
    host: str = typer.Option(settings.api_host, "--host", help="Bind address"),
    port: int = typer.Option(settings.api_port, "--port", "-p", help="Server port"),
):
    """
    Start the REST API.
    """
    import uvicorn

    console.print(f"[green]SiteScene API running at:[/green] http://{host}:{port}/docs")
    uvicorn.run("sitescene.api.main:app", host=host, port=port)


def main():
    app()


if __name__ == "__main__":
    main()
