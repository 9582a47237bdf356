"""
Command-line interface for skeleton dimensions.

This module provides a command-line interface for dimensioning frame models:
- generate: Dimension the selected component of a scene and report the result
- beams: List the discovered beams and how they classify in a view
- init-config: Write a settings file with the default layout rules

Usage:
    skeldim generate wall.yaml --svg wall.svg
    skeldim generate frame.step --view front --config settings.yaml
    skeldim beams wall.yaml --view left
    skeldim init-config settings.yaml
"""

from pathlib import Path

import click

from .config import DimensionSettings
from .constants import VERSION, VIEW_DIRECTIONS, VIEW_UP_VECTORS
from .document import Camera, Document
from .drawing import SkeletonDrawing
from .engine import DimensionPlanner, SkeletonDimensioner
from .errors import SkeletonDimensionsError
from .layers import selected_component_instance
from .scene_io import load_scene
from .view import ViewBasis

STEP_SUFFIXES = (".step", ".stp")


@click.group()
@click.version_option(version=VERSION)
def cli():
    """skeldim - construction dimensions for timber frame models."""
    pass


def _load_document(scene: Path, view: str | None) -> Document:
    """Load a YAML scene or a STEP file; ``view`` overrides the scene's camera."""
    if scene.suffix.lower() in STEP_SUFFIXES:
        # Imported lazily: CadQuery is slow to import
        from .cadquery_scene import document_from_step
        return document_from_step(scene, view or "front")
    doc = load_scene(scene)
    if view:
        doc.camera = Camera(direction=VIEW_DIRECTIONS[view], up=VIEW_UP_VECTORS[view])
    return doc


def _load_settings(config: Path | None, debug: bool) -> DimensionSettings:
    settings = DimensionSettings.from_yaml(config) if config else DimensionSettings()
    if debug:
        settings.debug = True
    return settings


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


view_option = click.option(
    "--view", "-v",
    type=click.Choice(list(VIEW_DIRECTIONS)),
    default=None,
    help="Standard view to dimension in (default: the scene's camera).",
)


@cli.command()
@click.argument("scene", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@view_option
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings YAML file (see 'skeldim init-config').",
)
@click.option(
    "--svg",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write an SVG drawing of the dimensioned frame.",
)
@click.option("--debug", is_flag=True, help="Print diagnostic output.")
def generate(
    scene: Path,
    view: str | None,
    config: Path | None,
    svg: Path | None,
    debug: bool,
):
    """
    Dimension the selected component of SCENE.

    SCENE is a YAML scene file or a STEP file. STEP files are dimensioned as
    one component holding every solid.

    Example:
        skeldim generate wall.yaml --view front --svg wall.svg
    """
    try:
        settings = _load_settings(config, debug)
        doc = _load_document(scene, view)
        dimensioner = SkeletonDimensioner(doc, settings)
        count = dimensioner.generate()
    except (SkeletonDimensionsError, ValueError, OSError) as e:
        _fail(str(e))
        return

    plan = dimensioner.last_plan
    assert plan is not None

    click.echo(f"\nDimensioned: {scene}")
    click.echo("-" * 50)
    if plan.records:
        click.echo(f"{'Type':<16}{'Axis/side':<12}{'Length (mm)':>12}  Source")
        for record in plan.records:
            side = record.axis or record.bucket or ""
            click.echo(f"{record.dimension_type:<16}{side:<12}{record.length:>12.1f}  {record.source}")
        click.echo("-" * 50)
    click.echo(
        f"Created {count} dimension(s): "
        f"{len(plan.of_type('cumulative'))} cumulative, "
        f"{len(plan.of_type('beam_length'))} beam length, "
        f"{len(plan.of_type('frame_diagonal'))} diagonal"
    )
    if plan.capped:
        click.echo(f"Dimension cap of {settings.max_dimensions} reached; remaining dimensions skipped.")

    if svg:
        drawing = SkeletonDrawing(
            view=plan.view,
            beams=[cb.beam for cb in plan.classified],
            dimensions=plan.records,
            title=f"{scene.stem} - {view or 'camera'} view",
        )
        drawing.export_svg(str(svg))
        click.echo(f"Drawing saved to: {svg}")


@cli.command()
@click.argument("scene", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@view_option
def beams(scene: Path, view: str | None):
    """
    List the beams of the selected component of SCENE.

    Non-structural parts (below the minimum beam span) are listed with a "-"
    instead of an axis label.
    """
    try:
        doc = _load_document(scene, view)
        instance = selected_component_instance(doc.selection)
    except (SkeletonDimensionsError, ValueError, OSError) as e:
        _fail(str(e))
        return

    plan = DimensionPlanner(ViewBasis.from_camera(doc.camera)).plan(instance)
    axis_of = {id(cb.beam): cb.axis for cb in plan.classified}

    click.echo(f"\nBeams of: {instance.name or instance.definition.name}")
    click.echo("-" * 50)
    click.echo(f"{'Name':<24}{'Axis':<12}{'H (mm)':>10}{'V (mm)':>10}")
    for beam in plan.beams:
        axis = axis_of.get(id(beam), "-")
        click.echo(f"{beam.name[:23]:<24}{axis:<12}{beam.h_extent:>10.1f}{beam.v_extent:>10.1f}")
    click.echo("-" * 50)
    click.echo(f"{len(plan.classified)} structural of {len(plan.beams)} beam(s)")


@cli.command("init-config")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def init_config(output: Path, force: bool):
    """Write the default settings to OUTPUT as YAML."""
    if output.exists() and not force:
        _fail(f"{output} already exists (use --force to overwrite)")
        return
    DimensionSettings().to_yaml(output)
    click.echo(f"Settings saved to: {output}")


if __name__ == "__main__":
    cli()
