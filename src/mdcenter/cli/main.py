"""
mdcenter Command Line Interface.

This module provides the main CLI entry point for mdcenter, using Click
for argument parsing and command organization.

Usage:
    mdcenter --help
    mdcenter center -c system.gro -f md.xtc -o centered.xtc
    mdcenter center -c system.gro -f part1.xtc -f part2.xtc -o out.xtc -z --zref "resname POPC"
    mdcenter center --config center.yaml
    mdcenter validate --config center.yaml
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional, Tuple

import click

LOGGER = logging.getLogger("mdcenter")


@click.group()
@click.version_option(prog_name="mdcenter")
@click.option(
    "-q", "--quiet", is_flag=True, help="Suppress INFO messages, show warnings/errors only"
)
@click.option("--debug", is_flag=True, help="Enable DEBUG logging for troubleshooting")
def cli(quiet: bool, debug: bool) -> None:
    """mdcenter: center molecules in orthogonal periodic boxes.

    Translates trajectories so that a reference group sits at the box
    center, computing the center with a circular mean so groups split
    across periodic boundaries are handled correctly.
    """
    from mdcenter.logging_utils import setup_logging

    setup_logging(quiet=quiet, debug=debug)


def _collect_overrides(
    structure: Optional[str],
    trajectory: Tuple[str, ...],
    index: Optional[str],
    output: Optional[str],
    reference: Optional[str],
    xref: Optional[str],
    yref: Optional[str],
    zref: Optional[str],
    begin: Optional[float],
    end: Optional[float],
    step: Optional[int],
    x: bool,
    y: bool,
    z: bool,
    com: bool,
    whole: bool,
    overwrite: bool,
) -> Dict[str, Any]:
    """Command-line values that were actually given."""
    values: Dict[str, Any] = {
        "structure": structure,
        "index": index,
        "output": output,
        "reference": reference,
        "xref": xref,
        "yref": yref,
        "zref": zref,
        "begin": begin,
        "end": end,
        "step": step,
    }
    data = {k: v for k, v in values.items() if v is not None}

    if trajectory:
        data["trajectories"] = list(trajectory)
    axes = [name for name, enabled in (("x", x), ("y", y), ("z", z)) if enabled]
    if axes:
        data["axes"] = axes
    if com:
        data["weighting"] = "mass"
    if whole:
        data["wrap"] = "molecule"
    if overwrite:
        data["overwrite"] = True
    return data


# =============================================================================
# Center Command
# =============================================================================


@cli.command("center")
@click.option("-c", "--structure", type=click.Path(), help="Structure file (.gro/.pdb)")
@click.option(
    "-f",
    "--trajectory",
    multiple=True,
    type=click.Path(),
    help="Trajectory file (.xtc/.trr/.dcd); repeat to concatenate",
)
@click.option("-n", "--index", type=click.Path(), help="GROMACS index file")
@click.option("-o", "--output", type=click.Path(), help="Output file")
@click.option(
    "-r", "--reference", default=None, help="Reference group or selection (default: Protein)"
)
@click.option("--xref", default=None, help="Reference for the x dimension")
@click.option("--yref", default=None, help="Reference for the y dimension")
@click.option("--zref", default=None, help="Reference for the z dimension")
@click.option("-b", "--begin", type=float, default=None, help="Start time (ps)")
@click.option("-e", "--end", type=float, default=None, help="End time (ps)")
@click.option("-s", "--step", type=int, default=None, help="Write every STEP-th frame")
@click.option("-x", "x", is_flag=True, help="Center along x")
@click.option("-y", "y", is_flag=True, help="Center along y")
@click.option("-z", "z", is_flag=True, help="Center along z")
@click.option("--com", is_flag=True, help="Use center of mass instead of geometry")
@click.option("--whole", is_flag=True, help="Wrap whole molecules (needs bonds)")
@click.option("--overwrite", is_flag=True, help="Overwrite output instead of backing it up")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="YAML configuration; command-line values take precedence",
)
def center_command(config_path: Optional[str], **options: Any) -> None:
    """Center a structure or trajectory on a reference group.

    If no dimension flag (-x/-y/-z) is given, all three dimensions are
    centered. Per-dimension references (--xref/--yref/--zref) replace the
    default reference along their own dimension only.
    """
    from mdcenter.centering import center
    from mdcenter.config.loader import load_config_dict, read_config_data

    data = _collect_overrides(**options)
    if config_path:
        base = read_config_data(config_path)
        base.update(data)
        data = base

    missing = [name for name in ("structure", "output") if name not in data]
    if missing:
        raise click.UsageError(
            f"Missing required option(s): {', '.join('--' + m for m in missing)}"
        )

    config = load_config_dict(data)
    stats = center(config)
    click.echo(f"Wrote {stats.frames_written} frame(s) to {config.output}")


# =============================================================================
# Validate Command
# =============================================================================


@cli.command()
@click.option(
    "-c",
    "--config",
    required=True,
    type=click.Path(exists=True),
    help="Path to YAML configuration file",
)
def validate(config: str) -> None:
    """Validate a YAML configuration without running it."""
    from mdcenter.config.schema import CenteringConfig
    from mdcenter.core.reference import format_axes

    click.echo(f"Validating configuration: {config}")
    run_config = CenteringConfig.from_yaml(config)

    click.echo("Configuration is valid")
    click.echo(f"  Structure:  {run_config.structure}")
    for trajectory in run_config.trajectories:
        click.echo(f"  Trajectory: {trajectory}")
    click.echo(f"  Output:     {run_config.output}")
    click.echo(f"  Reference:  {run_config.reference_spec().describe(run_config.enabled_axes)}")
    click.echo(f"  Dimensions: {format_axes(run_config.enabled_axes)}")
    click.echo(f"  Weighting:  {run_config.weighting.value}")
    click.echo(f"  Wrapping:   {run_config.wrap.value}")


# =============================================================================
# Info Command
# =============================================================================


@cli.command()
def info() -> None:
    """Show version and dependency information."""
    import mdcenter

    click.echo(f"mdcenter version: {mdcenter.__version__}")
    click.echo()
    click.echo("Dependencies:")

    for module_name in ("numpy", "MDAnalysis", "pydantic", "yaml", "click"):
        try:
            module = __import__(module_name)
            version = getattr(module, "__version__", "unknown")
            click.echo(f"  {module_name}: {version}")
        except ImportError:
            click.echo(f"  {module_name}: not installed")


def main() -> int:
    """Main entry point."""
    try:
        cli()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
