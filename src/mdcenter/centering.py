"""Run orchestration: turn a :class:`CenteringConfig` into a finished output.

:func:`center` performs every check that can fail before streaming starts
(files, box, selections, masses, connectivity), then runs the
:class:`TrajectoryPipeline` over the structure or the trajectory files.

Examples
--------
>>> from mdcenter.config import CenteringConfig
>>> config = CenteringConfig(
...     structure="system.gro",
...     trajectories=["md.xtc"],
...     output="centered.xtc",
...     axes=["z"],
... )
>>> stats = center(config)
>>> stats.frames_written
1001
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from mdcenter.config.schema import CenteringConfig
from mdcenter.constants import DEFAULT_INDEX_FILE
from mdcenter.core.points import Weighting, validate_masses
from mdcenter.core.reference import AxisReference, format_axes
from mdcenter.core.transform import FrameTransformer, WrapMode
from mdcenter.exceptions import ConfigurationError
from mdcenter.io.files import backup_file
from mdcenter.io.ndx import read_ndx
from mdcenter.io.universe import (
    StructureSource,
    TrajectorySource,
    UniverseSelectionResolver,
    UniverseWriterSink,
    load_structure,
    molecule_partition,
    structure_box,
    system_masses,
)
from mdcenter.pipeline.pipeline import PipelineStats, TrajectoryPipeline

LOGGER = logging.getLogger(__name__)


def _check_inputs_exist(config: CenteringConfig) -> None:
    missing = [str(p) for p in (config.structure, *config.trajectories) if not p.exists()]
    if config.index is not None and not config.index.exists():
        missing.append(str(config.index))
    if missing:
        raise ConfigurationError(f"Input file(s) not found: {', '.join(missing)}")


def _index_path(config: CenteringConfig) -> Optional[Path]:
    if config.index is not None:
        return config.index
    default = Path(DEFAULT_INDEX_FILE)
    if default.exists():
        LOGGER.info(f"Using default index file {default}")
        return default
    return None


def _check_masses(
    masses: Optional[NDArray[np.float64]], references: list[AxisReference]
) -> None:
    seen = set()
    for ref in references:
        if ref.selection.name in seen:
            continue
        seen.add(ref.selection.name)
        validate_masses(masses, ref.selection.indices, label=ref.selection.name)


def log_run_summary(config: CenteringConfig, index: Optional[Path]) -> None:
    """Log the resolved run settings at INFO level."""
    axes = config.enabled_axes
    LOGGER.info("Centering run:")
    LOGGER.info(f"  Structure:    {config.structure}")
    if config.trajectories:
        LOGGER.info(f"  Trajectories: {', '.join(str(p) for p in config.trajectories)}")
    LOGGER.info(f"  Output:       {config.output}")
    LOGGER.info(f"  Index:        {index if index is not None else 'none'}")
    LOGGER.info(f"  Reference:    {config.reference_spec().describe(axes)}")
    LOGGER.info(f"  Dimensions:   {format_axes(axes)}")
    if config.begin is not None or config.end is not None:
        begin = f"{config.begin:g}" if config.begin is not None else "start"
        end = f"{config.end:g}" if config.end is not None else "end"
        LOGGER.info(f"  Time window:  {begin} - {end} ps")
    if config.step != 1:
        LOGGER.info(f"  Stride:       {config.step}")
    method = "center of mass" if config.weighting == Weighting.MASS else "center of geometry"
    LOGGER.info(f"  Method:       {method}")
    LOGGER.info(f"  Wrapping:     {config.wrap.value}")


def build_transformer(
    config: CenteringConfig, universe, index_groups: Optional[dict] = None
) -> FrameTransformer:
    """Resolve references, masses and molecules into a transformer.

    Raises
    ------
    ConfigurationError, SelectionError
        For anything that prevents centering from starting.
    """
    n_atoms = universe.atoms.n_atoms
    spec = config.reference_spec()
    spec.validate(config.enabled_axes, explicit_axes=config.axes_explicit)

    resolver = UniverseSelectionResolver(universe, index_groups)
    references = spec.resolve(resolver, config.enabled_axes, n_atoms=n_atoms)
    for ref in references:
        LOGGER.info(
            f"Reference for {ref.axis.value}: '{ref.selection.name}' "
            f"({len(ref.selection)} atoms)"
        )

    masses = None
    if config.weighting == Weighting.MASS:
        masses = system_masses(universe)
        _check_masses(masses, references)

    molecules = None
    if config.wrap == WrapMode.MOLECULE:
        molecules = molecule_partition(universe)

    return FrameTransformer(
        references,
        n_atoms=n_atoms,
        masses=masses,
        wrap_mode=config.wrap,
        molecules=molecules,
    )


def center(config: CenteringConfig) -> PipelineStats:
    """Center the structure or trajectories described by ``config``.

    Parameters
    ----------
    config : CenteringConfig
        Validated run configuration.

    Returns
    -------
    PipelineStats
        Counters for the run.

    Raises
    ------
    ConfigurationError
        For missing files, unsupported boxes, missing masses or
        connectivity, or a start time that is never reached.
    SelectionError
        For unknown or empty reference selections.
    TrajectoryReadError, OutputWriteError, FrameProcessingError
        For failures while streaming.
    """
    _check_inputs_exist(config)
    index = _index_path(config)
    log_run_summary(config, index)

    universe = load_structure(config.structure)
    box = structure_box(universe)
    LOGGER.info(f"Structure box: {box.lx:g} x {box.ly:g} x {box.lz:g} Å")

    index_groups = read_ndx(index) if index is not None else None
    transformer = build_transformer(config, universe, index_groups)

    if config.has_trajectories:
        sources = [TrajectorySource(path) for path in config.trajectories]
    else:
        sources = [StructureSource(universe, name=str(config.structure))]

    pipeline = TrajectoryPipeline(
        transformer, begin=config.begin, end=config.end, step=config.step
    )
    pipeline.check_sources(sources)

    if not config.overwrite:
        backup_file(config.output)

    return pipeline.run(sources, UniverseWriterSink(universe, config.output))
