"""MDAnalysis-backed sources, sink and system information providers.

This module connects the centering core to real files:

- :func:`load_structure` reads a GRO/PDB structure into a Universe
- :class:`StructureSource` yields the structure's single frame
- :class:`TrajectorySource` streams one XTC/TRR/DCD file frame by frame
- :class:`UniverseWriterSink` writes centered frames with ``mda.Writer``
- :class:`UniverseSelectionResolver` resolves index groups and
  MDAnalysis selection expressions
- :func:`system_masses` and :func:`molecule_partition` supply masses and
  bond-based molecules

Trajectory files are read with a bare MDAnalysis reader rather than a full
Universe, so each source only holds one frame in memory.

Units follow MDAnalysis conventions (Å, ps); GRO/XTC/TRR nanometres are
converted on read and write.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional, Union

import MDAnalysis as mda
import numpy as np
from MDAnalysis.coordinates.core import get_reader_for
from MDAnalysis.exceptions import NoDataError, SelectionError
from numpy.typing import NDArray

from mdcenter.constants import (
    DEFAULT_REFERENCE,
    PROTEIN_AUTODETECT_SELECTION,
    TIMED_TRAJECTORY_EXTENSIONS,
)
from mdcenter.core.box import Box
from mdcenter.core.molecules import MoleculePartition
from mdcenter.core.reference import Selection
from mdcenter.exceptions import (
    ConfigurationError,
    EmptySelectionError,
    FrameProcessingError,
    InvalidSelectionError,
    MissingConnectivityError,
    MissingMassError,
    OutputWriteError,
    TrajectoryReadError,
)
from mdcenter.io.files import file_extension
from mdcenter.pipeline.frames import Frame
from mdcenter.pipeline.sources import FrameSink, FrameSource

LOGGER = logging.getLogger(__name__)


def load_structure(path: Union[str, Path]) -> mda.Universe:
    """Load a structure file into an MDAnalysis Universe.

    Raises
    ------
    TrajectoryReadError
        If the file cannot be parsed.
    """
    path = Path(path)
    try:
        universe = mda.Universe(str(path))
    except (OSError, ValueError, EOFError) as exc:
        raise TrajectoryReadError(f"Could not read structure file {path}: {exc}") from exc

    LOGGER.info(f"Loaded structure {path}: {universe.atoms.n_atoms} atoms")
    return universe


def structure_box(universe: mda.Universe) -> Box:
    """Box of the structure's current frame (validated, orthogonal)."""
    return Box.from_dimensions(universe.dimensions)


# =============================================================================
# Sources
# =============================================================================


class StructureSource(FrameSource):
    """Single-frame source over a loaded structure.

    Structure files carry no reliable time or step, so the frame has neither.
    """

    has_time = False

    def __init__(self, universe: mda.Universe, name: str = "structure") -> None:
        self.universe = universe
        self.name = name

    @property
    def n_atoms(self) -> int:
        return self.universe.atoms.n_atoms

    def frames(self) -> Iterator[Frame]:
        yield Frame(
            positions=self.universe.atoms.positions,
            box=structure_box(self.universe),
        )


class TrajectorySource(FrameSource):
    """Stream frames from one trajectory file.

    Parameters
    ----------
    path : str or Path
        XTC, TRR or DCD file.

    Notes
    -----
    The reader is opened in :meth:`open` and closed in :meth:`close`; the
    pipeline does both through the context manager protocol.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.name = str(self.path)
        self.has_time = file_extension(self.path) in TIMED_TRAJECTORY_EXTENSIONS
        self._reader = None
        self._n_atoms: Optional[int] = None

    def _open_reader(self):
        try:
            reader_cls = get_reader_for(str(self.path))
            return reader_cls(str(self.path))
        except (OSError, ValueError, TypeError, EOFError) as exc:
            raise TrajectoryReadError(f"Could not open trajectory {self.path}: {exc}") from exc

    @property
    def n_atoms(self) -> int:
        if self._n_atoms is None:
            if self._reader is not None:
                self._n_atoms = self._reader.n_atoms
            else:
                reader = self._open_reader()
                try:
                    self._n_atoms = reader.n_atoms
                finally:
                    reader.close()
        return self._n_atoms

    def open(self) -> None:
        if self._reader is None:
            self._reader = self._open_reader()
            self._n_atoms = self._reader.n_atoms

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None

    def frames(self) -> Iterator[Frame]:
        if self._reader is None:
            raise TrajectoryReadError(f"Trajectory {self.path} has not been opened")

        iterator = iter(self._reader)
        position = 0
        while True:
            try:
                ts = next(iterator)
            except StopIteration:
                return
            except (OSError, ValueError, EOFError) as exc:
                raise TrajectoryReadError(f"Could not read frame from {self.path}: {exc}") from exc

            time = ts.time if self.has_time else None
            try:
                box = Box.from_dimensions(ts.dimensions)
            except ConfigurationError as exc:
                raise FrameProcessingError(
                    str(exc), source=self.name, frame_index=position, time=time, stage="reading"
                ) from exc

            step = ts.data.get("step")
            yield Frame(
                positions=ts.positions,
                box=box,
                time=time,
                step=None if step is None else int(step),
            )
            position += 1


# =============================================================================
# Sink
# =============================================================================


class UniverseWriterSink(FrameSink):
    """Write frames through ``mda.Writer`` using a structure's topology.

    Parameters
    ----------
    universe : mda.Universe
        Universe providing topology (atom names, residues) for the output.
        Its current-frame positions and box are overwritten on every write.
    path : str or Path
        Output file; the format is chosen from the extension.
    """

    def __init__(self, universe: mda.Universe, path: Union[str, Path]) -> None:
        super().__init__()
        self.universe = universe
        self.path = Path(path)
        self.name = str(self.path)
        self._writer = None

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._writer = mda.Writer(str(self.path), n_atoms=self.universe.atoms.n_atoms)
        except (OSError, ValueError, TypeError) as exc:
            raise OutputWriteError(f"Could not open output {self.path}: {exc}") from exc
        LOGGER.info(f"Writing output to {self.path}")

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    def _write(self, frame: Frame) -> None:
        if self._writer is None:
            raise OutputWriteError(f"Output {self.path} has not been opened")

        ts = self.universe.trajectory.ts
        self.universe.atoms.positions = frame.positions
        self.universe.dimensions = frame.box.to_dimensions()
        if frame.time is not None:
            ts.time = frame.time
        if frame.step is not None:
            # XTC/TRR writers take the step from ts.frame
            ts.frame = frame.step
            ts.data["step"] = frame.step

        try:
            self._writer.write(self.universe.atoms)
        except (OSError, ValueError) as exc:
            raise OutputWriteError(f"Could not write to {self.path}: {exc}") from exc


# =============================================================================
# Selections, masses, molecules
# =============================================================================


class UniverseSelectionResolver:
    """Resolve index-group names and MDAnalysis selection expressions.

    Index groups take precedence. If the default reference ("Protein") is
    neither an index group nor a valid expression, protein atoms are
    autodetected with the MDAnalysis ``protein`` keyword.

    Parameters
    ----------
    universe : mda.Universe
        Structure universe.
    index_groups : dict, optional
        Group name to 0-based atom indices (see :func:`mdcenter.io.ndx.read_ndx`).
    """

    def __init__(
        self,
        universe: mda.Universe,
        index_groups: Optional[dict[str, NDArray[np.int64]]] = None,
    ) -> None:
        self.universe = universe
        self.index_groups = index_groups or {}

    def resolve(self, expression: str) -> Selection:
        if expression in self.index_groups:
            selection = Selection.from_indices(expression, self.index_groups[expression])
            selection.check_bounds(self.universe.atoms.n_atoms)
            if len(selection) == 0:
                raise EmptySelectionError(f"Index group '{expression}' is empty")
            return selection

        if expression == DEFAULT_REFERENCE:
            return self._autodetect_protein(expression)

        try:
            atoms = self.universe.select_atoms(expression)
        except (SelectionError, ValueError) as exc:
            raise InvalidSelectionError(f"Invalid selection '{expression}': {exc}") from exc

        if len(atoms) == 0:
            raise EmptySelectionError(f"Selection '{expression}' matched no atoms")
        return Selection.from_indices(expression, atoms.ix)

    def _autodetect_protein(self, expression: str) -> Selection:
        LOGGER.warning(
            f"Group '{expression}' not found. Autodetecting protein atoms..."
        )
        atoms = self.universe.select_atoms(PROTEIN_AUTODETECT_SELECTION)
        if len(atoms) == 0:
            raise EmptySelectionError("No protein atoms autodetected")
        return Selection.from_indices(expression, atoms.ix)


def system_masses(universe: mda.Universe, guess: bool = True) -> NDArray[np.float64]:
    """Per-atom masses from the topology, guessed if absent.

    Parameters
    ----------
    universe : mda.Universe
        Structure universe.
    guess : bool
        Guess masses from atom types when the topology has none.

    Raises
    ------
    MissingMassError
        If masses are neither present nor guessable.
    """
    try:
        return np.asarray(universe.atoms.masses, dtype=np.float64)
    except NoDataError:
        if not guess:
            raise MissingMassError("Topology does not provide atomic masses") from None

    LOGGER.info("Masses not present in topology; guessing from atom types")
    try:
        universe.guess_TopologyAttrs(to_guess=["masses"])
        return np.asarray(universe.atoms.masses, dtype=np.float64)
    except (NoDataError, ValueError) as exc:
        raise MissingMassError(f"Could not guess atomic masses: {exc}") from exc


def molecule_partition(universe: mda.Universe) -> MoleculePartition:
    """Partition atoms into bonded fragments.

    Raises
    ------
    MissingConnectivityError
        If the topology has no bond information.
    """
    try:
        fragments = universe.atoms.fragments
    except NoDataError as exc:
        raise MissingConnectivityError(
            "Whole-molecule wrapping requires bond information, but the structure "
            "file provides none (use a PDB file with CONECT records)"
        ) from exc

    partition = MoleculePartition.from_groups(
        [fragment.ix for fragment in fragments], universe.atoms.n_atoms
    )
    LOGGER.info(f"Found {partition.n_molecules} molecules from bond connectivity")
    return partition
