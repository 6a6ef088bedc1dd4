"""Per-frame translate-and-wrap transformation.

:class:`FrameTransformer` applies the centering translation to every atom
of a frame and then wraps the result back into the primary box, either atom
by atom or molecule by molecule.

Wrap Modes
----------
**atom** (default)
    Every atom is wrapped into ``[0, L)`` independently. Molecules crossing
    a boundary end up split, but every coordinate lies in the box.

**molecule**
    Each molecule is moved by one integer number of box lengths, chosen so
    that its geometric center lies in the box. Internal geometry is
    untouched (the molecule moves as a rigid body); individual atoms may
    stick out of the box. Requires a :class:`MoleculePartition`.

Only enabled axes are translated and wrapped; disabled axes are left exactly
as read.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from mdcenter.core.box import minimum_image_shift, wrap
from mdcenter.core.circular import compute_translation
from mdcenter.core.molecules import MoleculePartition
from mdcenter.core.reference import Axis, AxisReference
from mdcenter.exceptions import (
    FrameShapeError,
    MissingConnectivityError,
    NonFiniteCoordinatesError,
)

if TYPE_CHECKING:
    from mdcenter.pipeline.frames import Frame

LOGGER = logging.getLogger(__name__)


class WrapMode(str, Enum):
    """How atoms are put back into the box after translation."""

    ATOM = "atom"
    MOLECULE = "molecule"


class FrameTransformer:
    """Center reference groups in the box, frame by frame.

    Parameters
    ----------
    references : sequence of AxisReference
        One reference per enabled axis (see :meth:`ReferenceSpec.resolve`).
    n_atoms : int
        Number of atoms every frame must contain.
    masses : NDArray, optional
        Per-atom masses for center-of-mass weighting. None means center of
        geometry.
    wrap_mode : WrapMode
        Per-atom or whole-molecule wrapping.
    molecules : MoleculePartition, optional
        Required when ``wrap_mode`` is MOLECULE.

    Raises
    ------
    MissingConnectivityError
        If whole-molecule mode is requested without a partition.

    Examples
    --------
    >>> transformer = FrameTransformer(refs, n_atoms=len(positions))
    >>> transformer.apply(frame)  # positions modified in place
    """

    def __init__(
        self,
        references: Sequence[AxisReference],
        n_atoms: int,
        masses: Optional[NDArray[np.floating]] = None,
        wrap_mode: WrapMode = WrapMode.ATOM,
        molecules: Optional[MoleculePartition] = None,
    ) -> None:
        self.references = tuple(references)
        self.n_atoms = n_atoms
        self.masses = None if masses is None else np.asarray(masses, dtype=np.float64)
        self.wrap_mode = WrapMode(wrap_mode)
        self.molecules = molecules

        if self.wrap_mode == WrapMode.MOLECULE:
            if molecules is None:
                raise MissingConnectivityError(
                    "Whole-molecule wrapping requires connectivity information "
                    "(bonds), but none is available for this system"
                )
            if molecules.n_atoms != n_atoms:
                raise MissingConnectivityError(
                    f"Molecule partition covers {molecules.n_atoms} atoms, "
                    f"but the system has {n_atoms}"
                )

        if self.masses is not None and self.masses.shape != (n_atoms,):
            raise ValueError(f"Expected {n_atoms} masses, got array of shape {self.masses.shape}")

        for ref in self.references:
            ref.selection.check_bounds(n_atoms)

    @property
    def axes(self) -> tuple[Axis, ...]:
        """Enabled axes, in the order of the references."""
        return tuple(ref.axis for ref in self.references)

    def translation(self, frame: "Frame") -> NDArray[np.float64]:
        """Translation vector that centers the references in ``frame``'s box."""
        self._check_frame(frame)
        return compute_translation(frame.positions, frame.box, self.references, self.masses)

    def apply(self, frame: "Frame") -> NDArray[np.float64]:
        """Translate and wrap ``frame`` in place.

        Returns
        -------
        NDArray[np.float64]
            The translation that was applied, shape (3,).
        """
        translation = self.translation(frame)
        self.shift(frame, translation)
        return translation

    def shift(self, frame: "Frame", translation: NDArray[np.floating]) -> None:
        """Add ``translation`` to every atom of ``frame`` and wrap in place."""
        # Work on a copy so a failure leaves the frame untouched
        moved = frame.positions + np.asarray(translation, dtype=np.float64)

        if self.wrap_mode == WrapMode.ATOM:
            self._wrap_atoms(moved, frame)
        else:
            self._wrap_molecules(moved, frame)

        if not np.all(np.isfinite(moved)):
            raise NonFiniteCoordinatesError("Wrapped coordinates are not finite")

        frame.positions[:] = moved

    def _check_frame(self, frame: "Frame") -> None:
        if frame.positions.shape != (self.n_atoms, 3):
            raise FrameShapeError(
                f"Frame has positions of shape {frame.positions.shape}, "
                f"expected ({self.n_atoms}, 3)"
            )
        if not np.all(np.isfinite(frame.positions)):
            raise NonFiniteCoordinatesError("Frame contains NaN or infinite coordinates")

    def _wrap_atoms(self, positions: NDArray[np.float64], frame: "Frame") -> None:
        for axis in self.axes:
            i = axis.index
            positions[:, i] = wrap(positions[:, i], frame.box.length(i))

    def _wrap_molecules(self, positions: NDArray[np.float64], frame: "Frame") -> None:
        molecules = self.molecules
        for axis in self.axes:
            i = axis.index
            length = frame.box.length(i)
            centers = molecules.centers(positions[:, i])
            shifts = minimum_image_shift(centers, length)
            positions[:, i] += shifts[molecules.molecule_ids] * length
