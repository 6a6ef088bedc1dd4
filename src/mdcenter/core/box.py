"""Orthogonal simulation box and periodic arithmetic.

This module provides the box model used by every centering step. All
periodic operations (wrapping, whole-box shifts) go through the functions
here so that edge cases are handled in one place.

Supported Box Types
-------------------
- **Orthorhombic boxes** (cubic, rectangular): Fully supported
- **Triclinic boxes**: Not supported; constructing a :class:`Box` from
  triclinic dimensions raises :class:`UnsupportedGeometryError`

Usage
-----
>>> from mdcenter.core.box import Box, wrap
>>>
>>> box = Box.from_dimensions([40.0, 40.0, 60.0, 90.0, 90.0, 90.0])
>>> wrap(-1.0, box.lx)
39.0
>>> wrap(81.5, box.lx)
1.5

Notes
-----
``np.mod`` may return exactly ``L`` for tiny negative inputs because of
rounding (``np.mod(-1e-20, 10.0) == 10.0``). Results are folded so that they
always lie in ``[0, L)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mdcenter.constants import ORTHOGONAL_ANGLE_TOLERANCE
from mdcenter.exceptions import InvalidBoxError, UnsupportedGeometryError

LOGGER = logging.getLogger(__name__)

Coordinate = Union[float, NDArray[np.floating]]


def is_orthorhombic(dimensions: ArrayLike) -> bool:
    """Check if box dimensions describe an orthorhombic box.

    Parameters
    ----------
    dimensions : array-like
        Box dimensions in MDAnalysis format: [Lx, Ly, Lz, alpha, beta, gamma]
        or just lengths [Lx, Ly, Lz].

    Returns
    -------
    bool
        True if all angles are within 0.01° of 90° (or only lengths given).
    """
    if dimensions is None:
        return False

    dims = np.asarray(dimensions, dtype=np.float64)

    # If only lengths provided, assume orthorhombic
    if len(dims) == 3:
        return True

    if len(dims) >= 6:
        return bool(np.all(np.abs(dims[3:6] - 90.0) < ORTHOGONAL_ANGLE_TOLERANCE))

    return False


def _check_length(length: float) -> None:
    if not np.isfinite(length) or length <= 0.0:
        raise InvalidBoxError(f"Box length must be a positive finite number, got {length}")


def wrap(coordinate: Coordinate, length: float) -> Coordinate:
    """Map coordinate(s) into the primary interval ``[0, length)``.

    Parameters
    ----------
    coordinate : float or NDArray
        Coordinate value(s) along one axis. Any magnitude is accepted.
    length : float
        Box length along the same axis.

    Returns
    -------
    float or NDArray
        Wrapped coordinate(s); a float for scalar input.

    Examples
    --------
    >>> wrap(-25.0, 10.0)
    5.0
    >>> wrap(np.array([9.5, 10.0, 123.25]), 10.0)
    array([9.5 , 0.  , 3.25])
    """
    _check_length(length)

    wrapped = np.mod(coordinate, length)
    wrapped = np.where(wrapped >= length, wrapped - length, wrapped)

    if np.ndim(coordinate) == 0:
        return float(wrapped)
    return wrapped


def minimum_image_shift(coordinate: Coordinate, length: float) -> Union[int, NDArray[np.int64]]:
    """Number of box lengths to add so the coordinate lands in ``[0, length)``.

    Used to move a whole molecule by a consistent integer number of box
    lengths: ``coordinate + shift * length`` lies in the primary box.

    Parameters
    ----------
    coordinate : float or NDArray
        Coordinate value(s) along one axis.
    length : float
        Box length along the same axis.

    Returns
    -------
    int or NDArray[np.int64]
        Integer shift(s); an int for scalar input.

    Examples
    --------
    >>> minimum_image_shift(-1.0, 10.0)
    1
    >>> minimum_image_shift(25.0, 10.0)
    -2
    """
    _check_length(length)

    x = np.asarray(coordinate, dtype=np.float64)
    shift = -np.floor(x / length)

    # Correct the rare cases where rounding pushes the shifted value to L or below 0
    shifted = x + shift * length
    shift = np.where(shifted >= length, shift - 1.0, shift)
    shift = np.where(x + shift * length < 0.0, shift + 1.0, shift)

    shift = shift.astype(np.int64)
    if np.ndim(coordinate) == 0:
        return int(shift)
    return shift


@dataclass(frozen=True)
class Box:
    """Orthogonal simulation box.

    A box is replaced, never mutated; boxes may differ from frame to frame
    (e.g. NPT trajectories).

    Attributes
    ----------
    lx, ly, lz : float
        Box lengths along x, y and z (same unit as the coordinates).
    """

    lx: float
    ly: float
    lz: float

    def __post_init__(self) -> None:
        for name in ("lx", "ly", "lz"):
            value = float(getattr(self, name))
            if not np.isfinite(value) or value <= 0.0:
                raise InvalidBoxError(
                    f"Simulation box is not valid: {name} = {value}. "
                    "All box lengths must be positive."
                )
            object.__setattr__(self, name, value)

    @classmethod
    def from_dimensions(cls, dimensions: Sequence[float] | NDArray[np.floating] | None) -> "Box":
        """Create a box from MDAnalysis-style dimensions.

        Parameters
        ----------
        dimensions : array-like or None
            [Lx, Ly, Lz, alpha, beta, gamma] or [Lx, Ly, Lz].

        Raises
        ------
        InvalidBoxError
            If dimensions are missing or lengths are not positive.
        UnsupportedGeometryError
            If the box is triclinic.
        """
        if dimensions is None:
            raise InvalidBoxError("Simulation box is not defined")

        dims = np.asarray(dimensions, dtype=np.float64)
        if dims.shape not in ((3,), (6,)):
            raise InvalidBoxError(f"Expected 3 or 6 box dimensions, got shape {dims.shape}")
        if np.all(dims[:3] == 0.0):
            raise InvalidBoxError("Simulation box is not defined (all box lengths are zero)")

        if not is_orthorhombic(dims):
            raise UnsupportedGeometryError(
                "Simulation box is not orthogonal "
                f"(angles: {dims[3]:.2f}, {dims[4]:.2f}, {dims[5]:.2f}); "
                "only orthogonal boxes are supported"
            )

        return cls(dims[0], dims[1], dims[2])

    @property
    def lengths(self) -> NDArray[np.float64]:
        """Box lengths as an array of shape (3,)."""
        return np.array([self.lx, self.ly, self.lz], dtype=np.float64)

    @property
    def center(self) -> NDArray[np.float64]:
        """Geometric center of the box (the centering target)."""
        return self.lengths / 2.0

    def length(self, axis: int) -> float:
        """Box length along axis index 0, 1 or 2."""
        return (self.lx, self.ly, self.lz)[axis]

    def to_dimensions(self) -> NDArray[np.float64]:
        """Dimensions in MDAnalysis format [Lx, Ly, Lz, 90, 90, 90]."""
        return np.array([self.lx, self.ly, self.lz, 90.0, 90.0, 90.0], dtype=np.float64)
