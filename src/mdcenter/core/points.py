"""Weighted point sets along a single axis.

A :class:`WeightedPointSet` is the input of the circular-mean computation:
the coordinates of a selection along one axis, each tagged with a weight
(1.0 for center of geometry, the atomic mass for center of mass).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mdcenter.exceptions import (
    EmptySelectionError,
    MissingMassError,
    NonFiniteCoordinatesError,
)


class Weighting(str, Enum):
    """How atoms of a reference group are weighted."""

    GEOMETRY = "geometry"  # Center of geometry, all weights 1
    MASS = "mass"  # Center of mass


@dataclass(frozen=True, eq=False)
class WeightedPointSet:
    """Coordinates along one axis with per-point weights.

    Attributes
    ----------
    positions : NDArray[np.float64]
        Coordinates, shape (n,).
    weights : NDArray[np.float64]
        Weights, shape (n,). Finite; strictly positive when mass-weighted.
    """

    positions: NDArray[np.float64]
    weights: NDArray[np.float64]

    def __post_init__(self) -> None:
        positions = np.asarray(self.positions, dtype=np.float64)
        weights = np.asarray(self.weights, dtype=np.float64)

        if positions.shape != weights.shape or positions.ndim != 1:
            raise ValueError(
                f"positions and weights must be 1D arrays of equal length, "
                f"got {positions.shape} and {weights.shape}"
            )
        if not np.all(np.isfinite(positions)):
            raise NonFiniteCoordinatesError("Coordinates contain NaN or infinite values")
        if not np.all(np.isfinite(weights)):
            raise NonFiniteCoordinatesError("Weights contain NaN or infinite values")

        object.__setattr__(self, "positions", positions)
        object.__setattr__(self, "weights", weights)

    @classmethod
    def from_frame(
        cls,
        positions: NDArray[np.floating],
        indices: ArrayLike,
        axis: int,
        masses: Optional[NDArray[np.floating]] = None,
    ) -> "WeightedPointSet":
        """Extract one axis of a selection from an (N, 3) position array.

        Parameters
        ----------
        positions : NDArray
            Frame positions, shape (N, 3).
        indices : array-like of int
            Atom indices of the selection.
        axis : int
            Axis column (0, 1 or 2).
        masses : NDArray, optional
            Per-atom masses for the whole system, shape (N,). If None, every
            point gets weight 1 (center of geometry).

        Raises
        ------
        MissingMassError
            If masses are given and any selected atom has a non-positive mass.
        """
        idx = np.asarray(indices, dtype=np.int64)
        coords = positions[idx, axis]

        if masses is None:
            return cls(coords, np.ones(len(idx), dtype=np.float64))

        validate_masses(masses, idx)
        return cls(coords, np.asarray(masses, dtype=np.float64)[idx])

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def total_weight(self) -> float:
        """Sum of weights."""
        return float(self.weights.sum())

    def require_weight(self) -> float:
        """Return the total weight, raising if the set carries none."""
        total = self.total_weight
        if len(self) == 0 or total == 0.0:
            raise EmptySelectionError("Cannot compute a center for a point set with zero weight")
        return total


def validate_masses(
    masses: Optional[NDArray[np.floating]],
    indices: ArrayLike,
    label: str = "selection",
) -> None:
    """Ensure every selected atom has a finite, strictly positive mass.

    Raises
    ------
    MissingMassError
        If ``masses`` is None or any selected mass is zero, negative or NaN.
    """
    if masses is None:
        raise MissingMassError(f"Center of mass requested for '{label}', but no masses are available")

    idx = np.asarray(indices, dtype=np.int64)
    weights = np.asarray(masses, dtype=np.float64)[idx]
    bad = idx[~(np.isfinite(weights) & (weights > 0.0))]
    if len(bad):
        preview = ", ".join(str(i) for i in bad[:5])
        raise MissingMassError(
            f"{len(bad)} atom(s) of '{label}' have zero, negative or unknown mass "
            f"(atom indices: {preview}{', ...' if len(bad) > 5 else ''})"
        )
