"""Circular-mean centering engine.

This module computes group centers that stay correct when the group is
split across a periodic boundary, and the translation that moves such a
center to the middle of the box.

The Problem
===========

A molecule with atoms at ``x = 0.5`` and ``x = 9.5`` in a box of length 10
is, physically, a compact group sitting on the boundary. Its arithmetic mean
(5.0) lands in the middle of the box, far from every atom. Centering on that
value would move the wrong point to the box center.

The Solution: Circular Mean (Bai & Breen 2008)
==============================================

Each periodic axis is treated as a circle. For axis length L and weighted
points {(x_i, w_i)}::

    θ_i = 2π x_i / L
    S   = Σ w_i sin θ_i / W
    C   = Σ w_i cos θ_i / W          (W = Σ w_i)
    θ̄   = atan2(-S, -C) + π          (θ̄ in [0, 2π])
    c   = L θ̄ / 2π                   (folded into [0, L))

For a group that does not straddle the boundary and is compact compared to
the box, ``c`` equals the ordinary (weighted) mean. For the example above it
returns 0 (equivalently L), the true center of the group.

Ambiguous Centers
-----------------

When points are spread uniformly around the axis, S and C both vanish and
the mean angle is undefined. If the mean resultant length ``sqrt(S² + C²)``
falls below :data:`~mdcenter.constants.CIRCULAR_MEAN_TOLERANCE`, the center
is defined to be 0.0, the value ``atan2(-0.0, -0.0) + π`` produces, and a
warning is logged.

References
----------
- Bai, L. & Breen, D. "Calculating Center of Mass in an Unbounded 2D
  Environment", Journal of Graphics Tools 13 (2008) 53-60.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from mdcenter.constants import CIRCULAR_MEAN_TOLERANCE
from mdcenter.core.box import Box, wrap
from mdcenter.core.points import WeightedPointSet
from mdcenter.core.reference import AxisReference
from mdcenter.exceptions import NonFiniteCoordinatesError

LOGGER = logging.getLogger(__name__)


def circular_mean(points: WeightedPointSet, length: float) -> float:
    """Periodic-boundary-robust center of a weighted point set.

    Parameters
    ----------
    points : WeightedPointSet
        Coordinates along one axis with their weights.
    length : float
        Box length along that axis.

    Returns
    -------
    float
        Center in ``[0, length)``.

    Raises
    ------
    EmptySelectionError
        If the point set is empty or its total weight is zero.

    Examples
    --------
    >>> pts = WeightedPointSet(np.array([9.9, 0.1]), np.ones(2))
    >>> c = circular_mean(pts, 10.0)
    >>> min(c, 10.0 - c) < 1e-9  # near 0 (or L), not 5.0
    True
    """
    total = points.require_weight()

    theta = 2.0 * np.pi * points.positions / length
    sin_mean = float(np.dot(points.weights, np.sin(theta))) / total
    cos_mean = float(np.dot(points.weights, np.cos(theta))) / total

    if math.hypot(sin_mean, cos_mean) < CIRCULAR_MEAN_TOLERANCE:
        LOGGER.warning(
            "Reference atoms are spread uniformly along an axis of length "
            f"{length:g}; the center is undefined and is taken to be 0.0"
        )
        return 0.0

    mean_angle = math.atan2(-sin_mean, -cos_mean) + math.pi
    return wrap(length * mean_angle / (2.0 * np.pi), length)


def axis_translation(center: float, length: float, target: Optional[float] = None) -> float:
    """Translation that moves ``center`` onto ``target`` along one axis.

    Parameters
    ----------
    center : float
        Current center in ``[0, length)``.
    length : float
        Box length.
    target : float, optional
        Target coordinate. Defaults to the box midpoint ``length / 2``.

    Returns
    -------
    float
        Shortest-path offset, in ``(-length/2, length/2]`` for the default
        target, so no atom moves by more than one box length.
    """
    if target is None:
        target = length / 2.0
    offset = target - center
    if abs(offset) > length / 2.0:
        offset -= length * round(offset / length)
    return offset


def compute_translation(
    positions: NDArray[np.floating],
    box: Box,
    references: Sequence[AxisReference],
    masses: Optional[NDArray[np.floating]] = None,
) -> NDArray[np.float64]:
    """Per-axis translation that centers the references in the box.

    Axes without a reference receive zero translation.

    Parameters
    ----------
    positions : NDArray
        Frame positions, shape (N, 3).
    box : Box
        Box of the frame.
    references : sequence of AxisReference
        One entry per enabled axis.
    masses : NDArray, optional
        Per-atom masses (N,) for mass weighting; None for center of geometry.

    Returns
    -------
    NDArray[np.float64]
        Translation vector, shape (3,).
    """
    translation = np.zeros(3, dtype=np.float64)

    for ref in references:
        axis = ref.axis.index
        length = box.length(axis)
        points = WeightedPointSet.from_frame(positions, ref.selection.indices, axis, masses)
        center = circular_mean(points, length)
        translation[axis] = axis_translation(center, length)
        LOGGER.debug(
            f"Axis {ref.axis.value}: center of '{ref.selection.name}' = {center:.4f}, "
            f"translation = {translation[axis]:.4f}"
        )

    if not np.all(np.isfinite(translation)):
        raise NonFiniteCoordinatesError(f"Computed translation is not finite: {translation}")

    return translation
