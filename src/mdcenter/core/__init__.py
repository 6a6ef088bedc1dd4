"""Centering core: box model, circular mean, references and frame transforms.

This subpackage depends only on numpy, so it can be used (and tested)
without MDAnalysis installed.
"""

from mdcenter.core.box import Box, is_orthorhombic, minimum_image_shift, wrap
from mdcenter.core.circular import axis_translation, circular_mean, compute_translation
from mdcenter.core.molecules import MoleculePartition
from mdcenter.core.points import WeightedPointSet, Weighting, validate_masses
from mdcenter.core.reference import (
    ALL_AXES,
    Axis,
    AxisReference,
    ReferenceSpec,
    Selection,
    SelectionResolver,
    format_axes,
    resolve_axes,
)
from mdcenter.core.transform import FrameTransformer, WrapMode

__all__ = [
    "ALL_AXES",
    "Axis",
    "AxisReference",
    "Box",
    "FrameTransformer",
    "MoleculePartition",
    "ReferenceSpec",
    "Selection",
    "SelectionResolver",
    "WeightedPointSet",
    "Weighting",
    "WrapMode",
    "axis_translation",
    "circular_mean",
    "compute_translation",
    "format_axes",
    "is_orthorhombic",
    "minimum_image_shift",
    "resolve_axes",
    "validate_masses",
    "wrap",
]
