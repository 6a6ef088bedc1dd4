"""Reference selections and per-axis reference configuration.

A run centers up to three axes. Each enabled axis uses either the default
reference selection or an axis-specific override. The configuration is a
small tagged structure (:class:`ReferenceSpec`) resolved once, before
streaming, into one :class:`AxisReference` per enabled axis so that no
lookup happens per frame.

Examples
--------
>>> spec = ReferenceSpec(default="Protein", overrides={Axis.Z: "resname POPC"})
>>> refs = spec.resolve(resolver, axes=resolve_axes([]))
>>> [(r.axis.value, r.selection.name) for r in refs]
[('x', 'Protein'), ('y', 'Protein'), ('z', 'resname POPC')]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Protocol

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mdcenter.exceptions import (
    ConfigurationError,
    EmptySelectionError,
    InvalidSelectionError,
)

LOGGER = logging.getLogger(__name__)


class Axis(str, Enum):
    """Cartesian axes of an orthogonal box."""

    X = "x"
    Y = "y"
    Z = "z"

    @property
    def index(self) -> int:
        """Column index of this axis in an (N, 3) position array."""
        return "xyz".index(self.value)


ALL_AXES: tuple[Axis, ...] = (Axis.X, Axis.Y, Axis.Z)


def resolve_axes(requested: Iterable[Axis | str]) -> tuple[Axis, ...]:
    """Return the enabled axes in x, y, z order.

    If no axis is requested, all three are enabled.
    """
    chosen = {Axis(a) for a in requested}
    if not chosen:
        return ALL_AXES
    return tuple(a for a in ALL_AXES if a in chosen)


def format_axes(axes: Iterable[Axis]) -> str:
    """Format axes as a compact label, e.g. ``"xyz"`` or ``"xz"``."""
    return "".join(a.value for a in axes)


@dataclass(frozen=True, eq=False)
class Selection:
    """An ordered, duplicate-free set of atom indices.

    Attributes
    ----------
    name : str
        Expression or group name the selection was resolved from.
    indices : NDArray[np.int64]
        0-based atom indices.
    """

    name: str
    indices: NDArray[np.int64]

    def __post_init__(self) -> None:
        indices = np.array(self.indices, dtype=np.int64)
        if indices.ndim != 1:
            raise InvalidSelectionError(
                f"Selection '{self.name}' must be a 1D array of atom indices"
            )
        if len(indices) and indices.min() < 0:
            raise InvalidSelectionError(f"Selection '{self.name}' contains negative atom indices")
        if len(np.unique(indices)) != len(indices):
            raise InvalidSelectionError(f"Selection '{self.name}' contains duplicate atom indices")
        indices.setflags(write=False)
        object.__setattr__(self, "indices", indices)

    @classmethod
    def from_indices(cls, name: str, indices: ArrayLike) -> "Selection":
        """Build a selection, dropping duplicates while keeping first occurrences."""
        arr = np.asarray(indices, dtype=np.int64).ravel()
        _, first = np.unique(arr, return_index=True)
        return cls(name=name, indices=arr[np.sort(first)])

    def __len__(self) -> int:
        return len(self.indices)

    def check_bounds(self, n_atoms: int) -> None:
        """Ensure every index addresses one of ``n_atoms`` atoms."""
        if len(self.indices) and self.indices.max() >= n_atoms:
            raise InvalidSelectionError(
                f"Selection '{self.name}' refers to atom index {int(self.indices.max())}, "
                f"but the system only has {n_atoms} atoms"
            )


class SelectionResolver(Protocol):
    """Anything that turns a selection expression into a :class:`Selection`."""

    def resolve(self, expression: str) -> Selection: ...


@dataclass(frozen=True)
class AxisReference:
    """The selection that drives centering along one axis."""

    axis: Axis
    selection: Selection


@dataclass
class ReferenceSpec:
    """Default reference plus optional per-axis overrides.

    Attributes
    ----------
    default : str
        Selection used for every axis without an override.
    overrides : dict[Axis, str]
        Axis-specific selections. An override only changes the center
        computation along its own axis.
    """

    default: str
    overrides: dict[Axis, str] = field(default_factory=dict)

    def expression_for(self, axis: Axis) -> str:
        """Selection expression governing ``axis``."""
        return self.overrides.get(axis, self.default)

    def validate(self, axes: Iterable[Axis], explicit_axes: bool = True) -> None:
        """Reject overrides for axes that were explicitly disabled.

        Parameters
        ----------
        axes : iterable of Axis
            Enabled axes.
        explicit_axes : bool
            Whether the axes were chosen explicitly (as opposed to the
            all-axes default).
        """
        enabled = set(axes)
        disabled_overrides = sorted(a.value for a in self.overrides if a not in enabled)
        if disabled_overrides and explicit_axes:
            raise ConfigurationError(
                f"Reference override(s) given for disabled dimension(s): "
                f"{', '.join(disabled_overrides)}. Enable the dimension or drop the override."
            )

    def resolve(
        self,
        resolver: SelectionResolver,
        axes: Iterable[Axis],
        n_atoms: int | None = None,
    ) -> list[AxisReference]:
        """Resolve into one :class:`AxisReference` per enabled axis.

        Each distinct expression is resolved only once.

        Raises
        ------
        InvalidSelectionError, EmptySelectionError
            Propagated from the resolver, or raised for empty results.
        """
        cache: dict[str, Selection] = {}
        references = []
        for axis in axes:
            expression = self.expression_for(axis)
            if expression not in cache:
                selection = resolver.resolve(expression)
                if len(selection) == 0:
                    raise EmptySelectionError(f"Reference group '{expression}' is empty")
                if n_atoms is not None:
                    selection.check_bounds(n_atoms)
                LOGGER.debug(f"Resolved '{expression}' to {len(selection)} atoms")
                cache[expression] = selection
            references.append(AxisReference(axis=axis, selection=cache[expression]))
        return references

    def describe(self, axes: Iterable[Axis]) -> str:
        """Human-readable summary, e.g. ``"Protein (z: resname POPC)"``."""
        parts = [
            f"{axis.value}: {self.overrides[axis]}" for axis in axes if axis in self.overrides
        ]
        if parts:
            return f"{self.default} ({', '.join(parts)})"
        return self.default
