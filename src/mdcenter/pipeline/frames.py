"""In-memory frame record passed between sources, transformer and sinks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from mdcenter.core.box import Box


@dataclass(eq=False)
class Frame:
    """One snapshot of the system.

    Attributes
    ----------
    positions : NDArray[np.float64]
        Atom positions, shape (N, 3). The only field modified by centering.
    box : Box
        Simulation box of this frame.
    time : float, optional
        Simulation time in ps. None when the source does not record time.
    step : int, optional
        Integration step. None when the source does not record it.
    """

    positions: NDArray[np.float64]
    box: Box
    time: Optional[float] = None
    step: Optional[int] = None

    def __post_init__(self) -> None:
        positions = np.array(self.positions, dtype=np.float64)
        if positions.ndim != 2 or positions.shape[1] != 3:
            raise ValueError(f"Frame positions must have shape (N, 3), got {positions.shape}")
        self.positions = positions
        if self.time is not None:
            self.time = float(self.time)
        if self.step is not None:
            self.step = int(self.step)

    @classmethod
    def from_arrays(
        cls,
        positions: ArrayLike,
        dimensions: ArrayLike,
        time: Optional[float] = None,
        step: Optional[int] = None,
    ) -> "Frame":
        """Create a frame from positions and MDAnalysis-style box dimensions."""
        return cls(
            positions=np.asarray(positions),
            box=Box.from_dimensions(dimensions),
            time=time,
            step=step,
        )

    @property
    def n_atoms(self) -> int:
        """Number of atoms in the frame."""
        return len(self.positions)

    def describe(self) -> str:
        """Short label for log messages, e.g. ``"t = 100 ps, step 50000"``."""
        parts = []
        if self.time is not None:
            parts.append(f"t = {self.time:g} ps")
        if self.step is not None:
            parts.append(f"step {self.step}")
        return ", ".join(parts) if parts else "untimed frame"
