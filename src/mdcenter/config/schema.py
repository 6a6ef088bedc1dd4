"""
Pydantic configuration model for centering runs.

A :class:`CenteringConfig` describes one run: input structure and
trajectories, output file, reference selections, enabled axes, weighting,
wrap mode and the time window. It can be built from command-line options or
loaded from YAML::

    structure: system.gro
    trajectories: [part1.xtc, part2.xtc]
    output: centered.xtc
    reference: Protein
    zref: resname POPC
    axes: [z]
    begin: 1000.0
    step: 10
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from mdcenter.constants import (
    DEFAULT_REFERENCE,
    STRUCTURE_EXTENSIONS,
    TIMED_TRAJECTORY_EXTENSIONS,
    TRAJECTORY_EXTENSIONS,
)
from mdcenter.core.points import Weighting
from mdcenter.core.reference import Axis, ReferenceSpec, resolve_axes
from mdcenter.core.transform import WrapMode
from mdcenter.exceptions import ConfigurationError
from mdcenter.io.files import file_extension


def _check_extension(path: Path, allowed: frozenset, kind: str) -> Path:
    ext = file_extension(path)
    if ext not in allowed:
        raise ValueError(
            f"Unsupported {kind} format '.{ext}' for {path} "
            f"(expected one of: {', '.join(sorted(allowed))})"
        )
    return path


class CenteringConfig(BaseModel):
    """Configuration of a centering run.

    Attributes:
        structure: Structure file (.gro or .pdb) providing topology
        trajectories: Trajectory files processed in order; empty to center
            the structure itself
        output: Output file
        index: GROMACS index file with named groups
        reference: Default reference selection (index group or expression)
        xref, yref, zref: Per-axis reference overrides
        axes: Axes to center; empty means all three
        weighting: Center of geometry or center of mass
        wrap: Wrap single atoms or whole molecules back into the box
        begin, end: Time window in ps
        step: Keep every step-th frame
        overwrite: Replace an existing output instead of backing it up
    """

    structure: Path = Field(..., description="Structure file (.gro/.pdb)")
    trajectories: List[Path] = Field(
        default_factory=list, description="Trajectory files (.xtc/.trr/.dcd)"
    )
    output: Path = Field(..., description="Output file")
    index: Optional[Path] = Field(None, description="GROMACS index file")

    reference: str = Field(DEFAULT_REFERENCE, min_length=1, description="Reference selection")
    xref: Optional[str] = Field(None, min_length=1, description="Reference for x")
    yref: Optional[str] = Field(None, min_length=1, description="Reference for y")
    zref: Optional[str] = Field(None, min_length=1, description="Reference for z")

    axes: List[Axis] = Field(default_factory=list, description="Axes to center")
    weighting: Weighting = Field(Weighting.GEOMETRY, description="Center weighting")
    wrap: WrapMode = Field(WrapMode.ATOM, description="Wrap mode")

    begin: Optional[float] = Field(None, description="Start time (ps)")
    end: Optional[float] = Field(None, description="End time (ps)")
    step: int = Field(1, ge=1, description="Frame stride")

    overwrite: bool = Field(False, description="Overwrite existing output")

    @field_validator("structure")
    @classmethod
    def validate_structure(cls, v: Path) -> Path:
        """Validate the structure file extension."""
        return _check_extension(v, STRUCTURE_EXTENSIONS, "structure")

    @field_validator("trajectories")
    @classmethod
    def validate_trajectories(cls, v: List[Path]) -> List[Path]:
        """Validate trajectory extensions."""
        for path in v:
            _check_extension(path, TRAJECTORY_EXTENSIONS, "trajectory")
        return v

    @field_validator("axes")
    @classmethod
    def deduplicate_axes(cls, v: List[Axis]) -> List[Axis]:
        """Return enabled axes once each, in x, y, z order."""
        return list(resolve_axes(v)) if v else []

    @model_validator(mode="after")
    def validate_files(self) -> "CenteringConfig":
        """Validate output format and reject reused files."""
        if self.trajectories:
            _check_extension(self.output, TRAJECTORY_EXTENSIONS, "output")
        else:
            _check_extension(self.output, STRUCTURE_EXTENSIONS, "output")

        inputs = [self.structure, *self.trajectories]
        resolved = [p.expanduser().resolve() for p in inputs]
        if len(set(resolved)) != len(resolved):
            raise ValueError("The same input file is given more than once")
        if self.output.expanduser().resolve() in resolved:
            raise ValueError(f"Output file {self.output} would overwrite an input file")
        return self

    @model_validator(mode="after")
    def validate_time_window(self) -> "CenteringConfig":
        """Frame selection options only apply to trajectories."""
        if not self.trajectories:
            if self.begin is not None or self.end is not None:
                raise ValueError("begin/end require at least one trajectory")
            if self.step != 1:
                raise ValueError("step requires at least one trajectory")
        if self.begin is not None and self.end is not None and self.begin > self.end:
            raise ValueError(f"begin ({self.begin} ps) is after end ({self.end} ps)")
        if self.begin is not None or self.end is not None:
            untimed = [
                str(p)
                for p in self.trajectories
                if file_extension(p) not in TIMED_TRAJECTORY_EXTENSIONS
            ]
            if untimed:
                raise ValueError(
                    f"begin/end need per-frame time, which is not stored in: {', '.join(untimed)}"
                )
        return self

    @model_validator(mode="after")
    def validate_overrides(self) -> "CenteringConfig":
        """Reject reference overrides for explicitly disabled axes."""
        try:
            self.reference_spec().validate(self.enabled_axes, explicit_axes=self.axes_explicit)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc
        return self

    @property
    def axes_explicit(self) -> bool:
        """Whether axes were chosen explicitly rather than defaulting to all."""
        return bool(self.axes)

    @property
    def enabled_axes(self) -> tuple[Axis, ...]:
        """Enabled axes in x, y, z order."""
        return resolve_axes(self.axes)

    @property
    def has_trajectories(self) -> bool:
        return bool(self.trajectories)

    def reference_spec(self) -> ReferenceSpec:
        """Build the default reference and per-axis overrides."""
        overrides = {
            axis: expression
            for axis, expression in (
                (Axis.X, self.xref),
                (Axis.Y, self.yref),
                (Axis.Z, self.zref),
            )
            if expression is not None
        }
        return ReferenceSpec(default=self.reference, overrides=overrides)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "CenteringConfig":
        """Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValidationError: If configuration is invalid
        """
        from mdcenter.config.loader import load_config

        return load_config(path)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        from mdcenter.config.loader import save_config

        save_config(self, path)
