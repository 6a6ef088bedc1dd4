"""Exception hierarchy for mdcenter.

Every error raised by the centering machinery derives from
:class:`CenteringError`, so callers (and the CLI) can catch a single type.

Hierarchy
---------
CenteringError
    ConfigurationError
        UnsupportedGeometryError
        InvalidBoxError
        MissingMassError
        MissingConnectivityError
        StartTimeNotFoundError
    SelectionError
        InvalidSelectionError
        EmptySelectionError
    NumericalError
        NonFiniteCoordinatesError
        FrameShapeError
    TrajectoryReadError
    OutputWriteError
    FrameProcessingError
"""

from __future__ import annotations

from typing import Optional


class CenteringError(Exception):
    """Base class for all mdcenter errors."""

    pass


# =============================================================================
# Configuration errors (detected at Init)
# =============================================================================


class ConfigurationError(CenteringError):
    """Raised when the run configuration cannot be honoured."""

    pass


class UnsupportedGeometryError(ConfigurationError):
    """Raised for simulation boxes that are not orthogonal."""

    pass


class InvalidBoxError(ConfigurationError):
    """Raised when a box is missing or has non-positive dimensions."""

    pass


class MissingMassError(ConfigurationError):
    """Raised when mass weighting is requested but masses are unavailable."""

    pass


class MissingConnectivityError(ConfigurationError):
    """Raised when whole-molecule wrapping is requested without bonds."""

    pass


class StartTimeNotFoundError(ConfigurationError):
    """Raised when no input frame reaches the requested start time."""

    pass


# =============================================================================
# Selection errors
# =============================================================================


class SelectionError(CenteringError):
    """Base class for selection resolution failures."""

    pass


class InvalidSelectionError(SelectionError):
    """Raised for unknown group names or malformed selection expressions."""

    pass


class EmptySelectionError(SelectionError):
    """Raised when a selection (or a weighted point set) contains no weight."""

    pass


# =============================================================================
# Numerical errors
# =============================================================================


class NumericalError(CenteringError):
    """Raised for per-frame numerical failures."""

    pass


class NonFiniteCoordinatesError(NumericalError):
    """Raised when positions or weights contain NaN or infinity."""

    pass


class FrameShapeError(NumericalError):
    """Raised when a frame's atom count does not match the system."""

    pass


# =============================================================================
# I/O errors
# =============================================================================


class TrajectoryReadError(CenteringError):
    """Raised when an input structure or trajectory cannot be read."""

    pass


class OutputWriteError(CenteringError):
    """Raised when the output file cannot be written."""

    pass


class FrameProcessingError(CenteringError):
    """Raised when a frame fails to center.

    Carries the stage and the frame that triggered the failure so the user
    can locate it in the input.

    Attributes
    ----------
    source : str
        Name of the input source the frame came from.
    frame_index : int
        0-based position of the frame within its source.
    time : float or None
        Simulation time of the frame in ps, if known.
    stage : str
        Processing stage that failed ("reading", "centering" or "wrapping").
    """

    def __init__(
        self,
        message: str,
        source: str,
        frame_index: int,
        time: Optional[float] = None,
        stage: str = "centering",
    ) -> None:
        self.source = source
        self.frame_index = frame_index
        self.time = time
        self.stage = stage
        location = f"frame {frame_index} of '{source}'"
        if time is not None:
            location += f" (t = {time:g} ps)"
        super().__init__(f"{stage} failed at {location}: {message}")
