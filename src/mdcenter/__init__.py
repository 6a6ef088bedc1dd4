"""
mdcenter: center molecules in orthogonal periodic simulation boxes.

Translates molecular dynamics structures and trajectories so that a
reference group sits at the box center. Centers are computed with a
circular mean along each periodic axis, so groups split across a boundary
are centered correctly without first being made whole.

Example usage:
    >>> from mdcenter.config import CenteringConfig
    >>> config = CenteringConfig(structure="system.gro", output="centered.gro")

    >>> from mdcenter import center
    >>> stats = center(config)

Key modules:
    - core: box model, circular mean, frame transformation (numpy only)
    - pipeline: streaming frame filter and writer
    - io: index files, backups and MDAnalysis readers/writers
    - config: configuration management with YAML support
    - cli: command-line interface

Note:
    MDAnalysis is imported lazily; the core and pipeline modules work with
    numpy alone.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "CenteringConfig",
    "FrameTransformer",
    "TrajectoryPipeline",
    "center",
]


def __getattr__(name: str):
    """Lazy import of the public API.

    Keeps ``import mdcenter`` cheap and free of MDAnalysis until a class or
    function that needs it is accessed.
    """
    if name == "CenteringConfig":
        from mdcenter.config.schema import CenteringConfig

        return CenteringConfig

    if name == "FrameTransformer":
        from mdcenter.core.transform import FrameTransformer

        return FrameTransformer

    if name == "TrajectoryPipeline":
        from mdcenter.pipeline.pipeline import TrajectoryPipeline

        return TrajectoryPipeline

    if name == "center":
        from mdcenter.centering import center

        return center

    raise AttributeError(f"module 'mdcenter' has no attribute {name!r}")


def __dir__():
    """Return list of available attributes for tab completion."""
    return __all__
