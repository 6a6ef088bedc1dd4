"""Shared constants for centering and I/O modules.

Centralizing them here keeps the CLI defaults, the configuration schema and
the adapters consistent.
"""

# Reference group used when none is given. When no index group with this name
# exists, protein atoms are autodetected instead.
DEFAULT_REFERENCE: str = "Protein"

# MDAnalysis selection used for protein autodetection.
PROTEIN_AUTODETECT_SELECTION: str = "protein"

# Index file read when present and no other index file was requested.
DEFAULT_INDEX_FILE: str = "index.ndx"

# Angles within this tolerance (degrees) of 90 count as orthogonal.
ORTHOGONAL_ANGLE_TOLERANCE: float = 0.01

# Mean resultant length below which the circular mean is undefined
# (points spread uniformly around the axis).
CIRCULAR_MEAN_TOLERANCE: float = 1e-10

# Supported file extensions (lowercase, without dot).
STRUCTURE_EXTENSIONS: frozenset[str] = frozenset({"gro", "pdb"})
TRAJECTORY_EXTENSIONS: frozenset[str] = frozenset({"xtc", "trr", "dcd"})

# Trajectory formats that store a per-frame time and integration step.
# DCD time is derived from the header timestep, so it is not trusted for
# time-window filtering.
TIMED_TRAJECTORY_EXTENSIONS: frozenset[str] = frozenset({"xtc", "trr"})

# Frames written between two progress messages.
PROGRESS_INTERVAL: int = 1000
