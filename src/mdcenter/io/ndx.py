"""Reader for GROMACS index (.ndx) files.

An index file lists named groups of 1-based atom numbers::

    [ Protein ]
       1    2    3    4    5
    [ Membrane ]
     101  102  103

Groups are returned as 0-based index arrays keyed by name. When a name
appears more than once, the later group replaces the earlier one (as GROMACS
tools do when looking groups up by name).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Union

import numpy as np
from numpy.typing import NDArray

from mdcenter.exceptions import TrajectoryReadError

LOGGER = logging.getLogger(__name__)

_HEADER_PATTERN = re.compile(r"^\s*\[\s*(.+?)\s*\]\s*$")


def parse_ndx(text: str, source: str = "<string>") -> dict[str, NDArray[np.int64]]:
    """Parse the contents of an index file.

    Parameters
    ----------
    text : str
        File contents.
    source : str
        Name used in error messages.

    Returns
    -------
    dict[str, NDArray[np.int64]]
        Group name to 0-based atom indices, duplicates removed with the
        first occurrence kept.

    Raises
    ------
    TrajectoryReadError
        If numbers appear before the first header or a token is not a
        positive integer.
    """
    groups: dict[str, list[int]] = {}
    current: list[int] | None = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.split(";", 1)[0].strip()
        if not stripped:
            continue

        header = _HEADER_PATTERN.match(stripped)
        if header:
            name = header.group(1)
            if name in groups:
                LOGGER.warning(f"Group '{name}' defined more than once in {source}; using the last")
            current = []
            groups[name] = current
            continue

        if current is None:
            raise TrajectoryReadError(f"{source}:{lineno}: atom numbers before the first group header")

        for token in stripped.split():
            try:
                number = int(token)
            except ValueError:
                raise TrajectoryReadError(
                    f"{source}:{lineno}: invalid atom number '{token}'"
                ) from None
            if number < 1:
                raise TrajectoryReadError(
                    f"{source}:{lineno}: atom numbers must be positive, got {number}"
                )
            current.append(number - 1)

    result = {}
    for name, numbers in groups.items():
        arr = np.asarray(numbers, dtype=np.int64)
        _, first = np.unique(arr, return_index=True)
        result[name] = arr[np.sort(first)]
    return result


def read_ndx(path: Union[str, Path]) -> dict[str, NDArray[np.int64]]:
    """Read an index file from disk.

    Raises
    ------
    TrajectoryReadError
        If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise TrajectoryReadError(f"Could not read index file {path}: {exc}") from exc

    groups = parse_ndx(text, source=str(path))
    LOGGER.info(f"Read {len(groups)} group(s) from index file {path}")
    return groups
