"""File helpers: extension checks and GROMACS-style output backups."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

LOGGER = logging.getLogger(__name__)


def file_extension(path: Union[str, Path]) -> str:
    """Lowercase extension without the dot (``"traj.XTC"`` -> ``"xtc"``)."""
    return Path(path).suffix.lower().lstrip(".")


def backup_path(path: Union[str, Path]) -> Path:
    """First free GROMACS-style backup name for ``path``.

    ``out.xtc`` is backed up as ``#out.xtc.1#``, then ``#out.xtc.2#`` and so on.
    """
    path = Path(path)
    number = 1
    while True:
        candidate = path.with_name(f"#{path.name}.{number}#")
        if not candidate.exists():
            return candidate
        number += 1


def backup_file(path: Union[str, Path]) -> Path | None:
    """Move an existing file out of the way.

    Parameters
    ----------
    path : str or Path
        File to back up.

    Returns
    -------
    Path or None
        Location of the backup, or None if ``path`` did not exist.
    """
    path = Path(path)
    if not path.exists():
        return None

    backup = backup_path(path)
    path.rename(backup)
    LOGGER.info(f"Backed up '{path}' as '{backup}'")
    return backup
