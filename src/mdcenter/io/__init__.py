"""File I/O: index files, output backups and MDAnalysis adapters.

:mod:`mdcenter.io.universe` imports MDAnalysis and is not imported here;
import it directly when needed.
"""

from mdcenter.io.files import backup_file, backup_path, file_extension
from mdcenter.io.ndx import parse_ndx, read_ndx

__all__ = [
    "backup_file",
    "backup_path",
    "file_extension",
    "parse_ndx",
    "read_ndx",
]
