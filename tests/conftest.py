"""Shared fixtures: small structure and trajectory files written on the fly."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pytest

from mdcenter.logging_utils import ColoredFormatter

# Atoms of the test system: (resid, resname, name, element, position in Å)
# The ALA residue straddles the x boundary of a 30 Å box.
SYSTEM_ATOMS = [
    (1, "ALA", "N", "N", (29.5, 10.0, 10.0)),
    (1, "ALA", "CA", "C", (0.5, 10.0, 10.0)),
    (1, "ALA", "C", "C", (1.0, 10.0, 10.0)),
    (1, "ALA", "O", "O", (29.0, 10.0, 10.0)),
    (2, "SOL", "OW", "O", (5.0, 20.0, 22.0)),
    (2, "SOL", "HW1", "H", (5.5, 20.0, 22.0)),
    (2, "SOL", "HW2", "H", (4.5, 20.0, 22.0)),
]
BOX_LENGTH = 30.0


def write_gro(path: Path, atoms=SYSTEM_ATOMS, box=BOX_LENGTH) -> Path:
    """Write a GRO file (coordinates given in Å, stored in nm)."""
    lines = ["test system", f"{len(atoms):5d}"]
    for i, (resid, resname, name, _, (x, y, z)) in enumerate(atoms, start=1):
        lines.append(
            f"{resid:>5d}{resname:<5s}{name:>5s}{i:>5d}{x / 10:8.3f}{y / 10:8.3f}{z / 10:8.3f}"
        )
    lines.append(f"{box / 10:10.5f}{box / 10:10.5f}{box / 10:10.5f}")
    path.write_text("\n".join(lines) + "\n")
    return path


def write_pdb(path: Path, atoms, box=BOX_LENGTH, bonds=()) -> Path:
    """Write a PDB file with a CRYST1 record and optional CONECT bonds (1-based)."""
    lines = [f"CRYST1{box:9.3f}{box:9.3f}{box:9.3f}{90:7.2f}{90:7.2f}{90:7.2f} P 1           1"]
    for i, (resid, resname, name, element, (x, y, z)) in enumerate(atoms, start=1):
        lines.append(
            f"ATOM  {i:5d} {name:<4s} {resname:<3s} A{resid:4d}    "
            f"{x:8.3f}{y:8.3f}{z:8.3f}  1.00  0.00          {element:>2s}"
        )
    for a, b in bonds:
        lines.append(f"CONECT{a:5d}{b:5d}")
    lines.append("END")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def gro_file(tmp_path) -> Path:
    return write_gro(tmp_path / "system.gro")


@pytest.fixture
def trajectory_files(tmp_path, gro_file):
    """Two XTC parts: t = 0, 10, 20 ps and t = 20, 30, 40 ps.

    The frame at 20 ps appears at the end of part 1 and the start of part 2
    with the same step. Every frame shifts the whole system by +1 Å in x.
    """
    mda = pytest.importorskip("MDAnalysis")

    universe = mda.Universe(str(gro_file))
    reference = universe.atoms.positions.copy()
    paths = []
    for part, frames in enumerate(([0, 1, 2], [2, 3, 4]), start=1):
        path = tmp_path / f"part{part}.xtc"
        with mda.Writer(str(path), n_atoms=universe.atoms.n_atoms) as writer:
            for i in frames:
                ts = universe.trajectory.ts
                universe.atoms.positions = reference + np.array([float(i), 0.0, 0.0])
                ts.time = 10.0 * i
                ts.frame = 1000 * i
                ts.data["step"] = 1000 * i
                writer.write(universe.atoms)
        paths.append(path)
    return paths


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI reconfigures the root logger; undo that after every test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, ColoredFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
