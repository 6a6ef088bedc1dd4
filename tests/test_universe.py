"""End-to-end tests through MDAnalysis: adapters and the center() entry point.

These tests write small GRO/PDB/XTC files into ``tmp_path`` and are skipped
when MDAnalysis is not installed.
"""

from __future__ import annotations

import numpy as np
import pytest

mda = pytest.importorskip("MDAnalysis")

from mdcenter.centering import center  # noqa: E402
from mdcenter.config import CenteringConfig  # noqa: E402
from mdcenter.exceptions import (  # noqa: E402
    ConfigurationError,
    EmptySelectionError,
    FrameProcessingError,
    InvalidBoxError,
    InvalidSelectionError,
    MissingConnectivityError,
    StartTimeNotFoundError,
    UnsupportedGeometryError,
)
from mdcenter.io.universe import (  # noqa: E402
    StructureSource,
    TrajectorySource,
    UniverseSelectionResolver,
    load_structure,
    molecule_partition,
    system_masses,
)

from conftest import BOX_LENGTH, SYSTEM_ATOMS, write_gro, write_pdb  # noqa: E402

PROTEIN = slice(0, 4)
TOL = 0.02  # GRO/XTC store 0.01 Å precision


def _periodic_mean(x, length=BOX_LENGTH):
    theta = 2.0 * np.pi * np.asarray(x) / length
    angle = np.arctan2(-np.sin(theta).mean(), -np.cos(theta).mean()) + np.pi
    return length * angle / (2.0 * np.pi)


def _write_xtc(path, gro_file, times, dimensions=None):
    """Write the structure once per time; ``dimensions`` optionally sets each frame's box."""
    universe = mda.Universe(str(gro_file))
    with mda.Writer(str(path), n_atoms=universe.atoms.n_atoms) as writer:
        for i, time in enumerate(times):
            ts = universe.trajectory.ts
            ts.time = time
            ts.frame = 100 * i
            ts.data["step"] = 100 * i
            if dimensions is not None:
                universe.dimensions = dimensions[i]
            writer.write(universe.atoms)
    return path


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class TestSelectionResolver:
    def test_index_group_takes_precedence(self, gro_file):
        universe = load_structure(gro_file)
        resolver = UniverseSelectionResolver(universe, {"Protein": np.array([4, 5])})
        np.testing.assert_array_equal(resolver.resolve("Protein").indices, [4, 5])

    def test_protein_autodetected(self, gro_file, caplog):
        resolver = UniverseSelectionResolver(load_structure(gro_file))
        selection = resolver.resolve("Protein")
        np.testing.assert_array_equal(selection.indices, [0, 1, 2, 3])
        assert "Autodetecting" in caplog.text

    def test_selection_expression(self, gro_file):
        resolver = UniverseSelectionResolver(load_structure(gro_file))
        np.testing.assert_array_equal(resolver.resolve("resname SOL").indices, [4, 5, 6])

    def test_invalid_expression(self, gro_file):
        resolver = UniverseSelectionResolver(load_structure(gro_file))
        with pytest.raises(InvalidSelectionError):
            resolver.resolve("resname ALA and (")

    def test_empty_expression(self, gro_file):
        resolver = UniverseSelectionResolver(load_structure(gro_file))
        with pytest.raises(EmptySelectionError):
            resolver.resolve("resname POPC")

    def test_no_protein(self, tmp_path):
        path = write_gro(tmp_path / "water.gro", atoms=SYSTEM_ATOMS[4:])
        resolver = UniverseSelectionResolver(load_structure(path))
        with pytest.raises(EmptySelectionError):
            resolver.resolve("Protein")


class TestSystemInformation:
    def test_masses_available(self, gro_file):
        masses = system_masses(load_structure(gro_file))
        assert masses.shape == (7,)
        assert np.all(masses > 0.0)

    def test_gro_has_no_bonds(self, gro_file):
        with pytest.raises(MissingConnectivityError):
            molecule_partition(load_structure(gro_file))

    def test_pdb_bonds_give_molecules(self, tmp_path):
        path = write_pdb(tmp_path / "bonded.pdb", SYSTEM_ATOMS, bonds=[(5, 6), (5, 7)])
        partition = molecule_partition(load_structure(path))
        assert sorted(partition.sizes.tolist()) == [1, 1, 1, 1, 3]


class TestSources:
    def test_structure_source(self, gro_file):
        universe = load_structure(gro_file)
        source = StructureSource(universe)
        frames = list(source.frames())
        assert len(frames) == 1
        assert frames[0].time is None
        assert frames[0].box.lx == pytest.approx(BOX_LENGTH)
        assert not source.has_time

    def test_trajectory_source(self, trajectory_files):
        source = TrajectorySource(trajectory_files[0])
        assert source.has_time
        assert source.n_atoms == 7
        with source:
            frames = list(source.frames())
        assert [f.time for f in frames] == pytest.approx([0.0, 10.0, 20.0])
        assert [f.step for f in frames] == [0, 1000, 2000]

    def test_triclinic_later_frame_reports_position(self, tmp_path, gro_file):
        cube = [BOX_LENGTH, BOX_LENGTH, BOX_LENGTH, 90.0, 90.0, 90.0]
        skewed = [BOX_LENGTH, BOX_LENGTH, BOX_LENGTH, 90.0, 90.0, 60.0]
        path = _write_xtc(
            tmp_path / "skewed.xtc", gro_file, [0.0, 1.0, 2.0], dimensions=[cube, cube, skewed]
        )
        source = TrajectorySource(path)

        with source, pytest.raises(FrameProcessingError) as excinfo:
            for _ in source.frames():
                pass

        error = excinfo.value
        assert error.frame_index == 2
        assert error.stage == "reading"
        assert error.time == pytest.approx(2.0)
        assert isinstance(error.__cause__, UnsupportedGeometryError)
        assert str(path) in str(error)


# ---------------------------------------------------------------------------
# center()
# ---------------------------------------------------------------------------


class TestCenterStructure:
    def test_protein_centered(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.gro"
        stats = center(CenteringConfig(structure=gro_file, output=output))

        assert stats.frames_written == 1
        positions = mda.Universe(str(output)).atoms.positions
        for axis in range(3):
            assert _periodic_mean(positions[PROTEIN, axis]) == pytest.approx(15.0, abs=TOL)
        assert np.all(positions >= 0.0)
        assert np.all(positions < BOX_LENGTH)

    def test_single_axis_with_override(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.gro"
        config = CenteringConfig(
            structure=gro_file, output=output, axes=["y"], yref="resname SOL"
        )
        center(config)

        before = mda.Universe(str(gro_file)).atoms.positions
        after = mda.Universe(str(output)).atoms.positions
        np.testing.assert_allclose(after[:, [0, 2]], before[:, [0, 2]], atol=TOL)
        assert after[4:, 1].mean() == pytest.approx(15.0, abs=TOL)

    def test_default_index_file_used(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "index.ndx").write_text("[ Protein ]\n5 6 7\n")
        output = tmp_path / "centered.gro"
        center(CenteringConfig(structure=gro_file, output=output, axes=["x"]))

        after = mda.Universe(str(output)).atoms.positions
        assert after[4, 0] == pytest.approx(15.0, abs=TOL)

    def test_whole_molecules(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        atoms = [
            (1, "ALA", "CA", "C", (10.0, 15.0, 15.0)),
            (1, "ALA", "CB", "C", (11.0, 15.0, 15.0)),
            (2, "LIG", "C1", "C", (24.0, 15.0, 15.0)),
            (2, "LIG", "C2", "C", (26.0, 15.0, 15.0)),
        ]
        pdb = write_pdb(tmp_path / "bonded.pdb", atoms, bonds=[(1, 2), (3, 4)])

        whole = tmp_path / "whole.gro"
        center(CenteringConfig(structure=pdb, output=whole, reference="resname ALA", wrap="molecule"))
        split = tmp_path / "split.gro"
        center(CenteringConfig(structure=pdb, output=split, reference="resname ALA"))

        x_whole = mda.Universe(str(whole)).atoms.positions[:, 0]
        x_split = mda.Universe(str(split)).atoms.positions[:, 0]
        assert x_whole[3] - x_whole[2] == pytest.approx(2.0, abs=TOL)
        assert x_split[2] == pytest.approx(28.5, abs=TOL)
        assert x_split[3] == pytest.approx(0.5, abs=TOL)

    def test_existing_output_backed_up(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.gro"
        output.write_text("previous")
        center(CenteringConfig(structure=gro_file, output=output))
        assert (tmp_path / "#centered.gro.1#").read_text() == "previous"

    def test_overwrite(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.gro"
        output.write_text("previous")
        center(CenteringConfig(structure=gro_file, output=output, overwrite=True))
        assert not (tmp_path / "#centered.gro.1#").exists()


class TestCenterErrors:
    def test_missing_input(self, tmp_path):
        config = CenteringConfig(structure=tmp_path / "missing.gro", output=tmp_path / "o.gro")
        with pytest.raises(ConfigurationError, match="not found"):
            center(config)

    def test_triclinic_box(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "tric.gro"
        write_gro(path)
        lines = path.read_text().splitlines()
        lines[-1] = "   3.00000   3.00000   3.00000   0.00000   0.00000   1.50000   0.00000   0.00000   0.00000"
        path.write_text("\n".join(lines) + "\n")
        with pytest.raises(UnsupportedGeometryError):
            center(CenteringConfig(structure=path, output=tmp_path / "o.gro"))

    def test_pdb_without_box(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = write_pdb(tmp_path / "nobox.pdb", SYSTEM_ATOMS)
        lines = [ln for ln in path.read_text().splitlines() if not ln.startswith("CRYST1")]
        path.write_text("\n".join(lines) + "\n")
        with pytest.raises(InvalidBoxError):
            center(CenteringConfig(structure=path, output=tmp_path / "o.gro"))

    def test_whole_without_bonds(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(MissingConnectivityError):
            center(CenteringConfig(structure=gro_file, output=tmp_path / "o.gro", wrap="molecule"))

    def test_unknown_reference(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(EmptySelectionError):
            center(CenteringConfig(structure=gro_file, output=tmp_path / "o.gro", reference="resname XYZ"))


class TestCenterTrajectory:
    def test_parts_concatenated_without_duplicate(self, tmp_path, gro_file, trajectory_files, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.xtc"
        stats = center(
            CenteringConfig(structure=gro_file, trajectories=trajectory_files, output=output)
        )

        assert stats.frames_written == 5
        assert stats.skipped_duplicate == 1

        universe = mda.Universe(str(gro_file), str(output))
        times = [ts.time for ts in universe.trajectory]
        assert times == pytest.approx([0.0, 10.0, 20.0, 30.0, 40.0])
        for _ in universe.trajectory:
            x = universe.atoms.positions[PROTEIN, 0]
            assert _periodic_mean(x) == pytest.approx(15.0, abs=TOL)

    def test_time_window_and_stride(self, tmp_path, gro_file, trajectory_files, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.xtc"
        stats = center(
            CenteringConfig(
                structure=gro_file,
                trajectories=trajectory_files,
                output=output,
                begin=10.0,
                end=30.0,
                step=2,
            )
        )

        assert stats.frames_written == 2
        universe = mda.Universe(str(gro_file), str(output))
        assert [ts.time for ts in universe.trajectory] == pytest.approx([10.0, 30.0])

    def test_fractional_times_at_window_edges(self, tmp_path, gro_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        trajectory = _write_xtc(tmp_path / "fine.xtc", gro_file, [i / 10 for i in range(11)])
        output = tmp_path / "window.xtc"

        stats = center(
            CenteringConfig(
                structure=gro_file,
                trajectories=[trajectory],
                output=output,
                begin=0.7,
                end=0.9,
            )
        )

        assert stats.frames_written == 3
        universe = mda.Universe(str(gro_file), str(output))
        assert [ts.time for ts in universe.trajectory] == pytest.approx([0.7, 0.8, 0.9], abs=1e-4)

    def test_start_time_not_found(self, tmp_path, gro_file, trajectory_files, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = CenteringConfig(
            structure=gro_file,
            trajectories=trajectory_files,
            output=tmp_path / "centered.xtc",
            begin=1000.0,
        )
        with pytest.raises(StartTimeNotFoundError):
            center(config)
