"""Tests for the mdcenter command-line interface."""

from __future__ import annotations

import sys

import pytest
import yaml
from click.testing import CliRunner

from mdcenter.cli.main import cli, main


@pytest.fixture
def runner():
    return CliRunner()


class TestCliBasics:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("center", "validate", "info"):
            assert command in result.output

    def test_center_help(self, runner):
        result = runner.invoke(cli, ["center", "--help"])
        assert result.exit_code == 0
        assert "--zref" in result.output
        assert "--whole" in result.output

    def test_info(self, runner):
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 0
        assert "mdcenter version" in result.output
        assert "numpy" in result.output


class TestValidateCommand:
    def test_valid_config(self, runner, tmp_path):
        path = tmp_path / "center.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "structure": "system.gro",
                    "trajectories": ["md.xtc"],
                    "output": "out.xtc",
                    "axes": ["z"],
                    "zref": "resname POPC",
                }
            )
        )
        result = runner.invoke(cli, ["validate", "-c", str(path)])
        assert result.exit_code == 0, result.output
        assert "Configuration is valid" in result.output
        assert "Protein (z: resname POPC)" in result.output
        assert "Dimensions: z" in result.output

    def test_invalid_config(self, runner, tmp_path):
        path = tmp_path / "center.yaml"
        path.write_text(yaml.safe_dump({"structure": "system.gro", "output": "out.gro", "step": 0}))
        result = runner.invoke(cli, ["validate", "-c", str(path)])
        assert result.exit_code != 0


class TestCenterCommand:
    def test_missing_required_options(self, runner, tmp_path):
        result = runner.invoke(cli, ["center", "-o", str(tmp_path / "out.gro")])
        assert result.exit_code == 2
        assert "--structure" in result.output

    def test_center_structure(self, runner, tmp_path, gro_file, monkeypatch):
        pytest.importorskip("MDAnalysis")
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.gro"

        result = runner.invoke(cli, ["-q", "center", "-c", str(gro_file), "-o", str(output), "-x"])

        assert result.exit_code == 0, result.output
        assert output.exists()
        assert "Wrote 1 frame(s)" in result.output

    def test_center_trajectories(self, runner, tmp_path, gro_file, trajectory_files, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output = tmp_path / "centered.xtc"
        args = ["center", "-c", str(gro_file), "-o", str(output), "-s", "2"]
        for path in trajectory_files:
            args += ["-f", str(path)]

        result = runner.invoke(cli, args)

        assert result.exit_code == 0, result.output
        assert "Wrote 3 frame(s)" in result.output

    def test_config_file_with_overrides(self, runner, tmp_path, gro_file, monkeypatch):
        pytest.importorskip("MDAnalysis")
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "center.yaml"
        config.write_text(
            yaml.safe_dump({"structure": gro_file.name, "output": "from_config.gro"})
        )
        output = tmp_path / "from_cli.gro"

        result = runner.invoke(cli, ["center", "--config", str(config), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()
        assert not (tmp_path / "from_config.gro").exists()

    def test_override_for_disabled_axis(self, runner, tmp_path, gro_file):
        result = runner.invoke(
            cli,
            ["center", "-c", str(gro_file), "-o", str(tmp_path / "o.gro"), "-z", "--xref", "resname SOL"],
        )
        assert result.exit_code != 0


class TestMain:
    def test_error_reported(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(
            sys,
            "argv",
            ["mdcenter", "center", "-c", str(tmp_path / "missing.gro"), "-o", str(tmp_path / "o.gro")],
        )
        assert main() == 1
        assert "Error:" in capsys.readouterr().err

    def test_help_exit_code(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["mdcenter", "--help"])
        assert main() == 0
