"""
YAML configuration loader and saver for mdcenter.

Relative file paths in a configuration file are resolved against the
directory containing that file, and environment variables in paths are
expanded.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from mdcenter.config.schema import CenteringConfig

PATH_KEYS = {"structure", "trajectories", "output", "index"}


def _expand_paths(data: Dict[str, Any], base_path: Path) -> Dict[str, Any]:
    """Expand environment variables and make relative paths absolute.

    Args:
        data: Configuration dictionary
        base_path: Directory containing the config file

    Returns:
        Configuration with expanded paths
    """

    def expand_value(key: str, value: Any) -> Any:
        if key in PATH_KEYS and isinstance(value, str):
            path = Path(os.path.expandvars(value)).expanduser()
            if not path.is_absolute():
                path = base_path / path
            return str(path)
        elif isinstance(value, list):
            return [expand_value(key, item) for item in value]
        return value

    return {k: expand_value(k, v) for k, v in data.items()}


def _convert_paths_to_relative(data: Dict[str, Any], base_path: Path) -> Dict[str, Any]:
    """Convert absolute paths below ``base_path`` to relative paths for saving."""

    def relativize_value(key: str, value: Any) -> Any:
        if key in PATH_KEYS and isinstance(value, str):
            path = Path(value)
            if path.is_absolute():
                try:
                    return str(path.relative_to(base_path))
                except ValueError:
                    # Not below base_path, keep absolute
                    return value
            return value
        elif isinstance(value, list):
            return [relativize_value(key, item) for item in value]
        return value

    return {k: relativize_value(k, v) for k, v in data.items()}


def read_config_data(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML configuration file into a dictionary with expanded paths.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the file does not contain a mapping
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    return _expand_paths(data, path.parent.absolute())


def load_config(path: Union[str, Path]) -> CenteringConfig:
    """Load a CenteringConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Validated CenteringConfig instance

    Raises:
        FileNotFoundError: If the config file doesn't exist
        yaml.YAMLError: If the YAML is malformed
        pydantic.ValidationError: If the configuration is invalid

    Example:
        >>> config = load_config("center.yaml")
        >>> config.reference
        'Protein'
    """
    return CenteringConfig.model_validate(read_config_data(path))


def load_config_dict(data: Dict[str, Any], base_path: Path | None = None) -> CenteringConfig:
    """Create a CenteringConfig from a dictionary.

    Relative paths are resolved against ``base_path`` (default: the current
    directory).
    """
    base = base_path if base_path is not None else Path.cwd()
    return CenteringConfig.model_validate(_expand_paths(data, base))


def save_config(
    config: CenteringConfig, path: Union[str, Path], relative_paths: bool = True
) -> None:
    """Save a CenteringConfig to a YAML file.

    Args:
        config: Configuration to save
        path: Destination path for the YAML file
        relative_paths: Whether to store paths relative to the file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", exclude_none=True)
    if relative_paths:
        data = _convert_paths_to_relative(data, path.parent.absolute())

    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, width=100)
