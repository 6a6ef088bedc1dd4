"""Configuration management for centering runs."""

from mdcenter.config.loader import load_config, load_config_dict, read_config_data, save_config
from mdcenter.config.schema import CenteringConfig

__all__ = [
    "CenteringConfig",
    "load_config",
    "load_config_dict",
    "read_config_data",
    "save_config",
]
