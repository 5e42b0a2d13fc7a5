"""Configuration management utilities."""

from vgce.core.configs.loader import load_app_config, load_config, save_config
from vgce.core.configs.schema import (
    STARTPOS,
    AppConfig,
    config_from_dict,
    config_to_dict,
    parse_uci_options,
)

__all__ = [
    "STARTPOS",
    "AppConfig",
    "config_from_dict",
    "config_to_dict",
    "load_app_config",
    "load_config",
    "parse_uci_options",
    "save_config",
]
