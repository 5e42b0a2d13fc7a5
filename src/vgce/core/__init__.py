"""Core orchestration, configuration and logging."""

from vgce.core.configs import AppConfig, load_app_config, load_config, save_config
from vgce.core.utils.logging import setup_logging

__all__ = ["AppConfig", "load_app_config", "load_config", "save_config", "setup_logging"]
