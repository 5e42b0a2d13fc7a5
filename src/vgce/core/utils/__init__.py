"""Shared utilities for VGCE."""

from vgce.core.utils.logging import add_engine_log, engine_logger, setup_logging

__all__ = ["add_engine_log", "engine_logger", "setup_logging"]
