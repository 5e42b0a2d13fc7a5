"""Logging configuration utilities."""

import sys
from pathlib import Path

from loguru import logger
from rich.console import Console

# Records bound with engine_output=True carry raw engine lines
engine_logger = logger.bind(engine_output=True)


def _is_engine_output(record) -> bool:
    return record["extra"].get("engine_output", False)


def _is_application(record) -> bool:
    return not _is_engine_output(record)


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    console: Console | None = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
) -> None:
    """Configure loguru for the application.

    Args:
        level: Minimum log level to display.
        log_file: Optional path to a log file.
        console: Send console output through this rich console instead of
            stderr, so log lines are printed above a live display.
        rotation: When to rotate the log file.
        retention: How long to keep old log files.
    """
    # Remove default handler
    logger.remove()

    fmt = (
        "<green>{time:HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )
    if console is None:
        logger.add(sys.stderr, level=level, format=fmt, colorize=True, filter=_is_application)
    else:
        logger.add(
            lambda message: console.print(message, end="", markup=False, highlight=False),
            level=level,
            format=fmt,
            colorize=False,
            filter=_is_application,
        )

    # File handler if specified
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            rotation=rotation,
            retention=retention,
            compression="gz",
            filter=_is_application,
        )

    logger.debug(f"Logging configured at level: {level}")


def add_engine_log(path: str | Path) -> int:
    """Write every raw engine line to ``path``, truncating the file first.

    Args:
        path: Destination file.

    Returns:
        The loguru handler id, for ``logger.remove``.
    """
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler_id = logger.add(
        log_path,
        level="TRACE",
        format="{message}",
        filter=_is_engine_output,
        mode="w",
    )
    logger.info(f"Engine output log: {log_path}")
    return handler_id
