"""Strongly-typed configuration schema for VGCE.

The dataclass is the single source of truth for all runtime options; the CLI
and YAML config files both end up here.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import chess
from loguru import logger

from vgce.errors import ConfigError

STARTPOS = "startpos"

PV_DEPTH_RANGE = (1, 100)
MULTI_PV_RANGE = (1, 256)


@dataclass
class AppConfig:
    """Options for one analysis session."""

    engine_path: Path = field(default_factory=lambda: Path("stockfish"))
    engine_args: list[str] = field(default_factory=list)
    position: str = STARTPOS  # "startpos" or a FEN string

    eval_threshold: int = 30  # Centipawns before a score is coloured
    pv_depth_limit: int = 20  # Plies shown in the tree view
    multi_pv: int = 1
    max_depth: int = 0  # 0 = "go infinite"

    enable_logging: bool = True
    log_file: Path = field(default_factory=lambda: Path("vgce_engine_log.txt"))
    pause_on_start: bool = False

    # Raw "Name=Value" strings sent as setoption commands
    uci_options: list[str] = field(default_factory=list)

    # Timing
    poll_interval: float = 0.001  # Reader sleep when no output is buffered (s)
    queue_timeout: float = 0.05  # Orchestrator wait on the line queue (s)
    refresh_per_second: float = 10.0

    def __post_init__(self) -> None:
        """Normalise paths and validate ranges."""
        if isinstance(self.engine_path, str):
            self.engine_path = Path(self.engine_path)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)
        self.engine_args = list(self.engine_args)
        self.uci_options = list(self.uci_options)

        _check_range("pv_depth_limit", self.pv_depth_limit, *PV_DEPTH_RANGE)
        _check_range("multi_pv", self.multi_pv, *MULTI_PV_RANGE)
        if self.max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.eval_threshold <= 0:
            raise ConfigError(f"eval_threshold must be positive, got {self.eval_threshold}")
        if self.poll_interval <= 0 or self.queue_timeout <= 0:
            raise ConfigError("poll_interval and queue_timeout must be positive")
        if self.refresh_per_second <= 0:
            raise ConfigError("refresh_per_second must be positive")

        self.position = self.position.strip()
        if self.position != STARTPOS:
            try:
                chess.Board(self.position)
            except ValueError as e:
                raise ConfigError(f"Invalid FEN '{self.position}': {e}") from e

    @property
    def go_command(self) -> str:
        """The command that starts (or restarts) the search."""
        if self.max_depth > 0:
            return f"go depth {self.max_depth}"
        return "go infinite"

    @property
    def position_command(self) -> str:
        if self.position == STARTPOS:
            return "position startpos"
        return f"position fen {self.position}"

    def option_commands(self) -> list[str]:
        """``setoption`` commands for MultiPV and the custom options.

        Custom options without an ``=`` are skipped.
        """
        commands = []
        if self.multi_pv > 1:
            commands.append(f"setoption name MultiPV value {self.multi_pv}")
        for name, value in parse_uci_options(self.uci_options):
            commands.append(f"setoption name {name} value {value}")
        return commands


def parse_uci_options(options: list[str]) -> list[tuple[str, str]]:
    """Split ``Name=Value`` strings, dropping entries without ``=``."""
    pairs = []
    for option in options:
        name, sep, value = option.partition("=")
        if sep:
            pairs.append((name, value))
        else:
            logger.warning(f"Ignoring UCI option without '=': {option}")
    return pairs


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ConfigError(f"{name} must be in [{low}, {high}], got {value}")


def config_from_dict(data: dict[str, Any]) -> AppConfig:
    """Create AppConfig from a dictionary (e.g., from OmegaConf).

    Unknown keys are ignored.

    Args:
        data: Dictionary with configuration values.

    Returns:
        AppConfig instance.
    """
    known = AppConfig.__dataclass_fields__.keys()
    return AppConfig(**{key: value for key, value in data.items() if key in known})


def config_to_dict(config: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to a dictionary for serialization.

    Args:
        config: AppConfig instance.

    Returns:
        Dictionary representation with paths as strings.
    """
    result = asdict(config)
    result["engine_path"] = str(result["engine_path"])
    result["log_file"] = str(result["log_file"])
    return result
