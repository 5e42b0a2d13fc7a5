"""Tests for core utilities."""

from pathlib import Path

import pytest
from loguru import logger

from vgce.core.configs import (
    AppConfig,
    config_from_dict,
    config_to_dict,
    load_app_config,
    load_config,
    parse_uci_options,
    save_config,
)
from vgce.core.utils.logging import add_engine_log, engine_logger
from vgce.errors import ConfigError, VGCEError


class TestConfig:
    """Tests for configuration utilities."""

    def test_load_config_from_file(self, tmp_path: Path) -> None:
        """Test loading a config file."""
        config_file = tmp_path / "test.yaml"
        config_file.write_text("multi_pv: 3\nuci_options:\n  - Threads=4\n")

        config = load_config(config_file)

        assert config.multi_pv == 3
        assert list(config.uci_options) == ["Threads=4"]

    def test_load_config_with_overrides(self, tmp_path: Path) -> None:
        """Test loading config with CLI overrides."""
        config_file = tmp_path / "test.yaml"
        config_file.write_text("multi_pv: 3\n")

        config = load_config(config_file, overrides=["multi_pv=5"])

        assert config.multi_pv == 5

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """Test a missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_load_config_drops_unknown_keys(self, tmp_path: Path) -> None:
        """Test keys outside the schema are removed, from the file and overrides."""
        config_file = tmp_path / "test.yaml"
        config_file.write_text("multi_pv: 2\nmultipv: 4\ntheme: dark\n")

        config = load_config(config_file, overrides=["colour=red", "max_depth=12"])

        assert set(config.keys()) == {"multi_pv", "max_depth"}
        assert config.multi_pv == 2

    def test_load_config_rejects_non_mapping(self, tmp_path: Path) -> None:
        """Test a YAML list is not a configuration."""
        config_file = tmp_path / "test.yaml"
        config_file.write_text("- multi_pv\n- 3\n")

        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_save_config(self, tmp_path: Path) -> None:
        """Test saving an AppConfig and reading it back."""
        config = AppConfig(engine_path=Path("/opt/engines/stockfish"), multi_pv=4, max_depth=20)
        config_file = tmp_path / "out" / "vgce.yaml"

        save_config(config, config_file)

        assert config_file.exists()
        loaded = load_app_config(config_file)
        assert loaded == config

    def test_load_app_config_defaults(self) -> None:
        """Test the schema defaults without a file."""
        config = load_app_config()

        assert config == AppConfig()
        assert config.position == "startpos"
        assert config.pv_depth_limit == 20

    def test_load_app_config_ignores_unknown_keys(self, tmp_path: Path) -> None:
        """Test unrelated YAML keys do not break loading."""
        config_file = tmp_path / "test.yaml"
        config_file.write_text("eval_threshold: 50\ntheme: dark\n")

        config = load_app_config(config_file, overrides=["pause_on_start=true"])

        assert config.eval_threshold == 50
        assert config.pause_on_start is True

    def test_load_app_config_validates(self, tmp_path: Path) -> None:
        """Test out-of-range file values are rejected."""
        config_file = tmp_path / "test.yaml"
        config_file.write_text("multi_pv: 0\n")

        with pytest.raises(ConfigError):
            load_app_config(config_file)

    def test_dict_round_trip(self) -> None:
        """Test config_to_dict output is accepted by config_from_dict."""
        config = AppConfig(engine_args=["--threads", "2"], uci_options=["Hash=64"])
        data = config_to_dict(config)

        assert isinstance(data["engine_path"], str)
        assert config_from_dict(data) == config


class TestAppConfig:
    """Tests for AppConfig validation and derived commands."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"pv_depth_limit": 0},
            {"pv_depth_limit": 101},
            {"multi_pv": 257},
            {"max_depth": -1},
            {"eval_threshold": 0},
            {"poll_interval": 0},
            {"position": "not a fen"},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        """Test invalid options raise ConfigError."""
        with pytest.raises(ConfigError):
            AppConfig(**kwargs)

    def test_config_error_hierarchy(self) -> None:
        """Test ConfigError is catchable as ValueError and VGCEError."""
        with pytest.raises(ValueError):
            AppConfig(multi_pv=0)
        assert issubclass(ConfigError, VGCEError)

    def test_paths_are_normalised(self) -> None:
        config = AppConfig(engine_path="stockfish", log_file="logs/engine.txt")
        assert config.engine_path == Path("stockfish")
        assert config.log_file == Path("logs/engine.txt")

    def test_go_command(self) -> None:
        assert AppConfig().go_command == "go infinite"
        assert AppConfig(max_depth=18).go_command == "go depth 18"

    def test_position_command(self) -> None:
        fen = "8/8/8/4k3/8/8/4K3/4R3 w - - 0 1"
        assert AppConfig().position_command == "position startpos"
        assert AppConfig(position=f"  {fen} ").position_command == f"position fen {fen}"

    def test_option_commands(self) -> None:
        """Test MultiPV comes first and malformed options are dropped."""
        config = AppConfig(multi_pv=2, uci_options=["Threads=4", "nonsense", "SyzygyPath=/tb=x"])

        assert config.option_commands() == [
            "setoption name MultiPV value 2",
            "setoption name Threads value 4",
            "setoption name SyzygyPath value /tb=x",
        ]

    def test_single_pv_sends_no_multipv(self) -> None:
        assert AppConfig().option_commands() == []

    def test_parse_uci_options(self) -> None:
        assert parse_uci_options(["Hash=128", "Ponder=", "bad"]) == [("Hash", "128"), ("Ponder", "")]


class TestEngineLog:
    """Tests for the raw engine output log."""

    def test_engine_lines_go_to_engine_log(self, tmp_path: Path) -> None:
        """Test only engine lines are written, one per line."""
        log_path = tmp_path / "engine.log"
        handler_id = add_engine_log(log_path)
        try:
            engine_logger.trace("info depth 1 pv e2e4")
            logger.info("application message")
            engine_logger.trace("bestmove e2e4")
        finally:
            logger.remove(handler_id)

        assert log_path.read_text().splitlines() == ["info depth 1 pv e2e4", "bestmove e2e4"]

    def test_engine_log_is_truncated(self, tmp_path: Path) -> None:
        """Test a new session starts a fresh log file."""
        log_path = tmp_path / "engine.log"
        log_path.write_text("stale\n")

        handler_id = add_engine_log(log_path)
        try:
            engine_logger.trace("uciok")
        finally:
            logger.remove(handler_id)

        assert log_path.read_text() == "uciok\n"
