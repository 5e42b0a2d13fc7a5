"""Configuration loading utilities."""

import dataclasses
from pathlib import Path
from typing import Any

from loguru import logger
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from vgce.core.configs.schema import AppConfig, config_from_dict, config_to_dict
from vgce.errors import ConfigError

SCHEMA_KEYS = frozenset(field.name for field in dataclasses.fields(AppConfig))


def load_config(config_path: str | Path, overrides: list[str] | None = None) -> DictConfig:
    """Read a VGCE YAML file and apply dotlist overrides.

    Top-level keys that AppConfig does not define are dropped with a warning,
    so a misspelt option is reported rather than silently ignored.

    Args:
        config_path: Path to the YAML configuration file.
        overrides: Optional dotlist overrides (e.g., ["multi_pv=3"]).

    Returns:
        The file merged with the overrides, restricted to schema keys.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file is not a mapping or an override is malformed.
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    config = OmegaConf.load(config_path)
    if not isinstance(config, DictConfig):
        raise ConfigError(f"{config_path} must contain a mapping of options")

    if overrides:
        try:
            config = OmegaConf.merge(config, OmegaConf.from_dotlist(overrides))
        except OmegaConfBaseException as e:
            raise ConfigError(f"Invalid override: {e}") from e

    known = [key for key in config.keys() if key in SCHEMA_KEYS]
    unknown = sorted(str(key) for key in config.keys() if key not in SCHEMA_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {config_path}: {', '.join(unknown)}")
        config = OmegaConf.masked_copy(config, known)
    return config


def load_app_config(
    config_path: str | Path | None = None,
    overrides: list[str] | None = None,
) -> AppConfig:
    """Build an AppConfig from the schema defaults, a YAML file and overrides.

    Args:
        config_path: Optional YAML file; keys not in the schema are ignored.
        overrides: Optional dotlist overrides applied last.

    Returns:
        Validated AppConfig.
    """
    config = OmegaConf.create(config_to_dict(AppConfig()))
    if config_path is not None:
        config = OmegaConf.merge(config, load_config(config_path))
    if overrides:
        config = OmegaConf.merge(config, OmegaConf.from_dotlist(overrides))

    data = OmegaConf.to_container(config, resolve=True)
    return config_from_dict(data)


def save_config(config: AppConfig | DictConfig | dict[str, Any], path: str | Path) -> None:
    """Save a configuration to a YAML file.

    Args:
        config: Configuration to save.
        path: Path to save the configuration to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(config, AppConfig):
        config = config_to_dict(config)
    if isinstance(config, dict):
        config = OmegaConf.create(config)

    OmegaConf.save(config, path)
