"""VGCE: live search-tree explorer for UCI chess engines.

The engine's streamed principal variations are merged into one navigable
tree while the search runs:

- `from vgce.uci import parse_line, EngineSession`
- `from vgce.model import SearchTree`
- `from vgce.core.application import Application`
"""

__version__ = "0.1.0"

# Re-export common utilities for convenience
from vgce.core import AppConfig, load_config, save_config, setup_logging
from vgce.errors import ConfigError, SpawnError, VGCEError
from vgce.model import SearchTree

__all__ = [
    "AppConfig",
    "ConfigError",
    "SearchTree",
    "SpawnError",
    "VGCEError",
    "__version__",
    "load_config",
    "save_config",
    "setup_logging",
]
