"""Exception types for VGCE.

Parsing problems never raise: unrecognised lines and malformed fields are
resolved inside the parser. Only startup and configuration failures surface
as exceptions.
"""


class VGCEError(Exception):
    """Base exception for VGCE errors."""

    pass


class SpawnError(VGCEError):
    """Raised when the engine subprocess could not be started."""

    pass


class ConfigError(VGCEError, ValueError):
    """Raised when an application configuration value is out of range."""

    pass
