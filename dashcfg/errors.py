"""
Exception taxonomy for config loading.
NotFound / Invalid are returned as result values by the loaders; these
exceptions cover the storage layer and the genuinely exceptional paths.
"""


class ConfigError(Exception):
    """Base class for all config engine failures."""


class ConfigNotFound(ConfigError):
    """The requested path does not exist in the store."""

    def __init__(self, path: str):
        super().__init__(f"Config not found: {path}")
        self.path = path


class ConfigIOError(ConfigError):
    """Underlying read/list failure (permissions, timeout, storage issue)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to read {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigParseError(ConfigError):
    """Malformed JSON in a config file."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Invalid JSON in {source}: {reason}")
        self.source = source
        self.reason = reason


class MenuLoadError(ConfigError):
    """A menu file failed to load under the fail-fast policy."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Menu file {source} could not be loaded: {reason}")
        self.source = source
        self.reason = reason


class SettingsError(ConfigError):
    """The settings file is malformed or holds invalid values."""
