"""Custom exceptions for reminder configuration."""


class ConfigError(Exception):
    """Raised when the reminder configuration cannot be loaded or is invalid."""
