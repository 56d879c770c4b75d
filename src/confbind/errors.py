"""
Exception taxonomy for confbind.

Every error raised by the loaders derives from ConfigError, so callers
can catch the whole family with one clause.

    ConfigError
        InvalidArgumentError  - the target cannot be populated at all
        DecodeError           - a value could not be decoded; aborts the load

Best-effort skips (malformed integers, unsupported field types, absent
environment keys) are NOT errors and never reach the caller.
"""


class ConfigError(Exception):
    """Base class for all confbind errors."""
    pass


class InvalidArgumentError(ConfigError, TypeError):
    """Raised when the load target is None or not a mutable dataclass instance."""
    pass


class DecodeError(ConfigError, ValueError):
    """Raised when a value cannot be decoded (float syntax, custom hook, document)."""
    pass
