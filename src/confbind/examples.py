"""
Example configuration records.

A small service configuration exercising the binding features end to end:
nested records, width-typed integers, Optional fields, a custom decoder
for durations and log levels, and a config_mode marker.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from confbind.config import Mode
from confbind.fields import env_field
from confbind.kinds import Float32, UInt16, UInt8


class LogLevel(Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> Optional[float]:
    """
    Parse "250ms", "30s", "5m" or "1h" into seconds.

    Returns None for a value without a unit so plain numbers fall through
    to the default float coercion.
    """
    for unit in sorted(_DURATION_UNITS, key=len, reverse=True):
        if value.endswith(unit) and value[: -len(unit)]:
            return float(value[: -len(unit)]) * _DURATION_UNITS[unit]
    return None


@dataclass
class DatabaseConfig:
    url: str = env_field("APP_DATABASE_URL", default="sqlite:///app.db", file="url")
    pool_size: UInt8 = env_field("APP_DATABASE_POOL_SIZE", default=5)
    password: Optional[str] = env_field("APP_DATABASE_PASSWORD", default=None)


@dataclass
class ServerConfig:
    host: str = env_field("APP_HOST", default="127.0.0.1")
    port: UInt16 = env_field("APP_PORT", default=8080)
    debug: bool = env_field("APP_DEBUG", default=False)
    workers: Optional[int] = env_field("APP_WORKERS", default=None)
    sample_rate: Float32 = env_field("APP_SAMPLE_RATE", default=1.0)
    timeout: float = env_field("APP_TIMEOUT", default=30.0)
    log_level: LogLevel = env_field("APP_LOG_LEVEL", default=LogLevel.INFO)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    config_mode: Mode = Mode.UNKNOWN

    def unmarshal_field(self, field: str, name: str, value: str):
        if field == "timeout":
            return parse_duration(value)
        if field == "log_level" and value:
            return LogLevel(value.lower())
        return None


def build_example_config() -> ServerConfig:
    return ServerConfig()
