"""
confbind: declarative configuration records.

Populates dataclass instances from configuration files (through a
pluggable decoder) and from environment variables (through per-field
`env` tags).

    from dataclasses import dataclass
    from confbind import env_field, load_from_env, UInt16

    @dataclass
    class Settings:
        host: str = env_field("APP_HOST", default="localhost")
        port: UInt16 = env_field("APP_PORT", default=8080)

    settings = Settings()
    load_from_env(settings)
"""

from confbind.config import Mode, load_from_env, load_from_file, set_reader_file
from confbind.decoders import JSON_DECODER, YAML_DECODER, Decoder, DecoderFunc
from confbind.env import EnvUnmarshaler, load
from confbind.errors import ConfigError, DecodeError, InvalidArgumentError
from confbind.fields import env_field
from confbind.kinds import (
    Float32,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DecodeError",
    "Decoder",
    "DecoderFunc",
    "EnvUnmarshaler",
    "Float32",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "InvalidArgumentError",
    "JSON_DECODER",
    "Mode",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "YAML_DECODER",
    "env_field",
    "load",
    "load_from_env",
    "load_from_file",
    "set_reader_file",
]
