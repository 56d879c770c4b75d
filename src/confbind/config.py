"""
Top-level configuration loaders.

    load_from_file(cfg, "app.yaml", YAML_DECODER)
    load_from_env(cfg)

Both validate the target first and, on success, record where the values
came from in the record's `config_mode` field when it is declared with
type Mode:

    @dataclass
    class AppConfig:
        addr: str = env_field("APP_ADDR", default="")
        config_mode: Mode = Mode.UNKNOWN
"""

import logging
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from confbind import env
from confbind.decoders import Decoder
from confbind.fields import check_target, describe_fields


logger = logging.getLogger(__name__)

MODE_FIELD = "config_mode"


class Mode(Enum):
    """Source a configuration record was last loaded from."""

    UNKNOWN = 0
    FILE = 1
    ENVIRONMENT = 2

    def __str__(self) -> str:
        return self.name.lower()


def _read_bytes(file_name: str) -> bytes:
    with open(file_name, "rb") as fh:
        return fh.read()


_reader_file: Callable[[str], bytes] = _read_bytes


def set_reader_file(fn: Callable[[str], bytes]) -> Callable[[str], bytes]:
    """
    Replace the function used to read configuration files.

    Returns:
        The previous reader, so callers (mostly tests) can restore it.
    """
    global _reader_file
    previous = _reader_file
    _reader_file = fn
    return previous


def load_from_file(target: Any, file_name: str, decoder: Decoder) -> None:
    """
    Read `file_name` and decode it into `target`.

    Raises:
        InvalidArgumentError: If target is not a mutable dataclass instance.
        OSError: If the file cannot be read.
        DecodeError: If the decoder rejects the data.
    """
    check_target(target, "load_from_file")
    data = _reader_file(file_name)
    decoder.decode(data, target)
    set_mode(target, Mode.FILE)
    logger.info("loaded %s from %s", type(target).__name__, file_name)


def load_from_env(target: Any, environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Populate `target` from environment variables (see confbind.env.load).

    Raises:
        InvalidArgumentError: If target is not a mutable dataclass instance.
        DecodeError: If a float field or a custom decoder fails.
    """
    check_target(target, "load_from_env")
    env.load(target, environ)
    set_mode(target, Mode.ENVIRONMENT)
    logger.info("loaded %s from environment", type(target).__name__)


def set_mode(target: Any, mode: Mode) -> None:
    """Set target.config_mode when it is declared with type Mode; no-op otherwise."""
    for descriptor in describe_fields(type(target)):
        if descriptor.name == MODE_FIELD and descriptor.annotation is Mode:
            setattr(target, MODE_FIELD, mode)
            return
