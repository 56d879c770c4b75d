"""
Environment-variable binding engine.

Walks a dataclass instance depth-first and assigns every field tagged
with an `env` key from the environment:

    load(config)                       # reads os.environ
    load(config, {"APP_PORT": "80"})   # any Mapping[str, str]

Per field, in order:
    1. Untagged fields are left alone.
    2. If the declaring record implements EnvUnmarshaler, its
       unmarshal_field() is asked first. A non-None result wins, even
       when the variable is not set at all.
    3. Otherwise an absent variable leaves the field alone, and a present
       one (even "") is coerced according to the field's Kind.

Optional[...] fields (pointer mode) only receive a value when one is
produced; otherwise they keep their current value.

The environment mapping is read live, one lookup per field. A load is not
a transaction: fields bound before a DecodeError keep their new values.
"""

import logging
import os
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from confbind.errors import ConfigError, DecodeError
from confbind.fields import FieldDescriptor, check_target, describe_fields, is_record
from confbind.kinds import SKIP


logger = logging.getLogger(__name__)


@runtime_checkable
class EnvUnmarshaler(Protocol):
    """
    Optional capability of a record to decode its own fields.

    unmarshal_field() receives the attribute name, the environment key and
    the raw value ("" when the key is absent). It returns the value to
    assign, None to fall through to default coercion, or raises.
    """

    def unmarshal_field(self, field: str, name: str, value: str) -> Any:
        ...


def load(target: Any, environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Populate `target` from environment variables.

    Args:
        target: Mutable dataclass instance.
        environ: Key/value lookup to read from (defaults to os.environ).

    Raises:
        InvalidArgumentError: If target is None or not a mutable dataclass instance.
        DecodeError: If a float field or a custom decoder fails.
    """
    check_target(target, "load")
    walk(target, environ=os.environ if environ is None else environ)


def walk(
    value: Any,
    descriptor: Optional[FieldDescriptor] = None,
    parent: Any = None,
    environ: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Bind `value` (when it is a field of `parent`) and recurse into it.

    The root call passes no descriptor and only recurses. Values that are
    not dataclass instances are leaves, including None for an unset
    Optional record, which is never allocated.
    """
    if environ is None:
        environ = os.environ

    if descriptor is not None:
        bind(parent, descriptor, environ)
        # the binder may have replaced the field
        value = getattr(parent, descriptor.name, None)

    if not is_record(value):
        return

    for child in describe_fields(type(value)):
        walk(getattr(value, child.name, None), child, value, environ)


def bind(parent: Any, descriptor: FieldDescriptor, environ: Mapping[str, str]) -> None:
    """
    Assign one field of `parent` from the environment, if it is tagged.

    Raises:
        DecodeError: On float parse failures and custom decoder failures.
    """
    key = descriptor.key
    if not key:
        return

    custom = unmarshal_from_record(parent, descriptor, environ)
    if custom is not None:
        if descriptor.optional:
            setattr(parent, descriptor.name, custom)
        else:
            setattr(parent, descriptor.name, convert_custom(custom, descriptor))
        logger.debug("bound %s.%s from custom decoder (%s)", type(parent).__name__, descriptor.name, key)
        return

    raw = environ.get(key)
    if raw is None:
        return

    kind = descriptor.kind
    if kind is None:
        logger.debug(
            "skipping %s.%s: unsupported type %r", type(parent).__name__, descriptor.name, descriptor.annotation
        )
        return

    try:
        value = kind.parse(raw)
    except ValueError as e:
        raise DecodeError(f"field {descriptor.name} (env {key}): {e}") from e

    if value is SKIP:
        logger.debug("skipping %s.%s: cannot parse %r as %s", type(parent).__name__, descriptor.name, raw, kind.value)
        return

    setattr(parent, descriptor.name, value)
    logger.debug("bound %s.%s from %s", type(parent).__name__, descriptor.name, key)


def unmarshal_from_record(parent: Any, descriptor: FieldDescriptor, environ: Mapping[str, str]) -> Any:
    """
    Ask the declaring record's custom decoder for a field value.

    Returns:
        The decoded value, or None when the record has no decoder or the
        decoder declines the field.
    """
    if not isinstance(parent, EnvUnmarshaler):
        return None
    key = descriptor.key
    try:
        return parent.unmarshal_field(descriptor.name, key, environ.get(key, ""))
    except ConfigError:
        raise
    except Exception as e:
        raise DecodeError(f"field {descriptor.name} (env {key}): custom decoder failed: {e}") from e


def convert_custom(value: Any, descriptor: FieldDescriptor) -> Any:
    """Convert a custom-decoded value to the field's declared type."""
    try:
        if descriptor.kind is not None:
            return descriptor.kind.convert(value)
        target_type = descriptor.inner
        if not isinstance(target_type, type) or isinstance(value, target_type):
            return value
        return target_type(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise DecodeError(
            f"field {descriptor.name} (env {descriptor.key}): cannot convert {value!r}: {e}"
        ) from e
