"""
Field Descriptors for bindable records.

Records are plain dataclasses. A field opts into environment binding by
carrying an `env` key in its metadata, usually through env_field():

    @dataclass
    class ServerConfig:
        host: str = env_field("APP_HOST", default="localhost")
        port: UInt16 = env_field("APP_PORT", default=8080)
        debug: Optional[bool] = env_field("APP_DEBUG", default=None)
        database: DatabaseConfig = field(default_factory=DatabaseConfig)

Untagged fields are never bound, but dataclass-typed fields are still
walked so their own tagged fields are bound. Keys are never prefixed with
the parent's name.
"""

import dataclasses
import functools
import sys
import types
import typing
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from confbind.errors import InvalidArgumentError
from confbind.kinds import Kind, kind_of


ENV_TAG = "env"
FILE_TAG = "file"


def env_field(key: str, *, file: Optional[str] = None, **kwargs: Any) -> Any:
    """
    Declare a dataclass field bound to the environment variable `key`.

    Args:
        key: Environment variable name. An empty key means "not bound".
        file: Document key used by the file decoders (defaults to the field name).
        **kwargs: Passed through to dataclasses.field (default, default_factory, ...).
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[ENV_TAG] = key
    if file is not None:
        metadata[FILE_TAG] = file
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Binding metadata for one dataclass field.

    Properties:
        name: Attribute name, used to assign the field on its record.
        annotation: Resolved type hint as declared.
        inner: The annotation with Optional[...] removed.
        key: Environment variable name, or None when the field is unbound.
        file_key: Document key for file decoders.
        kind: Primitive Kind of `inner`, or None if unsupported.
        optional: True when declared Optional[...] (pointer mode).
        record: True when `inner` is itself a dataclass.
    """

    name: str
    annotation: Any
    inner: Any
    key: Optional[str] = None
    file_key: Optional[str] = None
    kind: Optional[Kind] = None
    optional: bool = False
    record: bool = False


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Return (inner, True) for Optional[inner]; (annotation, False) otherwise."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0], True
    return annotation, False


def is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def is_record(value: Any) -> bool:
    """True for dataclass instances (not dataclass classes)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def resolve_hints(record_type: type) -> Dict[str, Any]:
    """
    Resolve the field annotations of a dataclass type.

    String annotations naming types local to a function cannot be resolved
    from the module. Such fields keep the annotation string (no Kind, not a
    record type) when they are unbound; nested record values are still
    walked by their runtime type.

    Raises:
        InvalidArgumentError: If a bound field's annotation cannot be resolved.
    """
    try:
        return typing.get_type_hints(record_type)
    except NameError:
        pass

    module = sys.modules.get(record_type.__module__)
    globalns = vars(module) if module is not None else {}
    localns = dict(vars(record_type))
    hints = {}
    for f in dataclasses.fields(record_type):
        if not isinstance(f.type, str):
            hints[f.name] = f.type
            continue
        holder = types.SimpleNamespace(__annotations__={f.name: f.type})
        try:
            hints[f.name] = typing.get_type_hints(holder, globalns, localns)[f.name]
        except NameError as e:
            if f.metadata.get(ENV_TAG):
                raise InvalidArgumentError(
                    f"{record_type.__name__}.{f.name}: cannot resolve annotation {f.type!r}: {e}"
                ) from e
            hints[f.name] = f.type
    return hints


@functools.lru_cache(maxsize=None)
def describe_fields(record_type: type) -> Tuple[FieldDescriptor, ...]:
    """
    Describe the fields of a dataclass type in declaration order.

    Results are cached per type.
    """
    hints = resolve_hints(record_type)
    descriptors = []
    for f in dataclasses.fields(record_type):
        annotation = hints.get(f.name, f.type)
        inner, optional = unwrap_optional(annotation)
        descriptors.append(
            FieldDescriptor(
                name=f.name,
                annotation=annotation,
                inner=inner,
                key=f.metadata.get(ENV_TAG) or None,
                file_key=f.metadata.get(FILE_TAG) or f.name,
                kind=kind_of(inner),
                optional=optional,
                record=is_record_type(inner),
            )
        )
    return tuple(descriptors)


def check_target(target: Any, caller: str) -> None:
    """
    Validate that `target` can be populated in place.

    Raises:
        InvalidArgumentError: If target is None, not a dataclass instance,
            or an instance of a frozen dataclass.
    """
    if target is None:
        raise InvalidArgumentError(f"{caller}(None): target must not be None")
    if not is_record(target):
        raise InvalidArgumentError(
            f"{caller}(non-record {target!r}): target must be a mutable dataclass instance"
        )
    if type(target).__dataclass_params__.frozen:
        raise InvalidArgumentError(
            f"{caller}(frozen {target!r}): target must be a mutable dataclass instance"
        )
