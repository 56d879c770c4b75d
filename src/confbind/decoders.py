"""
File decoders: bytes -> populated dataclass.

The loaders in confbind.config never parse files themselves; they hand
the raw bytes to a Decoder. JSON and YAML decoders are provided, and any
function with the signature `(data: bytes, target) -> None` can be used
through DecoderFunc.

Document keys are matched to fields by their `file` metadata, falling
back to the attribute name. Keys missing from the document leave the
field untouched, so defaults survive.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

import yaml

from confbind.errors import DecodeError
from confbind.fields import FieldDescriptor, describe_fields, is_record
from confbind.kinds import Kind, int_bounds


class Decoder(Protocol):
    def decode(self, data: bytes, target: Any) -> None:
        ...


@dataclass(frozen=True)
class DecoderFunc:
    """Adapts a plain function to the Decoder protocol."""

    func: Callable[[bytes, Any], None]

    def decode(self, data: bytes, target: Any) -> None:
        self.func(data, target)


def apply_mapping(target: Any, document: Mapping[str, Any]) -> None:
    """
    Assign values from a parsed document onto a dataclass instance.

    Nested dataclass fields take nested mappings. A nested record that is
    currently None is built with no arguments before being filled.

    Raises:
        DecodeError: On type mismatches or unbuildable nested records.
    """
    if not isinstance(document, Mapping):
        raise DecodeError(f"cannot decode {type(document).__name__} into {type(target).__name__}")

    for descriptor in describe_fields(type(target)):
        if descriptor.file_key not in document:
            continue
        raw = document[descriptor.file_key]

        if raw is None:
            if not descriptor.optional:
                raise DecodeError(f"field {descriptor.name}: null is not allowed")
            setattr(target, descriptor.name, None)
            continue

        nested = getattr(target, descriptor.name, None)
        if descriptor.record or is_record(nested):
            if nested is None:
                try:
                    nested = descriptor.inner()
                except TypeError as e:
                    raise DecodeError(f"field {descriptor.name}: cannot build {descriptor.inner.__name__}: {e}") from e
            if not isinstance(raw, Mapping):
                raise DecodeError(f"field {descriptor.name}: expected a mapping, got {type(raw).__name__}")
            apply_mapping(nested, raw)
            setattr(target, descriptor.name, nested)
            continue

        setattr(target, descriptor.name, _document_value(descriptor, raw))


def _document_value(descriptor: FieldDescriptor, raw: Any) -> Any:
    kind = descriptor.kind
    if kind is None:
        target_type = descriptor.inner
        if not isinstance(target_type, type) or isinstance(raw, target_type):
            return raw
        try:
            return target_type(raw)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"field {descriptor.name}: cannot convert {raw!r}: {e}") from e
    if kind.is_integer:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise DecodeError(f"field {descriptor.name}: expected an integer, got {raw!r}")
        low, high = int_bounds(kind.bits, kind.signed)
        if raw < low or raw > high:
            raise DecodeError(f"field {descriptor.name}: {raw} overflows {kind.value}")
        return raw
    if kind.is_float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise DecodeError(f"field {descriptor.name}: expected a number, got {raw!r}")
        try:
            return kind.convert(raw)
        except OverflowError as e:
            raise DecodeError(f"field {descriptor.name}: {raw} overflows {kind.value}") from e
    expected = bool if kind is Kind.BOOL else str
    if not isinstance(raw, expected):
        raise DecodeError(f"field {descriptor.name}: expected {expected.__name__}, got {raw!r}")
    return raw


def decode_json(data: bytes, target: Any) -> None:
    try:
        document = json.loads(data)
    except ValueError as e:
        raise DecodeError(f"invalid JSON: {e}") from e
    apply_mapping(target, document)


def decode_yaml(data: bytes, target: Any) -> None:
    """
    Decode YAML; an empty document leaves the target unchanged.

    Scalars are not stringified: `port: 123` into a `str` field raises
    DecodeError. Quote the value in the document (`port: "123"`) instead.
    """
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise DecodeError(f"invalid YAML: {e}") from e
    if document is None:
        return
    apply_mapping(target, document)


JSON_DECODER = DecoderFunc(decode_json)
YAML_DECODER = DecoderFunc(decode_yaml)
