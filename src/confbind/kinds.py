"""
Value Coercion Table

Maps declared field types to a closed set of primitive kinds and parses
raw environment strings into typed values for each kind.

Python has a single arbitrary-precision int and a double-precision float,
so declared widths are expressed with NewType aliases:

    port: UInt16
    ratio: Float32
    retries: Int8

Plain `int` and `UInt` use the 64-bit range. NewTypes built on top of
these aliases (e.g. `Port = NewType("Port", UInt16)`) resolve to the same
kind.

ARCHITECTURAL RULE:
    Integer parse failures are skipped (the field keeps its value).
    Float parse failures raise.
    This asymmetry is intentional. Do not unify it.
"""

import math
import re
import struct
from enum import Enum
from typing import Any, NewType, Optional, Tuple


Int8 = NewType("Int8", int)
Int16 = NewType("Int16", int)
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)

UInt = NewType("UInt", int)
UInt8 = NewType("UInt8", int)
UInt16 = NewType("UInt16", int)
UInt32 = NewType("UInt32", int)
UInt64 = NewType("UInt64", int)

Float32 = NewType("Float32", float)


class _Skip:
    """Sentinel type for 'no value produced, leave the field untouched'."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "SKIP"

    def __bool__(self):
        return False


SKIP = _Skip()


_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_DECIMAL_FLOAT_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_HEX_FLOAT_RE = re.compile(r"[+-]?0[xX]([0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+")
_INF_RE = re.compile(r"[+-]?(inf|infinity)", re.IGNORECASE)
_NAN_RE = re.compile(r"nan", re.IGNORECASE)


class Kind(Enum):
    """
    Primitive kinds supported by environment binding.

    Anything that does not map to one of these is skipped by the binder.
    """

    BOOL = "bool"
    STRING = "string"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"

    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"

    @property
    def is_integer(self) -> bool:
        return self in _BITS

    @property
    def is_float(self) -> bool:
        return self in (Kind.FLOAT32, Kind.FLOAT64)

    @property
    def signed(self) -> bool:
        return self.value.startswith("int")

    @property
    def bits(self) -> Optional[int]:
        """Width in bits for integer kinds; None otherwise."""
        return _BITS.get(self)

    def parse(self, raw: str) -> Any:
        """
        Parse a raw environment string into this kind.

        Returns:
            The typed value, or SKIP for a malformed integer.

        Raises:
            ValueError: If a float string cannot be parsed.
        """
        if self is Kind.BOOL:
            return parse_bool(raw)
        if self is Kind.STRING:
            return raw
        if self.is_float:
            return parse_float(raw, 32 if self is Kind.FLOAT32 else 64)
        value = parse_int(raw, self.bits, self.signed)
        return SKIP if value is None else value

    def convert(self, value: Any) -> Any:
        """
        Convert an already-typed value (e.g. from a custom decoder) to this kind.

        Integers wrap around to the declared width, floats are rounded to it.
        """
        if self is Kind.BOOL:
            return bool(value)
        if self is Kind.STRING:
            return str(value)
        if self is Kind.FLOAT32:
            return _round_float32(float(value))
        if self is Kind.FLOAT64:
            return float(value)
        return _wrap_int(int(value), self.bits, self.signed)


_BITS = {
    Kind.INT: 64,
    Kind.INT8: 8,
    Kind.INT16: 16,
    Kind.INT32: 32,
    Kind.INT64: 64,
    Kind.UINT: 64,
    Kind.UINT8: 8,
    Kind.UINT16: 16,
    Kind.UINT32: 32,
    Kind.UINT64: 64,
}

_TYPE_KINDS = {
    bool: Kind.BOOL,
    str: Kind.STRING,
    float: Kind.FLOAT64,
    int: Kind.INT,
    Float32: Kind.FLOAT32,
    Int8: Kind.INT8,
    Int16: Kind.INT16,
    Int32: Kind.INT32,
    Int64: Kind.INT64,
    UInt: Kind.UINT,
    UInt8: Kind.UINT8,
    UInt16: Kind.UINT16,
    UInt32: Kind.UINT32,
    UInt64: Kind.UINT64,
}


def kind_of(annotation: Any) -> Optional[Kind]:
    """
    Resolve a type annotation to its primitive Kind.

    User NewTypes are followed down their __supertype__ chain, so a
    NewType over `int` binds like `int`. Classes (including subclasses of
    int or str) are not primitives and return None.
    """
    tp = annotation
    while True:
        try:
            kind = _TYPE_KINDS.get(tp)
        except TypeError:
            return None
        if kind is not None:
            return kind
        supertype = getattr(tp, "__supertype__", None)
        if supertype is None:
            return None
        tp = supertype


def parse_bool(raw: str) -> bool:
    """False for "", "0" and any casing of "false"; True for everything else."""
    return raw != "" and raw != "0" and raw.lower() != "false"


def parse_int(raw: str, bits: int, signed: bool) -> Optional[int]:
    """
    Parse a base-10 integer and range-check it against the declared width.

    Returns:
        The integer, or None if the string is malformed or out of range.
    """
    pattern = _SIGNED_RE if signed else _UNSIGNED_RE
    if not pattern.fullmatch(raw):
        return None
    value = int(raw, 10)
    low, high = int_bounds(bits, signed)
    if value < low or value > high:
        return None
    return value


def int_bounds(bits: int, signed: bool) -> Tuple[int, int]:
    """Inclusive (low, high) range of an integer of the given width."""
    if signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


def parse_float(raw: str, bits: int = 64) -> float:
    """
    Parse a float of the given width (32 or 64).

    Accepts decimal and hexadecimal notation plus inf/infinity/nan.
    Surrounding whitespace and digit separators are rejected.

    Raises:
        ValueError: On malformed input, or finite input that overflows the width.
    """
    if _DECIMAL_FLOAT_RE.fullmatch(raw) or _INF_RE.fullmatch(raw) or _NAN_RE.fullmatch(raw):
        value = float(raw)
    elif _HEX_FLOAT_RE.fullmatch(raw):
        try:
            value = float.fromhex(raw)
        except OverflowError:
            raise ValueError(f'parsing "{raw}" as float{bits}: value out of range')
    else:
        raise ValueError(f'parsing "{raw}" as float{bits}: invalid syntax')

    if math.isinf(value) and not _INF_RE.fullmatch(raw):
        raise ValueError(f'parsing "{raw}" as float{bits}: value out of range')

    if bits == 32:
        try:
            value = _round_float32(value)
        except OverflowError:
            raise ValueError(f'parsing "{raw}" as float32: value out of range')
    return value


def _round_float32(value: float) -> float:
    # struct raises OverflowError for finite doubles beyond single range
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _wrap_int(value: int, bits: int, signed: bool) -> int:
    mask = (1 << bits) - 1
    value &= mask
    if signed and value >= (1 << (bits - 1)):
        value -= 1 << bits
    return value
