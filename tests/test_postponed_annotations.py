"""
Tests for records declared in a module with postponed annotations.

With `from __future__ import annotations` every annotation is a string,
and names local to a function cannot be resolved from the module.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import NewType, Optional

import pytest

from confbind.decoders import apply_mapping
from confbind.env import load
from confbind.errors import InvalidArgumentError
from confbind.fields import describe_fields, env_field
from confbind.kinds import Kind


@dataclass
class Module:
    port: Optional[int] = env_field("PORT", default=None)


def test_module_level_record_resolves():
    d = describe_fields(Module)[0]
    assert d.kind is Kind.INT
    assert d.optional


def test_local_nested_record_is_walked():
    @dataclass
    class Child:
        value: str = env_field("CHILD_VALUE", default="")

    @dataclass
    class Parent:
        name: str = env_field("X", default="")
        child: Child = field(default_factory=Child)

    v = Parent()
    load(v, {"X": "ok", "CHILD_VALUE": "nested"})
    assert v.name == "ok"
    assert v.child.value == "nested"


def test_local_nested_record_in_document():
    @dataclass
    class Child:
        value: str = ""

    @dataclass
    class Parent:
        name: str = ""
        child: Child = field(default_factory=Child)

    v = Parent()
    apply_mapping(v, {"name": "doc", "child": {"value": "inner"}})
    assert v.name == "doc"
    assert v.child == Child(value="inner")


def test_unresolvable_bound_field_is_reported():
    Level = NewType("Level", int)

    @dataclass
    class Settings:
        level: Level = env_field("LEVEL", default=0)

    with pytest.raises(InvalidArgumentError, match="level"):
        load(Settings(), {"LEVEL": "3"})
