"""
Tests for property enumeration and metadata extraction.
"""

import os
import sys
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, NamedTuple, Optional, Union

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from objectdiff import Introspector, PropertyDescriptor, PropertyMetadata, StandardIntrospector
from objectdiff.introspect import NO_METADATA, diff_property, runtime_class, scan_metadata
from objectdiff.path import PropertyPath


@dataclass
class Address:
    street: str
    city: str


@dataclass
class Customer:
    name: str
    address: Optional[Address] = None
    tags: list[str] = field(default_factory=list)
    _cache: dict = field(default_factory=dict)

    @property
    def display(self) -> str:
        return self.name.title()


@dataclass(frozen=True)
class Money:
    amount: int
    currency: str


class Coordinate(NamedTuple):
    lat: float
    lon: float


Pair = namedtuple("Pair", "left right")


class Plain:
    name: str
    count: int = 0
    kind: ClassVar[str] = "plain"
    _secret: str = ""

    def __init__(self, name, count=0):
        self.name = name
        self.count = count


class Base:
    @property
    def first(self) -> int:
        return 1

    @property
    def _hidden(self):
        return 0


class Derived(Base):
    @property
    def second(self):
        return 2

    @property
    def first(self) -> int:
        return 10


Attribute = namedtuple("Attribute", "name type metadata")


class AttrsLike:
    __attrs_attrs__ = (
        Attribute("x", int, {"objectdiff": {"categories": ["geo"]}}),
        Attribute("y", Optional[str], None),
        Attribute("_z", int, {}),
    )


class Decorated:
    @diff_property(ignore=True)
    def token(self):
        return "t"

    @diff_property(equals_only=True, categories=["billing", "core"])
    def plan(self):
        return "free"

    @diff_property
    def plain(self):
        return "p"


@dataclass
class Inner:
    secret: str = field(default="", metadata={"objectdiff": {"ignore": True}})
    note: str = ""


@dataclass
class Outer:
    inner: Optional[Inner] = None
    skipped: Optional[Inner] = field(default=None, metadata={"objectdiff": {"ignore": True}})
    frozen: Optional[Inner] = field(default=None, metadata={"objectdiff": {"equals_only": True}})


@dataclass
class Tree:
    label: str = field(default="", metadata={"objectdiff": {"categories": ["x"]}})
    child: Optional["Tree"] = None


def names(type_, introspector=None):
    introspector = introspector or StandardIntrospector()
    return [d.name for d in introspector.introspect(type_)]


# ═══════════════════════════════════════════════════════════════════
#  §1  CLASS STYLES
# ═══════════════════════════════════════════════════════════════════

class TestStandardIntrospector:

    def test_dataclass_fields_then_properties(self):
        assert names(Customer) == ["name", "address", "tags", "display"]

    def test_dataclass_declared_types(self):
        types_ = {d.name: d.declared_type for d in StandardIntrospector().introspect(Customer)}
        assert types_ == {"name": str, "address": Address, "tags": list, "display": str}

    def test_frozen_dataclass_has_no_setters(self):
        descriptors = StandardIntrospector().introspect(Money)
        assert [d.setter for d in descriptors] == [None, None]

    def test_getter_and_setter(self):
        descriptor = StandardIntrospector().introspect(Address)[0]
        address = Address("main", "x")
        assert descriptor.getter(address) == "main"
        descriptor.setter(address, "side")
        assert address.street == "side"

    def test_named_tuples(self):
        assert names(Coordinate) == ["lat", "lon"]
        assert [d.declared_type for d in StandardIntrospector().introspect(Coordinate)] == [float, float]
        assert names(Pair) == ["left", "right"]

    def test_annotated_class(self):
        assert names(Plain) == ["name", "count"]

    def test_properties_in_definition_order(self):
        assert names(Derived) == ["first", "second"]
        first = StandardIntrospector().introspect(Derived)[0]
        assert first.getter(Derived()) == 10
        assert first.declared_type is int

    def test_attrs_style(self):
        descriptors = StandardIntrospector().introspect(AttrsLike)
        assert [d.name for d in descriptors] == ["x", "y"]
        assert descriptors[0].metadata.categories == frozenset({"geo"})
        assert descriptors[1].declared_type is str
        assert descriptors[1].metadata is NO_METADATA

    @pytest.mark.parametrize("type_", [int, str, dict, list, object])
    def test_builtins_have_no_properties(self, type_):
        assert StandardIntrospector().introspect(type_) == ()

    def test_base_introspector_finds_nothing(self):
        assert Introspector().introspect(Customer) == ()


# ═══════════════════════════════════════════════════════════════════
#  §2  REGISTRY AND CACHE
# ═══════════════════════════════════════════════════════════════════

class TestRegistry:

    def test_registered_function_covers_subclasses(self):
        def only_first(type_):
            return [PropertyDescriptor("first", lambda obj: obj.first)]

        introspector = StandardIntrospector().register(Base, only_first)
        assert names(Derived, introspector) == ["first"]

    def test_results_are_cached(self):
        calls = []

        def counting(type_):
            calls.append(type_)
            return []

        introspector = Introspector().register(Plain, counting)
        introspector.introspect(Plain)
        introspector.introspect(Plain)
        assert calls == [Plain]

    def test_register_clears_cache(self):
        introspector = Introspector()
        assert introspector.introspect(Plain) == ()
        introspector.register(Plain, lambda t: [PropertyDescriptor("name", lambda o: o.name)])
        assert names(Plain, introspector) == ["name"]


# ═══════════════════════════════════════════════════════════════════
#  §3  TYPE HINTS
# ═══════════════════════════════════════════════════════════════════

class TestRuntimeClass:

    @pytest.mark.parametrize("hint,expected", [
        (int, int),
        (list[str], list),
        (dict[str, int], dict),
        (Optional[Address], Address),
        (int | None, int),
        (Union[int, str], None),
        (Annotated[int, "unit"], int),
        (Any, None),
        ("Forward", None),
        (None, None),
    ])
    def test_reduction(self, hint, expected):
        assert runtime_class(hint) is expected


# ═══════════════════════════════════════════════════════════════════
#  §4  METADATA
# ═══════════════════════════════════════════════════════════════════

class TestMetadata:

    def test_from_mapping(self):
        metadata = PropertyMetadata.from_mapping({"ignore": 1, "categories": ("a", "b")})
        assert metadata == PropertyMetadata(ignore=True, categories=frozenset({"a", "b"}))
        assert PropertyMetadata.from_mapping(None) is NO_METADATA
        assert PropertyMetadata.from_mapping({}) is NO_METADATA

    def test_diff_property(self):
        by_name = {d.name: d for d in StandardIntrospector().introspect(Decorated)}
        assert by_name["token"].metadata.ignore
        assert by_name["plan"].metadata.equals_only
        assert by_name["plan"].metadata.categories == frozenset({"billing", "core"})
        assert by_name["plain"].metadata == NO_METADATA
        assert by_name["plan"].getter(Decorated()) == "free"

    def test_diff_property_is_a_property(self):
        assert isinstance(vars(Decorated)["token"], property)
        assert Decorated().plain == "p"

    def test_field_metadata(self):
        inner = {d.name: d for d in StandardIntrospector().introspect(Inner)}
        assert inner["secret"].metadata.ignore
        assert inner["note"].metadata is NO_METADATA


# ═══════════════════════════════════════════════════════════════════
#  §5  SCANNING
# ═══════════════════════════════════════════════════════════════════

class TestScanMetadata:

    def test_nested_paths(self):
        found = dict(scan_metadata(Outer, StandardIntrospector()))
        assert PropertyPath.of("inner", "secret") in found
        assert found[PropertyPath.of("skipped")].ignore
        assert found[PropertyPath.of("frozen")].equals_only

    def test_ignored_and_equals_only_are_not_entered(self):
        paths = [p for p, _ in scan_metadata(Outer, StandardIntrospector())]
        assert PropertyPath.of("skipped", "secret") not in paths
        assert PropertyPath.of("frozen", "secret") not in paths

    def test_recursive_types_terminate(self):
        found = scan_metadata(Tree, StandardIntrospector())
        assert [str(p) for p, _ in found] == ["/label"]

    def test_relative_root(self):
        root = PropertyPath.of("outer")
        found = scan_metadata(Inner, StandardIntrospector(), root)
        assert [str(p) for p, _ in found] == ["/outer/secret"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
