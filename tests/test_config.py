"""
Tests for Configuration rules and their precedence.
"""

import datetime
import decimal
import enum
import os
import pathlib
import sys
import uuid
from dataclasses import dataclass, field
from typing import Optional

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from objectdiff import (
    Configuration, EqualsIdentityStrategy, KeyIdentityStrategy, Node, PropertyPath, State,
    compare,
)
from objectdiff.accessor import MapEntryAccessor


class Color(enum.Enum):
    RED = 1
    BLUE = 2


@dataclass
class Address:
    street: str
    city: str = field(metadata={"objectdiff": {"categories": ["geo"]}})


@dataclass
class Account:
    login: str
    password: str = field(default="", metadata={"objectdiff": {"ignore": True}})
    plan: str = field(default="free", metadata={"objectdiff": {"categories": ["billing"]}})
    address: Optional[Address] = None
    history: list = field(default_factory=list,
                          metadata={"objectdiff": {"equals_only": True}})


class Secret:
    def __init__(self, token):
        self.token = token


@dataclass
class Holder:
    name: str
    secret: Optional[Secret] = None


def node_at(*segments, type_=None) -> Node:
    """Build a detached chain of nodes ending at the given path."""
    node = Node(None, type_=type_)
    for segment in segments:
        node = Node(node, MapEntryAccessor(segment), type_)
    return node


# ═══════════════════════════════════════════════════════════════════
#  §1  IGNORE RULES
# ═══════════════════════════════════════════════════════════════════

class TestIgnoreRules:

    def test_excluded_path(self):
        config = Configuration().without_property("address.city")
        node = compare(Account("a", address=Address("s", "x")),
                       Account("a", address=Address("s", "y")), config)
        assert node.state is State.UNTOUCHED
        assert node.child("address", "city").state is State.IGNORED

    def test_slash_notation(self):
        assert PropertyPath.parse("/address/city") == PropertyPath.parse("address.city")

    def test_included_path_limits_comparison(self):
        config = Configuration().with_property_path("address.city")
        working = Account("ann", address=Address("s1", "x"))
        base = Account("bob", address=Address("s2", "y"))
        node = compare(working, base, config)
        assert node.child("login").state is State.IGNORED
        assert node.child("address").state is State.CHANGED
        assert node.child("address", "street").state is State.IGNORED
        assert node.child("address", "city").state is State.CHANGED

    def test_included_path_covers_descendants(self):
        config = Configuration().with_property_path("address")
        working = Account("ann", address=Address("s1", "x"))
        base = Account("bob", address=Address("s2", "y"))
        node = compare(working, base, config)
        assert node.child("address", "street").state is State.CHANGED

    def test_excluded_path_beats_included_path(self):
        config = (Configuration()
                  .with_property_path("address")
                  .without_property("address.street"))
        working = Account("a", address=Address("s1", "x"))
        base = Account("a", address=Address("s2", "x"))
        node = compare(working, base, config)
        assert node.state is State.UNTOUCHED
        assert node.child("address", "street").state is State.IGNORED

    def test_excluded_category(self):
        config = Configuration().without_category("billing")
        node = compare(Account("a", plan="pro"), Account("a", plan="free"), config)
        assert node.state is State.UNTOUCHED
        assert node.child("plan").state is State.IGNORED

    def test_included_category(self):
        config = Configuration().with_category("geo")
        working = Account("a", plan="pro", address=Address("s1", "x"))
        base = Account("a", plan="free", address=Address("s2", "y"))
        node = compare(working, base, config)
        assert node.child("plan").state is State.IGNORED
        assert node.child("address", "city").state is State.CHANGED
        # no categories at all: unaffected
        assert node.child("address", "street").state is State.CHANGED

    def test_excluded_type_by_declaration_is_never_read(self):
        class Exploding(Secret):
            @property
            def token(self):
                raise AssertionError("read")

            @token.setter
            def token(self, value):
                pass

        config = Configuration().without_type(Secret)
        node = compare(Holder("a", Exploding(1)), Holder("a", Exploding(2)), config)
        assert node.child("secret").state is State.IGNORED

    def test_excluded_type_at_runtime(self):
        config = Configuration().without_type(Secret)
        node = compare({"s": Secret(1)}, {"s": Secret(2)}, config.with_ignored_nodes())
        assert node.state is State.UNTOUCHED


# ═══════════════════════════════════════════════════════════════════
#  §2  METADATA SCAN
# ═══════════════════════════════════════════════════════════════════

class TestScan:

    def test_ignore_metadata(self):
        config = Configuration().scan(Account)
        node = compare(Account("a", password="x"), Account("a", password="y"), config)
        assert node.state is State.UNTOUCHED
        assert node.child("password").state is State.IGNORED

    def test_equals_only_metadata(self):
        config = Configuration().scan(Account)
        node = compare(Account("a", history=[1, 2]), Account("a", history=[2, 3]), config)
        history = node.child("history")
        assert history.state is State.CHANGED
        assert not history.has_children()

    def test_without_scan_metadata_is_not_applied(self):
        node = compare(Account("a", password="x"), Account("a", password="y"))
        assert node.child("password").state is State.CHANGED

    def test_scan_returns_configuration(self):
        config = Configuration()
        assert config.scan(Account) is config


# ═══════════════════════════════════════════════════════════════════
#  §3  EQUALS-ONLY AND INTROSPECTIBLE
# ═══════════════════════════════════════════════════════════════════

class TestEqualsOnlyRules:

    @pytest.mark.parametrize("type_", [
        str, int, float, bool, bytes, complex, type(None),
        decimal.Decimal, datetime.date, datetime.datetime, datetime.timedelta,
        uuid.UUID, pathlib.PurePosixPath, Color, type,
    ])
    def test_simple_types(self, type_):
        assert Configuration().is_equals_only(node_at(type_=type_))

    @pytest.mark.parametrize("type_", [dict, list, Account, Secret])
    def test_structured_types(self, type_):
        assert not Configuration().is_equals_only(node_at(type_=type_))

    def test_equals_only_path_beats_type(self):
        config = Configuration().with_equals_only_property(PropertyPath.of())
        assert config.is_equals_only(node_at(type_=Account))

    def test_equals_only_subclass(self):
        class Special(Account):
            pass

        config = Configuration().with_equals_only_type(Account)
        assert config.is_equals_only(node_at(type_=Special))

    def test_introspectible(self):
        config = Configuration()
        assert config.is_introspectible(node_at(type_=Account))
        assert not config.is_introspectible(node_at(type_=Secret))
        assert not config.is_introspectible(node_at(type_=str))
        assert not config.is_introspectible(node_at())

    def test_enum_values(self):
        node = compare({"c": Color.RED}, {"c": Color.BLUE})
        assert node.state is State.CHANGED


# ═══════════════════════════════════════════════════════════════════
#  §4  RETURNABILITY
# ═══════════════════════════════════════════════════════════════════

class TestReturnable:

    def test_default_hides_untouched_only(self):
        config = Configuration()
        for state in State:
            node = node_at()
            node.state = state
            assert config.is_returnable(node) is (state is not State.UNTOUCHED)

    def test_toggles(self):
        config = Configuration().with_untouched_nodes().without_ignored_nodes()
        node = node_at()
        node.state = State.UNTOUCHED
        assert config.is_returnable(node)
        node.state = State.IGNORED
        assert not config.is_returnable(node)

    def test_returnability_does_not_affect_state(self):
        config = Configuration().without_ignored_nodes()
        hidden = Configuration()
        working = {"a": 1, "b": {"c": 2}}
        base = {"a": 1, "b": {"c": 3}}
        assert compare(working, base, config).state is State.CHANGED
        assert compare(working, base, hidden).state is State.CHANGED


# ═══════════════════════════════════════════════════════════════════
#  §5  IDENTITY STRATEGIES
# ═══════════════════════════════════════════════════════════════════

class TestIdentityStrategyLookup:

    def test_default_is_natural_equality(self):
        strategy = Configuration().identity_strategy_for(node_at(type_=list))
        assert isinstance(strategy, EqualsIdentityStrategy)

    def test_path_rule(self):
        key = KeyIdentityStrategy(len)
        config = Configuration().with_identity_strategy(key, path=PropertyPath.of())
        assert config.identity_strategy_for(node_at(type_=list)) is key

    def test_flags(self):
        config = Configuration()
        assert not config.is_children_of_added_included()
        assert not config.is_children_of_removed_included()
        config.with_children_of_added_nodes().with_children_of_removed_nodes()
        assert config.is_children_of_added_included()
        assert config.is_children_of_removed_included()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
