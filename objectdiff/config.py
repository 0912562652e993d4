"""
objectdiff.config — Rules deciding what gets compared and returned.

A Configuration answers four questions about a node:

    is_ignored          skip the position entirely (state IGNORED)
    is_equals_only      compare with == instead of descending
    is_introspectible   descend into the position as a bean
    is_returnable       attach the computed node to its parent

Rules are resolved with a fixed precedence, identical for every differ:

    1. path rules        an exact root-relative PropertyPath
    2. category rules    categories carried by the property
    3. type rules        the declared type, then the runtime type
    4. defaults          simple scalar types are equals-only

so an excluded path stays excluded even below an included one, and an
equals-only path is compared with == whatever its type.

A Configuration is built once with the fluent with_*/without_* methods
and must not be changed while a comparison is running.
"""

import datetime
import decimal
import fractions
import logging
import pathlib
import re
import uuid
from enum import Enum
from typing import Iterable, Optional, Union

from objectdiff.accessor import EqualsIdentityStrategy, IdentityStrategy
from objectdiff.introspect import Introspector, StandardIntrospector, scan_metadata
from objectdiff.node import Node, State
from objectdiff.path import PropertyPath

logger = logging.getLogger(__name__)

PathLike = Union[PropertyPath, str]

SIMPLE_TYPES: tuple[type, ...] = (
    str, bytes, bytearray, int, float, complex, bool, type(None), range,
    decimal.Decimal, fractions.Fraction,
    datetime.date, datetime.time, datetime.datetime, datetime.timedelta, datetime.tzinfo,
    uuid.UUID, pathlib.PurePath, re.Pattern, Enum, type,
)

DEFAULT_RETURNABLE_STATES = frozenset(State) - {State.UNTOUCHED}


def _as_path(path: PathLike) -> PropertyPath:
    if isinstance(path, PropertyPath):
        return path
    return PropertyPath.parse(path)


def _is_subclass(type_: Optional[type], types: Iterable[type]) -> bool:
    if not isinstance(type_, type):
        return False
    return any(issubclass(type_, t) for t in types)


class Configuration:
    """Mutable rule set; see the module docstring for precedence."""

    def __init__(self, introspector: Optional[Introspector] = None):
        self.introspector = introspector if introspector is not None else StandardIntrospector()
        self.default_identity_strategy: IdentityStrategy = EqualsIdentityStrategy()
        self._excluded_paths: list[PropertyPath] = []
        self._included_paths: list[PropertyPath] = []
        self._excluded_categories: set[str] = set()
        self._included_categories: set[str] = set()
        self._excluded_types: list[type] = []
        self._equals_only_paths: list[PropertyPath] = []
        self._equals_only_types: list[type] = []
        self._identity_paths: list[tuple[PropertyPath, IdentityStrategy]] = []
        self._identity_types: list[tuple[type, IdentityStrategy]] = []
        self._returnable_states: set[State] = set(DEFAULT_RETURNABLE_STATES)
        self._children_of_added = False
        self._children_of_removed = False

    # ═══════════════════════════════════════════════════════════════
    #  FLUENT SETUP
    # ═══════════════════════════════════════════════════════════════

    def with_introspector(self, introspector: Introspector) -> "Configuration":
        self.introspector = introspector
        return self

    def with_children_of_added_nodes(self) -> "Configuration":
        """Descend into beans that only exist in the working graph."""
        self._children_of_added = True
        return self

    def with_children_of_removed_nodes(self) -> "Configuration":
        """Descend into beans that only exist in the base graph."""
        self._children_of_removed = True
        return self

    def without_property(self, path: PathLike) -> "Configuration":
        self._excluded_paths.append(_as_path(path))
        return self

    def with_property_path(self, path: PathLike) -> "Configuration":
        """
        Restrict comparison to this path (repeatable).  Ancestors of an
        included path are compared so the path can be reached, and
        everything below it is compared too.
        """
        self._included_paths.append(_as_path(path))
        return self

    def without_category(self, category: str) -> "Configuration":
        self._excluded_categories.add(category)
        return self

    def with_category(self, category: str) -> "Configuration":
        """
        Once any category is included, properties that carry categories
        are compared only if one of them is included.  Properties
        without categories are unaffected.
        """
        self._included_categories.add(category)
        return self

    def without_type(self, type_: type) -> "Configuration":
        self._excluded_types.append(type_)
        return self

    def with_equals_only_type(self, type_: type) -> "Configuration":
        self._equals_only_types.append(type_)
        return self

    def with_equals_only_property(self, path: PathLike) -> "Configuration":
        self._equals_only_paths.append(_as_path(path))
        return self

    def with_identity_strategy(self, strategy: IdentityStrategy, *,
                               path: Optional[PathLike] = None,
                               type: Optional[type] = None) -> "Configuration":
        """
        Match collection elements with `strategy` at `path`, or in every
        collection of class `type`, or everywhere when neither is given.
        """
        if path is not None:
            self._identity_paths.append((_as_path(path), strategy))
        if type is not None:
            self._identity_types.append((type, strategy))
        if path is None and type is None:
            self.default_identity_strategy = strategy
        return self

    def with_untouched_nodes(self) -> "Configuration":
        return self._returnable(State.UNTOUCHED, True)

    def without_untouched_nodes(self) -> "Configuration":
        return self._returnable(State.UNTOUCHED, False)

    def with_ignored_nodes(self) -> "Configuration":
        return self._returnable(State.IGNORED, True)

    def without_ignored_nodes(self) -> "Configuration":
        return self._returnable(State.IGNORED, False)

    def with_circular_nodes(self) -> "Configuration":
        return self._returnable(State.CIRCULAR, True)

    def without_circular_nodes(self) -> "Configuration":
        return self._returnable(State.CIRCULAR, False)

    def _returnable(self, state: State, enabled: bool) -> "Configuration":
        if enabled:
            self._returnable_states.add(state)
        else:
            self._returnable_states.discard(state)
        return self

    def scan(self, root_type: type) -> "Configuration":
        """
        Turn property metadata reachable from `root_type` into path rules.

        Run this once per root type before comparing; the differs only
        ever consult path, category and type rules.
        """
        for path, metadata in scan_metadata(root_type, self.introspector):
            if metadata.ignore:
                self.without_property(path)
            if metadata.equals_only:
                self.with_equals_only_property(path)
        logger.debug("Scanned %s: %d excluded, %d equals-only paths",
                     root_type.__qualname__, len(self._excluded_paths),
                     len(self._equals_only_paths))
        return self

    # ═══════════════════════════════════════════════════════════════
    #  LOOKUPS
    # ═══════════════════════════════════════════════════════════════

    def is_ignored(self, node: Node) -> bool:
        path = node.property_path
        if path in self._excluded_paths:
            return True
        if self._included_paths and not any(
                p == path or p.is_parent_of(path) or p.is_child_of(path)
                for p in self._included_paths):
            return True
        categories = node.categories
        if categories & self._excluded_categories:
            return True
        if self._included_categories and categories and not categories & self._included_categories:
            return True
        if self._excluded_types:
            if _is_subclass(node.declared_type, self._excluded_types):
                return True
            if _is_subclass(node.type, self._excluded_types):
                return True
        return False

    def is_equals_only(self, node: Node) -> bool:
        if node.property_path in self._equals_only_paths:
            return True
        for type_ in (node.declared_type, node.type):
            if _is_subclass(type_, self._equals_only_types):
                return True
        return _is_subclass(node.type, SIMPLE_TYPES)

    def is_introspectible(self, node: Node) -> bool:
        if node.type is None or self.is_equals_only(node):
            return False
        return bool(self.introspector.introspect(node.type))

    def is_returnable(self, node: Node) -> bool:
        return node.state in self._returnable_states

    def is_children_of_added_included(self) -> bool:
        return self._children_of_added

    def is_children_of_removed_included(self) -> bool:
        return self._children_of_removed

    def identity_strategy_for(self, node: Node) -> IdentityStrategy:
        path = node.property_path
        for rule_path, strategy in self._identity_paths:
            if rule_path == path:
                return strategy
        for type_, strategy in self._identity_types:
            if _is_subclass(node.type, (type_,)):
                return strategy
        return self.default_identity_strategy
