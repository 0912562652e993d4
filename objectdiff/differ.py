"""
objectdiff.differ — The recursive comparison engine.

    compare(working, base)
        │
        ▼
    Dispatcher ──classify──▶ EQUALS_ONLY → EqualsOnlyDiffer
        ▲                    MAP         → MapDiffer
        │                    COLLECTION  → CollectionDiffer
        │                    BEAN        → BeanDiffer
        │                         │
        └──────── child positions ┘

The Dispatcher owns the decisions every position shares: both sides
absent, ignored (decided before any value is read), shape classification
and cycle detection.  Each differ builds the node for its shape and
hands every child position back to the Dispatcher, so nesting depth is
bounded only by the graphs themselves.

A parent is CHANGED when any child, returned or not, is CHANGED, ADDED
or REMOVED.  Whether a child is attached to its parent is a separate
question answered by Configuration.is_returnable().
"""

import logging
from collections import deque
from collections.abc import Mapping, Sequence, Set
from typing import Any, Iterable, Optional

from objectdiff.accessor import (
    Accessor, CollectionItemAccessor, IdentityStrategy, MapEntryAccessor, PropertyAccessor,
)
from objectdiff.config import Configuration
from objectdiff.errors import InvalidArgumentError, UnsupportedShapeError
from objectdiff.instances import Instances
from objectdiff.introspect import Introspector
from objectdiff.node import Node, Shape, State

logger = logging.getLogger(__name__)


def is_collection_type(type_: Optional[type]) -> bool:
    """Non-string sequences, sets and deques; named tuples are beans."""
    if not isinstance(type_, type) or issubclass(type_, (str, bytes, bytearray, Mapping)):
        return False
    if issubclass(type_, tuple) and hasattr(type_, "_fields"):
        return False
    return issubclass(type_, (Sequence, Set, deque))


# ═══════════════════════════════════════════════════════════════════
#  DISPATCHER
# ═══════════════════════════════════════════════════════════════════

class Dispatcher:
    """
    Classifies positions and delegates them to the differ for their shape.

    Custom differs can be registered per shape; a shape without a differ,
    or a differ that does not accept the position's type, raises
    UnsupportedShapeError.
    """

    def __init__(self, configuration: Configuration,
                 differs: Optional[dict[Shape, "Differ"]] = None):
        if configuration is None:
            raise InvalidArgumentError("Dispatcher requires a configuration")
        self.configuration = configuration
        if differs is None:
            differs = {
                Shape.EQUALS_ONLY: EqualsOnlyDiffer(self, configuration),
                Shape.MAP: MapDiffer(self, configuration),
                Shape.COLLECTION: CollectionDiffer(self, configuration),
                Shape.BEAN: BeanDiffer(self, configuration, configuration.introspector),
            }
        self._differs: dict[Shape, Differ] = dict(differs)

    def register(self, shape: Shape, differ: "Differ") -> "Dispatcher":
        self._differs[shape] = differ
        return self

    def differ_for(self, shape: Shape, type_: Optional[type], node: Node) -> "Differ":
        differ = self._differs.get(shape)
        if differ is None or not differ.accepts(type_):
            raise UnsupportedShapeError(shape, type_, node.property_path)
        return differ

    def classify(self, node: Node) -> Shape:
        if self.configuration.is_equals_only(node):
            return Shape.EQUALS_ONLY
        if isinstance(node.type, type) and issubclass(node.type, Mapping):
            return Shape.MAP
        if is_collection_type(node.type):
            return Shape.COLLECTION
        if self.configuration.is_introspectible(node):
            return Shape.BEAN
        return Shape.EQUALS_ONLY

    def dispatch(self, parent_node: Node, parent_instances: Instances,
                 accessor: Accessor) -> Node:
        """
        Compare the child position reached through `accessor`.

        The ignore decision is taken before the accessor reads anything.
        Type rules need a type: the declared type when the accessor has
        one, otherwise the value is read first and its runtime type used.
        """
        node = Node(parent_node, accessor, accessor.declared_type)
        if self.configuration.is_ignored(node):
            node.state = State.IGNORED
            logger.debug("Ignoring %s", node.property_path)
            return node
        return self._delegate(node, parent_instances.access(accessor, node.property_path))

    def delegate(self, parent_node: Optional[Node], instances: Instances) -> Node:
        """Compare a position whose instances are already known."""
        return self._delegate(Node(parent_node, instances.accessor), instances)

    def _delegate(self, node: Node, instances: Instances) -> Node:
        node.type = instances.type
        if instances.are_null():
            node.state = State.UNTOUCHED
            return node
        if self.configuration.is_ignored(node):
            node.state = State.IGNORED
            logger.debug("Ignoring %s", node.property_path)
            return node
        node.shape = self.classify(node)
        differ = self.differ_for(node.shape, node.type, node)
        if node.shape is not Shape.EQUALS_ONLY and not instances.are_same():
            node._identity = instances.identity()
            circle_start = _find_circle_start(node)
            if circle_start is not None:
                node.state = State.CIRCULAR
                node.circle_start_path = circle_start.property_path
                logger.debug("Circular reference at %s back to %s",
                             node.property_path, node.circle_start_path)
                return node
        return differ.compare_node(node, instances)


def _find_circle_start(node: Node) -> Optional[Node]:
    ancestor = node.parent
    while ancestor is not None:
        if ancestor._identity == node._identity:
            return ancestor
        ancestor = ancestor.parent
    return None


# ═══════════════════════════════════════════════════════════════════
#  DIFFERS
# ═══════════════════════════════════════════════════════════════════

class Differ:
    """
    Base class for the per-shape differs.

    compare(parent_node, instances) builds and returns a complete node;
    compare_node(node, instances) fills in a node the dispatcher has
    already created.  Both apply the shared prelude (ignored, both
    absent) before the shape-specific rules in _compare().
    """
    shape: Shape

    def __init__(self, dispatcher: Dispatcher, configuration: Configuration):
        if dispatcher is None:
            raise InvalidArgumentError(f"{type(self).__name__} requires a dispatcher")
        if configuration is None:
            raise InvalidArgumentError(f"{type(self).__name__} requires a configuration")
        self.dispatcher = dispatcher
        self.configuration = configuration

    def accepts(self, type_: Optional[type]) -> bool:
        return True

    def compare(self, parent_node: Optional[Node], instances: Instances) -> Node:
        node = Node(parent_node, instances.accessor, instances.type, self.shape)
        return self.compare_node(node, instances)

    def compare_node(self, node: Node, instances: Instances) -> Node:
        if node.type is None:
            node.type = instances.type
        if self.configuration.is_ignored(node):
            node.state = State.IGNORED
        elif instances.are_null():
            node.state = State.UNTOUCHED
        else:
            self._compare(node, instances)
        return node

    def _compare(self, node: Node, instances: Instances) -> None:
        raise NotImplementedError

    def _compare_equals(self, node: Node, instances: Instances) -> None:
        node.state = State.UNTOUCHED if instances.are_equal() else State.CHANGED

    def _compare_child(self, node: Node, instances: Instances, accessor: Accessor) -> Node:
        child = self.dispatcher.dispatch(node, instances, accessor)
        if self.configuration.is_returnable(child):
            node.add_child(child)
        return child

    def _compare_children(self, node: Node, instances: Instances,
                          accessors: Iterable[Accessor]) -> bool:
        """Compare each child position; True if any of them has changes."""
        changed = False
        for accessor in accessors:
            if self._compare_child(node, instances, accessor).has_changes():
                changed = True
        return changed


class EqualsOnlyDiffer(Differ):
    """Leaf differ: identity, then ==.  Never descends."""
    shape = Shape.EQUALS_ONLY

    def _compare(self, node: Node, instances: Instances) -> None:
        if instances.are_same():
            node.state = State.UNTOUCHED
        elif instances.has_been_added():
            node.state = State.ADDED
        elif instances.has_been_removed():
            node.state = State.REMOVED
        else:
            self._compare_equals(node, instances)


class BeanDiffer(Differ):
    """
    Compares objects property by property, as enumerated by the
    introspector.  Added and removed beans are only descended into when
    the configuration asks for children of added/removed nodes.
    """
    shape = Shape.BEAN

    def __init__(self, dispatcher: Dispatcher, configuration: Configuration,
                 introspector: Introspector):
        super().__init__(dispatcher, configuration)
        if introspector is None:
            raise InvalidArgumentError("BeanDiffer requires an introspector")
        self.introspector = introspector

    def _compare(self, node: Node, instances: Instances) -> None:
        if instances.are_same():
            node.state = State.UNTOUCHED
        elif instances.has_been_added():
            node.state = State.ADDED
            if self.configuration.is_children_of_added_included():
                self._compare_properties(node, instances)
        elif instances.has_been_removed():
            node.state = State.REMOVED
            if self.configuration.is_children_of_removed_included():
                self._compare_properties(node, instances)
        elif self.configuration.is_equals_only(node):
            self._compare_equals(node, instances)
        elif self.configuration.is_introspectible(node):
            changed = self._compare_properties(node, instances)
            node.state = State.CHANGED if changed else State.UNTOUCHED
        else:
            self._compare_equals(node, instances)

    def _compare_properties(self, node: Node, instances: Instances) -> bool:
        descriptors = self.introspector.introspect(instances.type)
        return self._compare_children(
            node, instances, (PropertyAccessor(d) for d in descriptors))


class MapDiffer(Differ):
    """
    Treats a mapping as a set of independently addressable key slots.

    Children are produced for added keys, then removed keys, then keys
    present on both sides, each group in insertion order.  An added or
    removed map always lists its entries.
    """
    shape = Shape.MAP

    def accepts(self, type_: Optional[type]) -> bool:
        return type_ is None or issubclass(type_, Mapping)

    def _compare(self, node: Node, instances: Instances) -> None:
        if instances.has_been_added():
            self._compare_children(node, instances, self._accessors(instances.working))
            node.state = State.ADDED
        elif instances.has_been_removed():
            self._compare_children(node, instances, self._accessors(instances.base))
            node.state = State.REMOVED
        elif instances.are_same():
            node.state = State.UNTOUCHED
        elif self.configuration.is_equals_only(node):
            self._compare_equals(node, instances)
        else:
            working = instances.working_or_fresh()
            base = instances.base_or_fresh()
            added = [k for k in working if k not in base]
            removed = [k for k in base if k not in working]
            known = [k for k in working if k in base]
            changed = self._compare_children(
                node, instances, self._accessors(added + removed + known))
            node.state = State.CHANGED if changed else State.UNTOUCHED

    @staticmethod
    def _accessors(keys: Iterable[Any]) -> list[MapEntryAccessor]:
        return [MapEntryAccessor(key) for key in keys]


class CollectionDiffer(Differ):
    """
    Reconciles two collections by element identity, not by position.

    Elements are matched through the configured IdentityStrategy, so a
    reordered collection with the same elements is UNTOUCHED.  Only
    elements of the same runtime type match, and elements sharing a key
    pair up in order of appearance.  A None element is an element: it is
    ADDED or REMOVED like any other.  Children are produced
    for added, then removed, then matched elements.
    """
    shape = Shape.COLLECTION

    def accepts(self, type_: Optional[type]) -> bool:
        return type_ is None or is_collection_type(type_)

    def _compare(self, node: Node, instances: Instances) -> None:
        strategy = self.configuration.identity_strategy_for(node)
        if instances.has_been_added():
            accessors = self._accessors(instances.working, strategy, "working")
            self._compare_children(node, instances, accessors)
            node.state = State.ADDED
        elif instances.has_been_removed():
            accessors = self._accessors(instances.base, strategy, "base")
            self._compare_children(node, instances, accessors)
            node.state = State.REMOVED
        elif instances.are_same():
            node.state = State.UNTOUCHED
        elif self.configuration.is_equals_only(node):
            self._compare_equals(node, instances)
        else:
            added, removed, known = self._reconcile(
                instances.working_or_fresh(), instances.base_or_fresh(), strategy)
            changed = self._compare_children(node, instances, added + removed + known)
            node.state = State.CHANGED if changed else State.UNTOUCHED

    @staticmethod
    def _accessors(items: Iterable[Any], strategy: IdentityStrategy,
                   side: str) -> list[CollectionItemAccessor]:
        return [CollectionItemAccessor(strategy.key_of(item), strategy, **{side: item})
                for item in items]

    @staticmethod
    def _reconcile(working: Iterable[Any], base: Iterable[Any], strategy: IdentityStrategy):
        """
        Split both sides into added, removed and matched accessors.

        Base elements are indexed once by match key; each working element
        then takes the earliest unmatched base element with the same key,
        so duplicates pair up in order of appearance.  Every key_of() call
        happens here, once per element.
        """
        base_items = list(base)
        base_keys = [strategy.match_key(item) for item in base_items]
        index = _KeyIndex()
        for position, key in enumerate(base_keys):
            index.add(key, position)

        added, known = [], []
        matched = set()
        for item in working:
            key = strategy.match_key(item)
            position = index.take(key)
            if position is None:
                added.append(CollectionItemAccessor(key[1], strategy, working=item))
            else:
                matched.add(position)
                known.append(CollectionItemAccessor(key[1], strategy, working=item,
                                                    base=base_items[position]))
        removed = [CollectionItemAccessor(key[1], strategy, base=item)
                   for position, (key, item) in enumerate(zip(base_keys, base_items))
                   if position not in matched]
        return added, removed, known


class _KeyIndex:
    """
    Positions grouped by match key.

    Hashable keys go into a dict; unhashable ones (a list element, say)
    fall back to a linear scan over their own buckets.
    """
    __slots__ = ("_hashed", "_unhashed")

    def __init__(self):
        self._hashed: dict[Any, deque] = {}
        self._unhashed: list[tuple[Any, deque]] = []

    def _bucket(self, key: Any, create: bool) -> Optional[deque]:
        try:
            bucket = self._hashed.get(key)
            if bucket is None and create:
                bucket = self._hashed[key] = deque()
            return bucket
        except TypeError:
            pass
        for candidate, bucket in self._unhashed:
            if candidate == key:
                return bucket
        if not create:
            return None
        bucket = deque()
        self._unhashed.append((key, bucket))
        return bucket

    def add(self, key: Any, position: int) -> None:
        self._bucket(key, True).append(position)

    def take(self, key: Any) -> Optional[int]:
        """Earliest unclaimed position for `key`, or None."""
        bucket = self._bucket(key, False)
        return bucket.popleft() if bucket else None


# ═══════════════════════════════════════════════════════════════════
#  ENTRY POINT
# ═══════════════════════════════════════════════════════════════════

class ObjectDiffer:
    """
    Entry point for comparisons.

        differ = ObjectDiffer(Configuration().with_children_of_added_nodes())
        root = differ.compare(working, base)
        root.state, root.has_changes()
    """

    def __init__(self, configuration: Optional[Configuration] = None):
        self.configuration = configuration if configuration is not None else Configuration()
        self.dispatcher = Dispatcher(self.configuration)

    def compare(self, working: Any, base: Any) -> Node:
        """
        Build the change tree of `working` against `base`.

        Both must be None or of the same runtime type; otherwise
        InvalidArgumentError is raised before anything is compared.
        """
        instances = Instances.of(working, base)
        root = self.dispatcher.delegate(None, instances)
        logger.debug("Compared %s: %s", getattr(root.type, "__qualname__", None),
                     root.state.name)
        return root


def compare(working: Any, base: Any, configuration: Optional[Configuration] = None) -> Node:
    """Compare two object graphs with a one-off ObjectDiffer."""
    return ObjectDiffer(configuration).compare(working, base)
