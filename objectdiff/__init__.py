"""
objectdiff
==========

Structural change trees between two versions of an object graph.

    >>> from objectdiff import compare
    >>> root = compare({"a": 1, "b": 2}, {"b": 2, "c": 3})
    >>> root.state
    <State.CHANGED: 2>
    >>> [str(n.property_path) for n in root.children]
    ["/{'a'}", "/{'c'}"]

Every position of the two graphs becomes a Node whose State is
UNTOUCHED, CHANGED, ADDED, REMOVED, IGNORED or CIRCULAR.  Beans (dataclasses,
attrs classes, named tuples, annotated classes, properties) are compared
property by property, mappings key by key, collections element by
element through a pluggable identity strategy, and everything else with
==.  A Configuration decides what is ignored, what is compared with ==
only, and which nodes are attached to the returned tree.
"""

from objectdiff.accessor import (
    Accessor,
    CollectionItemAccessor,
    EqualsIdentityStrategy,
    IdentityStrategy,
    KeyIdentityStrategy,
    MapEntryAccessor,
    PropertyAccessor,
    RootAccessor,
)
from objectdiff.config import Configuration
from objectdiff.differ import (
    BeanDiffer,
    CollectionDiffer,
    Differ,
    Dispatcher,
    EqualsOnlyDiffer,
    MapDiffer,
    ObjectDiffer,
    compare,
)
from objectdiff.errors import InvalidArgumentError, ObjectDiffError, UnsupportedShapeError
from objectdiff.instances import Instances
from objectdiff.introspect import (
    Introspector,
    PropertyDescriptor,
    PropertyMetadata,
    StandardIntrospector,
    diff_property,
)
from objectdiff.node import Node, NodeCollector, Shape, State, Visit
from objectdiff.path import (
    CollectionItemElement,
    MapKeyElement,
    NamedPropertyElement,
    PropertyPath,
)

__version__ = "0.1.0"
__all__ = [
    "compare", "ObjectDiffer", "Configuration",
    "Node", "State", "Shape", "Visit", "NodeCollector",
    "Dispatcher", "Differ", "BeanDiffer", "MapDiffer", "CollectionDiffer", "EqualsOnlyDiffer",
    "Instances",
    "Accessor", "RootAccessor", "PropertyAccessor", "MapEntryAccessor", "CollectionItemAccessor",
    "IdentityStrategy", "EqualsIdentityStrategy", "KeyIdentityStrategy",
    "Introspector", "StandardIntrospector", "PropertyDescriptor", "PropertyMetadata",
    "diff_property",
    "PropertyPath", "NamedPropertyElement", "MapKeyElement", "CollectionItemElement",
    "ObjectDiffError", "InvalidArgumentError", "UnsupportedShapeError",
]
