"""
objectdiff.accessor — Reading one child value out of a parent container.

An accessor is bound to a position, not to a value: the same accessor
reads the child from the working container, from the base container and
from the fresh placeholder.  Every accessor returns None for a None
target, so an absent container is never dereferenced.

read(working, base) reads both sides at once and reports a side without
a child as MISSING.  For properties and map entries a None value counts
as missing; collection items are resolved when the two collections are
reconciled, so a None element is still an element.
"""

from typing import Any, Optional

from objectdiff.introspect import PropertyDescriptor
from objectdiff.path import (
    ROOT, CollectionItemElement, MapKeyElement, NamedPropertyElement, PathElement,
)


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Accessor:
    """Base class.  Subclasses define `element` and implement get()."""
    __slots__ = ()

    element: PathElement = ROOT

    @property
    def declared_type(self) -> Optional[type]:
        return None

    @property
    def categories(self) -> frozenset:
        return frozenset()

    def get(self, target: Any) -> Any:
        raise NotImplementedError

    def read(self, working: Any, base: Any) -> tuple[Any, Any]:
        """The child on both sides, MISSING where a side has none."""
        return _or_missing(self.get(working)), _or_missing(self.get(base))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.element})"


def _or_missing(value: Any) -> Any:
    return MISSING if value is None else value


class RootAccessor(Accessor):
    """Identity accessor used for the root position."""
    __slots__ = ()

    def get(self, target: Any) -> Any:
        return target


ROOT_ACCESSOR = RootAccessor()


class PropertyAccessor(Accessor):
    """Reads a named bean property through its descriptor's getter."""
    __slots__ = ("descriptor", "element")

    def __init__(self, descriptor: PropertyDescriptor):
        self.descriptor = descriptor
        self.element = NamedPropertyElement(descriptor.name)

    @property
    def declared_type(self) -> Optional[type]:
        return self.descriptor.declared_type

    @property
    def categories(self) -> frozenset:
        return self.descriptor.metadata.categories

    def get(self, target: Any) -> Any:
        if target is None:
            return None
        return self.descriptor.getter(target)


class MapEntryAccessor(Accessor):
    """
    Reads the value bound to one key.

    A key missing from the target reads as None, the fresh placeholder;
    a key bound to None reads the same way.
    """
    __slots__ = ("key", "element")

    def __init__(self, key: Any):
        self.key = key
        self.element = MapKeyElement(key)

    def get(self, target: Any) -> Any:
        if target is None:
            return None
        return target.get(self.key)


class CollectionItemAccessor(Accessor):
    """
    One element of a collection, addressed by its identity key.

    Reconciliation resolves the working and base elements up front and
    read() hands them back without scanning the containers again; either
    side may be MISSING.  get(target) looks the element up in any
    collection: the first item of the same type whose key matches.
    """
    __slots__ = ("key", "strategy", "working", "base", "element")

    def __init__(self, key: Any, strategy: "IdentityStrategy",
                 working: Any = MISSING, base: Any = MISSING):
        self.key = key
        self.strategy = strategy
        self.working = working
        self.base = base
        self.element = CollectionItemElement(key)

    def read(self, working: Any, base: Any) -> tuple[Any, Any]:
        return self.working, self.base

    def get(self, target: Any) -> Any:
        if target is None:
            return None
        item_type = type(self.working if self.working is not MISSING else self.base)
        for item in target:
            if type(item) is item_type and self.strategy.key_of(item) == self.key:
                return item
        return None


# ═══════════════════════════════════════════════════════════════════
#  IDENTITY STRATEGIES
# ═══════════════════════════════════════════════════════════════════

class IdentityStrategy:
    """
    Decides which working and base elements of a collection are "the
    same" element.  Two elements match when they have the same runtime
    type and their keys compare equal, so 1, 1.0 and True never pair up.
    """

    def key_of(self, item: Any) -> Any:
        raise NotImplementedError

    def match_key(self, item: Any) -> tuple[type, Any]:
        return type(item), self.key_of(item)


class EqualsIdentityStrategy(IdentityStrategy):
    """
    Natural equality: the element is its own key.

    Matched elements are equal by definition, so with this strategy a
    collection only ever reports added and removed elements.
    """

    def key_of(self, item: Any) -> Any:
        return item

    def __repr__(self) -> str:
        return "EqualsIdentityStrategy()"


class KeyIdentityStrategy(IdentityStrategy):
    """
    Elements match on an extracted key, e.g. a primary key:

        KeyIdentityStrategy(lambda user: user.id)

    Matched elements are then compared property by property.
    """

    def __init__(self, key_function):
        self.key_function = key_function

    def key_of(self, item: Any) -> Any:
        if item is None:
            return None
        return self.key_function(item)

    def __repr__(self) -> str:
        name = getattr(self.key_function, "__name__", repr(self.key_function))
        return f"KeyIdentityStrategy({name})"
