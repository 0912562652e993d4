"""
objectdiff.path — Addressing positions inside an object graph.

A position is identified by the chain of steps taken from the root:

    /                      the root itself
    /address/city          named properties
    /tags{'prod'}          a map entry, by key
    /users[User(id=7)]     a collection element, by identity key

Each step is a PathElement; a PropertyPath is the tuple of steps from
the root.  Paths are what configuration rules are keyed on, so two
elements are equal exactly when they address the same child.
"""

from dataclasses import dataclass
from typing import Any, Union


class PathElement:
    """Base class for a single step in a PropertyPath."""
    __slots__ = ()


@dataclass(frozen=True, slots=True)
class RootElement(PathElement):
    """Sentinel step carried by the root node of every tree."""

    def __str__(self) -> str:
        return ""


ROOT = RootElement()


@dataclass(frozen=True, slots=True)
class NamedPropertyElement(PathElement):
    """A property of a bean, addressed by name."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class MapKeyElement(PathElement):
    """An entry of a mapping, addressed by its key (any hashable, None too)."""
    key: Any

    def __str__(self) -> str:
        return "{" + repr(self.key) + "}"


@dataclass(frozen=True, slots=True)
class CollectionItemElement(PathElement):
    """
    An element of a collection, addressed by its identity key.

    The key is whatever the configured identity strategy extracts from
    the element; with the default strategy it is the element itself.
    """
    key: Any

    def __str__(self) -> str:
        return "[" + repr(self.key) + "]"


Segment = Union[str, PathElement]


def as_element(segment: Segment) -> PathElement:
    """Plain strings name bean properties; elements pass through."""
    if isinstance(segment, PathElement):
        return segment
    if isinstance(segment, str):
        return NamedPropertyElement(segment)
    raise TypeError(f"Not a path segment: {segment!r}")


@dataclass(frozen=True, slots=True)
class PropertyPath:
    """
    Root-relative path of a position.  The root path has no elements.

    Examples:
        PropertyPath.of("address", "city")
        PropertyPath.of("tags", MapKeyElement("prod"))
    """
    elements: tuple[PathElement, ...] = ()

    @classmethod
    def of(cls, *segments: Segment) -> "PropertyPath":
        return cls(tuple(as_element(s) for s in segments if s is not ROOT))

    @classmethod
    def parse(cls, text: str) -> "PropertyPath":
        """Build a path of named properties from "/a/b" or "a.b" notation."""
        separator = "/" if "/" in text else "."
        return cls.of(*(part for part in text.split(separator) if part))

    def child(self, segment: Segment) -> "PropertyPath":
        return PropertyPath(self.elements + (as_element(segment),))

    @property
    def parent(self) -> "PropertyPath":
        return PropertyPath(self.elements[:-1])

    @property
    def last(self) -> PathElement:
        return self.elements[-1] if self.elements else ROOT

    def is_root(self) -> bool:
        return not self.elements

    def is_parent_of(self, other: "PropertyPath") -> bool:
        """True if `other` lies strictly below this path."""
        n = len(self.elements)
        return len(other.elements) > n and other.elements[:n] == self.elements

    def is_child_of(self, other: "PropertyPath") -> bool:
        return other.is_parent_of(self)

    def __len__(self) -> int:
        return len(self.elements)

    def __str__(self) -> str:
        out = "/"
        for element in self.elements:
            if isinstance(element, NamedPropertyElement) and out != "/":
                out += "/"
            out += str(element)
        return out

    def __repr__(self) -> str:
        return f"PropertyPath({str(self)!r})"


ROOT_PATH = PropertyPath()
