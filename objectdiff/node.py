"""
objectdiff.node — The change tree.

Every compared position becomes a Node.  A node knows how it was
reached (its accessor, hence its path element), what type lives there,
which shape the dispatcher classified it as, and its State:

    UNTOUCHED   nothing changed at or below this position
    CHANGED     the value, or something below it, differs
    ADDED       present in working only
    REMOVED     present in base only
    IGNORED     excluded by configuration; never read
    CIRCULAR    a container already being compared further up the branch

States are computed bottom-up by the differs and are final once a
compare() call returns.
"""

from enum import Enum, auto
from typing import Any, Callable, Iterable, Iterator, Optional

from objectdiff.accessor import Accessor, ROOT_ACCESSOR
from objectdiff.path import PathElement, PropertyPath, ROOT_PATH, Segment, as_element


class State(Enum):
    UNTOUCHED = auto()
    CHANGED = auto()
    ADDED = auto()
    REMOVED = auto()
    IGNORED = auto()
    CIRCULAR = auto()


CHANGE_STATES = frozenset({State.CHANGED, State.ADDED, State.REMOVED})


class Shape(Enum):
    """How a position is compared; decided once per position."""
    EQUALS_ONLY = auto()
    MAP = auto()
    COLLECTION = auto()
    BEAN = auto()


# ═══════════════════════════════════════════════════════════════════
#  NODE
# ═══════════════════════════════════════════════════════════════════

class Node:
    """One position in the compared graphs."""
    __slots__ = ("parent", "accessor", "type", "shape", "state", "children",
                 "circle_start_path", "_identity", "_path")

    def __init__(self, parent: Optional["Node"], accessor: Accessor = ROOT_ACCESSOR,
                 type_: Optional[type] = None, shape: Optional[Shape] = None):
        self.parent = parent
        self.accessor = accessor
        self.type = type_
        self.shape = shape
        self.state = State.UNTOUCHED
        self.children: list[Node] = []
        self.circle_start_path: Optional[PropertyPath] = None
        self._identity: Optional[tuple[int, int]] = None
        self._path: Optional[PropertyPath] = None

    # ── position ──────────────────────────────────────────────────

    @property
    def element(self) -> PathElement:
        return self.accessor.element

    @property
    def property_path(self) -> PropertyPath:
        if self._path is None:
            if self.parent is None:
                self._path = ROOT_PATH
            else:
                self._path = self.parent.property_path.child(self.element)
        return self._path

    @property
    def declared_type(self) -> Optional[type]:
        return self.accessor.declared_type

    @property
    def categories(self) -> frozenset:
        return self.accessor.categories

    def is_root(self) -> bool:
        return self.parent is None

    # ── state ─────────────────────────────────────────────────────

    def has_changes(self) -> bool:
        return self.state in CHANGE_STATES

    def is_added(self) -> bool:
        return self.state is State.ADDED

    def is_removed(self) -> bool:
        return self.state is State.REMOVED

    def is_changed(self) -> bool:
        return self.state is State.CHANGED

    def is_untouched(self) -> bool:
        return self.state is State.UNTOUCHED

    def is_ignored(self) -> bool:
        return self.state is State.IGNORED

    def is_circular(self) -> bool:
        return self.state is State.CIRCULAR

    # ── children ──────────────────────────────────────────────────

    def has_children(self) -> bool:
        return bool(self.children)

    def add_child(self, node: "Node") -> None:
        if node.parent is not self:
            raise ValueError(f"{node!r} is not a child of {self!r}")
        self.children.append(node)

    def child(self, *segments: Segment) -> Optional["Node"]:
        """
        Descend by path segments; strings name properties.

            node.child("address", "city")
            node.child(MapKeyElement("prod"))
        """
        current = self
        for segment in segments:
            element = as_element(segment)
            for candidate in current.children:
                if candidate.element == element:
                    current = candidate
                    break
            else:
                return None
        return current

    def find(self, path: PropertyPath) -> Optional["Node"]:
        """Look up a descendant by its root-relative path."""
        if path.elements[:len(self.property_path)] != self.property_path.elements:
            return None
        return self.child(*path.elements[len(self.property_path):])

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    # ── traversal ─────────────────────────────────────────────────

    def visit(self, visitor: "Visitor") -> "Visit":
        """Pre-order traversal of this node and its descendants."""
        visit = Visit()
        self._visit(visitor, visit)
        return visit

    def visit_children(self, visitor: "Visitor") -> "Visit":
        visit = Visit()
        for child in self.children:
            child._visit(visitor, visit)
            if visit.is_stopped():
                break
        return visit

    def _visit(self, visitor: "Visitor", visit: "Visit") -> None:
        visit.pruned = False
        visitor(self, visit)
        if visit.is_stopped() or visit.pruned:
            visit.pruned = False
            return
        for child in self.children:
            child._visit(visitor, visit)
            if visit.is_stopped():
                return

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        type_name = self.type.__name__ if isinstance(self.type, type) else None
        return (f"Node({str(self.property_path)!r}, {self.state.name}"
                f"{', ' + type_name if type_name else ''}"
                f"{', children=' + str(len(self.children)) if self.children else ''})")


# ═══════════════════════════════════════════════════════════════════
#  VISITORS
# ═══════════════════════════════════════════════════════════════════

class Visit:
    """
    Traversal control handed to a visitor with every node.

    prune() skips the current node's subtree; stop() ends the whole
    traversal.  Neither touches node state.
    """
    __slots__ = ("stopped", "pruned")

    def __init__(self):
        self.stopped = False
        self.pruned = False

    def stop(self) -> None:
        self.stopped = True

    def prune(self) -> None:
        self.pruned = True

    def is_stopped(self) -> bool:
        return self.stopped


Visitor = Callable[[Node, Visit], Any]


class NodeCollector:
    """
    Collects visited nodes, optionally only those in the given states.

        collector = NodeCollector({State.ADDED, State.REMOVED})
        root.visit(collector)
        collector.paths()  →  ["/a", "/c"]
    """

    def __init__(self, states: Optional[Iterable[State]] = None):
        self.states = frozenset(states) if states is not None else None
        self.nodes: list[Node] = []

    def __call__(self, node: Node, visit: Visit) -> None:
        if self.states is None or node.state in self.states:
            self.nodes.append(node)

    def paths(self) -> list[str]:
        return [str(node.property_path) for node in self.nodes]
