"""
objectdiff.instances — The working and base values at one position.
"""

from collections import deque
from collections.abc import Mapping, Sequence, Set
from typing import Any, Optional

from objectdiff.accessor import MISSING, Accessor, ROOT_ACCESSOR
from objectdiff.errors import InvalidArgumentError
from objectdiff.path import PropertyPath

_SENTINEL = object()


class Instances:
    """
    Paired view of one position across both graphs.

    working      the value in the new graph (None when absent)
    base         the value in the old graph (None when absent)
    fresh        an empty placeholder of the same container type, used in
                 place of an absent map or collection; None otherwise
    accessor     how this position was reached from its parent

    A side passed as MISSING is absent.  Presence is tracked apart from
    the value, so a None element of a collection is present while a
    missing one is not.  Non-null working and base must have the same
    runtime type.
    """
    __slots__ = ("accessor", "working", "base", "working_present", "base_present",
                 "_declared_type", "_fresh")

    def __init__(self, accessor: Accessor, working: Any, base: Any,
                 declared_type: Optional[type] = None,
                 path: Optional[PropertyPath] = None):
        if (working is not None and working is not MISSING
                and base is not None and base is not MISSING
                and type(working) is not type(base)):
            where = path if path is not None else (str(accessor.element) or "/")
            raise InvalidArgumentError(
                f"Working and base must have the same type at {where}: "
                f"{type(working).__qualname__} != {type(base).__qualname__}"
            )
        self.accessor = accessor
        self.working_present = working is not MISSING
        self.base_present = base is not MISSING
        self.working = working if self.working_present else None
        self.base = base if self.base_present else None
        self._declared_type = declared_type
        self._fresh = _SENTINEL

    @classmethod
    def of(cls, working: Any, base: Any, accessor: Accessor = ROOT_ACCESSOR) -> "Instances":
        """Top-level pair; None stands for an absent side."""
        return cls(accessor,
                   MISSING if working is None else working,
                   MISSING if base is None else base)

    def access(self, accessor: Accessor, path: Optional[PropertyPath] = None) -> "Instances":
        """Instances of the child position reached through `accessor`."""
        working, base = accessor.read(self.working, self.base)
        return Instances(accessor, working, base,
                         declared_type=accessor.declared_type, path=path)

    @property
    def type(self) -> Optional[type]:
        if self.working_present:
            return type(self.working)
        if self.base_present:
            return type(self.base)
        return self._declared_type

    @property
    def fresh(self) -> Any:
        if self._fresh is _SENTINEL:
            self._fresh = fresh_instance(self.type)
        return self._fresh

    def working_or_fresh(self) -> Any:
        return self.working if self.working_present else self.fresh

    def base_or_fresh(self) -> Any:
        return self.base if self.base_present else self.fresh

    def are_null(self) -> bool:
        return not self.working_present and not self.base_present

    def are_same(self) -> bool:
        return self.working_present is self.base_present and self.working is self.base

    def are_equal(self) -> bool:
        return self.working == self.base

    def has_been_added(self) -> bool:
        return self.working_present and not self.base_present

    def has_been_removed(self) -> bool:
        return not self.working_present and self.base_present

    def identity(self) -> tuple[int, int]:
        """Identity pair used to recognise a position seen before on a branch."""
        return id(self.working), id(self.base)

    def __repr__(self) -> str:
        return f"Instances({self.accessor!r}, working={self.working!r}, base={self.base!r})"


def fresh_instance(type_: Optional[type]) -> Any:
    """
    An empty instance of a map or collection type, or None.

    Only container types are instantiated; constructors of arbitrary
    classes are never called.
    """
    if type_ is None or issubclass(type_, (str, bytes, bytearray)):
        return None
    if not issubclass(type_, (Mapping, Set, Sequence, deque)):
        return None
    if issubclass(type_, tuple) and hasattr(type_, "_fields"):
        return None
    try:
        return type_()
    except TypeError:
        # containers whose constructor takes required arguments
        return None
