"""
objectdiff.introspect — Enumerating the properties of a bean type.

The differs never inspect classes themselves.  They ask an Introspector
for the ordered PropertyDescriptors of a type and read values only
through the descriptor's getter.  The StandardIntrospector understands:

    • dataclasses              (fields, in declaration order)
    • attrs classes            (anything exposing __attrs_attrs__)
    • named tuples             (_fields)
    • annotated plain classes  (class-level annotations)
    • public properties        (after the above, in MRO definition order)

Anything else can be taught to it with Introspector.register().

Property metadata (ignore / equals_only / categories) is attached with
dataclasses.field(metadata={"objectdiff": {...}}) or with the
@diff_property decorator, and is turned into path rules once, at setup,
by scan_metadata().
"""

import dataclasses
import logging
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from objectdiff.path import PropertyPath, ROOT_PATH

logger = logging.getLogger(__name__)

METADATA_KEY = "objectdiff"


# ═══════════════════════════════════════════════════════════════════
#  DESCRIPTORS
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class PropertyMetadata:
    """Comparison hints attached to a single property."""
    ignore: bool = False
    equals_only: bool = False
    categories: frozenset = frozenset()

    @classmethod
    def from_mapping(cls, data: Optional[dict]) -> "PropertyMetadata":
        if not data:
            return NO_METADATA
        return cls(
            ignore=bool(data.get("ignore", False)),
            equals_only=bool(data.get("equals_only", False)),
            categories=frozenset(data.get("categories", ())),
        )


NO_METADATA = PropertyMetadata()


@dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    """
    One property of a bean type.

    getter(obj) reads the value; setter(obj, value) is informational
    only, the engine never writes.  declared_type is the annotated type
    reduced to a runtime class, or None when it cannot be determined.
    """
    name: str
    getter: Callable[[Any], Any]
    setter: Optional[Callable[[Any, Any], None]] = None
    declared_type: Optional[type] = None
    metadata: PropertyMetadata = NO_METADATA


def diff_property(fget: Optional[Callable] = None, *, ignore: bool = False,
                  equals_only: bool = False, categories: Iterable[str] = ()):
    """
    A ``property`` carrying comparison metadata.

        class Account:
            @diff_property(ignore=True)
            def last_login(self): ...

            @diff_property(categories=["billing"])
            def plan(self): ...
    """
    metadata = PropertyMetadata(ignore=ignore, equals_only=equals_only,
                                categories=frozenset(categories))

    def decorate(func: Callable) -> property:
        func.__objectdiff__ = metadata
        return property(func)

    if fget is not None:
        return decorate(fget)
    return decorate


# ═══════════════════════════════════════════════════════════════════
#  TYPE HINT REDUCTION
# ═══════════════════════════════════════════════════════════════════

def runtime_class(hint: Any) -> Optional[type]:
    """
    Reduce a type hint to the class a value at that position will have.

        int              → int
        list[str]        → list
        Optional[Child]  → Child
        Union[int, str]  → None   (ambiguous)
        Any, "Forward"   → None
    """
    if hint is None or hint is Any:
        return None
    origin = typing.get_origin(hint)
    if origin is None:
        return hint if isinstance(hint, type) else None
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        return runtime_class(args[0]) if len(args) == 1 else None
    if origin is typing.Annotated:
        return runtime_class(typing.get_args(hint)[0])
    if isinstance(origin, type):
        return origin
    return None


def _type_hints(obj: Any) -> dict:
    try:
        return typing.get_type_hints(obj, include_extras=True)
    except (NameError, TypeError, AttributeError):
        # unresolved forward references; fall back to the raw annotations
        return dict(getattr(obj, "__annotations__", {}))


# ═══════════════════════════════════════════════════════════════════
#  INTROSPECTORS
# ═══════════════════════════════════════════════════════════════════

IntrospectFunction = Callable[[type], list[PropertyDescriptor]]


class Introspector:
    """
    Registry of per-type introspection functions.

    Lookup walks the MRO of the requested type, so a function registered
    for a base class covers its subclasses.  Types without a registered
    function fall through to default(), which yields nothing here.
    Results are cached per type.
    """

    def __init__(self):
        self._registry: dict[type, IntrospectFunction] = {}
        self._cache: dict[type, tuple[PropertyDescriptor, ...]] = {}

    def register(self, type_: type, function: IntrospectFunction) -> "Introspector":
        self._registry[type_] = function
        self._cache.clear()
        return self

    def introspect(self, type_: type) -> tuple[PropertyDescriptor, ...]:
        try:
            return self._cache[type_]
        except KeyError:
            pass
        for klass in getattr(type_, "__mro__", (type_,)):
            function = self._registry.get(klass)
            if function is not None:
                result = tuple(function(type_))
                break
        else:
            result = tuple(self.default(type_))
        self._cache[type_] = result
        logger.debug("Introspected %s: %d properties",
                     getattr(type_, "__qualname__", type_), len(result))
        return result

    def default(self, type_: type) -> list[PropertyDescriptor]:
        return []


class StandardIntrospector(Introspector):
    """Introspector for the class styles listed in the module docstring."""

    def default(self, type_: type) -> list[PropertyDescriptor]:
        if not isinstance(type_, type) or type_.__module__ == "builtins":
            return []
        if dataclasses.is_dataclass(type_):
            found = _dataclass_properties(type_)
        elif hasattr(type_, "__attrs_attrs__"):
            found = _attrs_properties(type_)
        elif issubclass(type_, tuple) and hasattr(type_, "_fields"):
            found = _namedtuple_properties(type_)
        else:
            found = _annotated_properties(type_)
        seen = {d.name for d in found}
        found.extend(d for d in _python_properties(type_) if d.name not in seen)
        return found


def _getter(name: str) -> Callable[[Any], Any]:
    def get(obj: Any) -> Any:
        return getattr(obj, name)
    get.__name__ = f"get_{name}"
    return get


def _setter(name: str) -> Callable[[Any, Any], None]:
    def set_(obj: Any, value: Any) -> None:
        setattr(obj, name, value)
    set_.__name__ = f"set_{name}"
    return set_


def _dataclass_properties(type_: type) -> list[PropertyDescriptor]:
    hints = _type_hints(type_)
    frozen = type_.__dataclass_params__.frozen
    return [
        PropertyDescriptor(
            name=f.name,
            getter=_getter(f.name),
            setter=None if frozen else _setter(f.name),
            declared_type=runtime_class(hints.get(f.name, f.type)),
            metadata=PropertyMetadata.from_mapping(f.metadata.get(METADATA_KEY)),
        )
        for f in dataclasses.fields(type_)
        if not f.name.startswith("_")
    ]


def _attrs_properties(type_: type) -> list[PropertyDescriptor]:
    return [
        PropertyDescriptor(
            name=a.name,
            getter=_getter(a.name),
            setter=_setter(a.name),
            declared_type=runtime_class(a.type),
            metadata=PropertyMetadata.from_mapping(
                (a.metadata or {}).get(METADATA_KEY)),
        )
        for a in type_.__attrs_attrs__
        if not a.name.startswith("_")
    ]


def _namedtuple_properties(type_: type) -> list[PropertyDescriptor]:
    hints = _type_hints(type_)
    return [
        PropertyDescriptor(name=name, getter=_getter(name),
                           declared_type=runtime_class(hints.get(name)))
        for name in type_._fields
        if not name.startswith("_")
    ]


def _annotated_properties(type_: type) -> list[PropertyDescriptor]:
    found: list[PropertyDescriptor] = []
    hints = _type_hints(type_)
    for name, hint in hints.items():
        if name.startswith("_") or typing.get_origin(hint) is typing.ClassVar:
            continue
        found.append(PropertyDescriptor(name=name, getter=_getter(name),
                                        setter=_setter(name),
                                        declared_type=runtime_class(hint)))
    return found


def _python_properties(type_: type) -> list[PropertyDescriptor]:
    found: dict[str, PropertyDescriptor] = {}
    for klass in reversed(type_.__mro__):
        for name, attr in vars(klass).items():
            if name.startswith("_") or not isinstance(attr, property):
                continue
            if attr.fget is None:
                continue
            hints = _type_hints(attr.fget)
            found[name] = PropertyDescriptor(
                name=name,
                getter=attr.fget,
                setter=attr.fset,
                declared_type=runtime_class(hints.get("return")),
                metadata=getattr(attr.fget, "__objectdiff__", NO_METADATA),
            )
    return list(found.values())


# ═══════════════════════════════════════════════════════════════════
#  METADATA EXTRACTION
# ═══════════════════════════════════════════════════════════════════

def scan_metadata(root_type: type, introspector: Introspector,
                  root: PropertyPath = ROOT_PATH
                  ) -> list[tuple[PropertyPath, PropertyMetadata]]:
    """
    Walk the declared-type graph below `root_type` and return the path
    of every property that carries metadata.

    Only declared types are followed, so properties reachable only
    through maps, collections or untyped attributes are not visited.
    A type already on the current branch is not entered again.
    """
    found: list[tuple[PropertyPath, PropertyMetadata]] = []
    _scan(root_type, introspector, root, (), found)
    return found


def _scan(type_: type, introspector: Introspector, path: PropertyPath,
          branch: tuple, found: list) -> None:
    if type_ in branch:
        return
    branch = branch + (type_,)
    for descriptor in introspector.introspect(type_):
        child_path = path.child(descriptor.name)
        if descriptor.metadata != NO_METADATA:
            found.append((child_path, descriptor.metadata))
        if descriptor.metadata.ignore or descriptor.metadata.equals_only:
            continue
        if descriptor.declared_type is not None:
            _scan(descriptor.declared_type, introspector, child_path, branch, found)
