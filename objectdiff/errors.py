"""
objectdiff.errors — Exceptions raised by the comparison engine.

Every failure aborts the whole ``compare()`` call; no partial tree is
returned.  Faults raised by user code (a property getter, an ``__eq__``
implementation, a key function) are never wrapped and reach the caller
unchanged.
"""


class ObjectDiffError(Exception):
    """Base class for all errors raised by objectdiff itself."""


class InvalidArgumentError(ObjectDiffError, ValueError):
    """
    The engine was called with arguments it cannot work with.

    Raised when the working and base values at one position have
    different runtime types, or when a differ is built without one of
    its required collaborators.
    """


class UnsupportedShapeError(ObjectDiffError, TypeError):
    """No registered differ claims the shape of a position."""

    def __init__(self, shape, type_, path):
        self.shape = shape
        self.type = type_
        self.path = path
        name = getattr(type_, "__qualname__", repr(type_))
        super().__init__(
            f"No differ accepts {name} (shape {shape.name}) at {path}"
        )
