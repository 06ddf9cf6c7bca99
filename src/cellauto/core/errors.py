"""Exceptions raised by the cellular automaton engine.

Every error derives from :class:`AutomatonError` and from the builtin
exception a caller would naturally catch for the same condition.
"""


class AutomatonError(Exception):
    """Base class for all engine errors."""


class InvalidDimensionError(AutomatonError, ValueError):
    """An axis size is not a positive integer."""


class InvalidParameterError(AutomatonError, ValueError):
    """A rule or configuration argument is out of range."""


class IndexOutOfRangeError(AutomatonError, IndexError):
    """A cell index has the wrong arity or a component out of bounds."""


class ImmutableGroupError(AutomatonError, TypeError):
    """A write was attempted on a read-only cell group."""


class DimensionMismatchError(AutomatonError, ValueError):
    """A group does not have the dimensionality an operation requires."""


class InvalidIterationError(AutomatonError, ValueError):
    """A negative or non-integer iteration was requested."""


class IterationEvictedError(AutomatonError, LookupError):
    """The requested iteration has already been dropped from the cache."""
