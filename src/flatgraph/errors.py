"""Error taxonomy for flatgraph.

Every error raised for bad data derives from :class:`FlatGraphError` and from
the closest built-in exception, so callers can catch either.
"""

from __future__ import annotations


class FlatGraphError(Exception):
    """Base class of all flatgraph errors."""


class MalformedInputError(FlatGraphError, ValueError):
    """Text or a Mapped structure could not be parsed."""


class TypeResolutionError(FlatGraphError, LookupError):
    """A type descriptor does not resolve to a concrete type."""

    def __init__(self, descriptor: str, message: str | None = None) -> None:
        self.descriptor = descriptor
        super().__init__(message or f"Could not resolve type {descriptor!r}")


class LiteralConversionError(FlatGraphError, ValueError):
    """Text could not be converted to the value of a literal type."""


class RegistryError(FlatGraphError, ValueError):
    """Invalid use of the literal registry (e.g. replacing a base literal)."""


class ReconstructionError(FlatGraphError):
    """An instance of a resolved type could not be allocated or rebuilt."""


class UnsupportedTypeError(FlatGraphError, TypeError):
    """A value in the object graph cannot be flattened."""
