"""Error types raised by the composition core.

All errors here indicate a caller programming error. They are raised
synchronously at the call that caused them and are never retried.
"""

from __future__ import annotations


class CompositorError(Exception):
    """Base class for errors raised by compositor."""


class StructureError(CompositorError):
    """A graph or chain mutation was malformed.

    Raised for operations on the wrong node variant, removal of a child
    that is not present, re-parenting without a removal, and wrapping a
    behavior that another decoration already owns.
    """


class CycleError(StructureError):
    """A mutation would have made the structure cyclic."""


class UnresolvedVariantError(CompositorError, LookupError):
    """No behavior is registered for a variant under an operation."""

    def __init__(self, operation: str, tag: str) -> None:
        self.operation = operation
        self.tag = tag
        super().__init__(
            f"Operation '{operation}' has no resolution for variant '{tag}'",
        )


class DecorationError(CompositorError):
    """An add-on did not invoke its inner behavior exactly once."""
