"""Exceptions raised by the propagation engine."""

from __future__ import annotations


class ShapeMismatchError(ValueError):
    """A vector's length disagrees with the width a layer or loss expects."""

    def __init__(self, message: str, *, expected: int | None = None, actual: int | None = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class MissingCacheError(RuntimeError):
    """``backward`` was called on a layer with no cached forward input."""


class UnimplementedLayerError(NotImplementedError):
    """A declared layer variant has no forward/backward implementation."""


__all__ = ["ShapeMismatchError", "MissingCacheError", "UnimplementedLayerError"]
