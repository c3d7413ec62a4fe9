"""Core numerical primitives for backpropnet."""

from . import activations, errors, layers, types

__all__ = ["activations", "errors", "layers", "types"]
