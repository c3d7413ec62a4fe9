"""Activation functions shared by :class:`~backpropnet.core.layers.Activation` layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Protocol, Union

import numpy as np

from .types import Array

Scalar = Union[float, Array]


def _unwrap(value: Array, like: Scalar) -> Scalar:
    if np.ndim(like) == 0:
        return float(value)
    return value


def _sigmoid(x: Array) -> Array:
    # exp of a non-positive argument only, so large |x| never overflows
    z = np.exp(-np.abs(x))
    return np.where(x >= 0, 1.0 / (1.0 + z), z / (1.0 + z))


class ActivationFunction(Protocol):
    """Stateless pointwise transform with its derivative."""

    name: str

    def activate(self, x: Scalar) -> Scalar:
        """Return the activation of ``x``."""

    def derivative(self, x: Scalar) -> Scalar:
        """Return d activate / dx evaluated at the pre-activation ``x``."""


@dataclass(frozen=True)
class Sigmoid:
    """Logistic function ``1 / (1 + e^-x)``."""

    name: str = "sigmoid"

    def activate(self, x: Scalar) -> Scalar:
        return _unwrap(_sigmoid(np.asarray(x, dtype=np.float64)), x)

    def derivative(self, x: Scalar) -> Scalar:
        s = _sigmoid(np.asarray(x, dtype=np.float64))
        return _unwrap(s * (1.0 - s), x)


@dataclass(frozen=True)
class Tanh:
    """Hyperbolic tangent."""

    name: str = "tanh"

    def activate(self, x: Scalar) -> Scalar:
        return _unwrap(np.tanh(np.asarray(x, dtype=np.float64)), x)

    def derivative(self, x: Scalar) -> Scalar:
        t = np.tanh(np.asarray(x, dtype=np.float64))
        return _unwrap(1.0 - t**2, x)


@dataclass(frozen=True)
class ReLU:
    """Rectified linear unit. The derivative at exactly zero is 0."""

    name: str = "relu"

    def activate(self, x: Scalar) -> Scalar:
        return _unwrap(np.maximum(np.asarray(x, dtype=np.float64), 0.0), x)

    def derivative(self, x: Scalar) -> Scalar:
        arr = np.asarray(x, dtype=np.float64)
        return _unwrap((arr > 0).astype(np.float64), x)


SIGMOID = Sigmoid()
TANH = Tanh()
RELU = ReLU()

_REGISTRY: Dict[str, ActivationFunction] = {
    SIGMOID.name: SIGMOID,
    TANH.name: TANH,
    RELU.name: RELU,
}


def names() -> Iterable[str]:
    return sorted(_REGISTRY)


def get_activation(name: str) -> ActivationFunction:
    """Resolve ``name`` to the shared activation instance."""

    key = name.strip().lower()
    if key not in _REGISTRY:
        available = ", ".join(names())
        raise KeyError(f"Unknown activation {name!r}. Available activations: {available}")
    return _REGISTRY[key]


__all__ = [
    "ActivationFunction",
    "Sigmoid",
    "Tanh",
    "ReLU",
    "SIGMOID",
    "TANH",
    "RELU",
    "get_activation",
    "names",
]
