"""Layer implementations for the propagation engine.

Every layer caches the input of its latest ``forward`` call and consumes that
cache in ``backward``. Parameterised layers apply their SGD update inside
``backward``, so gradient computation and weight update happen in one call.
"""

from __future__ import annotations

from typing import Optional, Protocol, Union

import numpy as np

from .activations import ActivationFunction, get_activation
from .errors import MissingCacheError, UnimplementedLayerError
from .types import Array, Vector, VectorLike, as_vector, check_width


class Layer(Protocol):
    """Protocol implemented by every layer variant."""

    def forward(self, inputs: VectorLike) -> Vector:
        """Return the layer output and cache ``inputs`` for ``backward``."""

    def backward(self, delta: VectorLike, learning_rate: float) -> Vector:
        """Return dL/d(input) given dL/d(output), updating parameters in place."""

    @property
    def has_cache(self) -> bool:
        """Whether a forward input is waiting to be consumed."""

    @property
    def n_params(self) -> int:
        """Number of learnable scalars."""

    def clear_cache(self) -> None:
        """Drop any cached forward input."""


def _xavier_bound(in_width: int, out_width: int) -> float:
    return float(np.sqrt(6.0 / (in_width + out_width)))


class FullyConnected:
    """Affine layer ``y = W x + b`` with ``W`` of shape ``(out_width, in_width)``."""

    def __init__(
        self,
        in_width: int,
        out_width: int,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        for width in (in_width, out_width):
            if int(width) != width or width <= 0:
                raise ValueError(
                    f"Layer widths must be positive integers, got in_width={in_width}, out_width={out_width}"
                )
        in_width, out_width = int(in_width), int(out_width)
        rng = rng if rng is not None else np.random.default_rng()
        bound = _xavier_bound(in_width, out_width)
        self.weights: Array = rng.uniform(-bound, bound, size=(out_width, in_width))
        self.bias: Array = np.zeros(out_width, dtype=np.float64)
        self._cache: Optional[Vector] = None

    @classmethod
    def from_weights(cls, weights: Array, bias: VectorLike) -> "FullyConnected":
        """Build a layer with explicit parameters (copied)."""

        W = np.array(weights, dtype=np.float64)
        if W.ndim != 2 or W.size == 0:
            raise ValueError(f"weights must be a non-empty 2-D matrix, got shape {W.shape}")
        b = as_vector(bias, name="bias")
        check_width(b, W.shape[0], name="bias")
        layer = cls.__new__(cls)
        layer.weights = W
        layer.bias = b.copy()
        layer._cache = None
        return layer

    @property
    def in_width(self) -> int:
        return int(self.weights.shape[1])

    @property
    def out_width(self) -> int:
        return int(self.weights.shape[0])

    @property
    def n_params(self) -> int:
        return int(self.weights.size + self.bias.size)

    @property
    def has_cache(self) -> bool:
        return self._cache is not None

    def clear_cache(self) -> None:
        self._cache = None

    def forward(self, inputs: VectorLike) -> Vector:
        x = as_vector(inputs, name="input")
        check_width(x, self.in_width, name="input")
        self._cache = x.copy()
        return self.weights @ x + self.bias

    def backward(self, delta: VectorLike, learning_rate: float) -> Vector:
        if self._cache is None:
            raise MissingCacheError(
                "FullyConnected.backward called without a preceding forward"
            )
        grad = as_vector(delta, name="gradient")
        check_width(grad, self.out_width, name="gradient")
        x = self._cache
        upstream = self.weights.T @ grad
        self.weights -= learning_rate * np.outer(grad, x)
        self.bias -= learning_rate * grad
        self._cache = None
        return upstream

    def __repr__(self) -> str:
        return f"FullyConnected(in_width={self.in_width}, out_width={self.out_width})"


class Activation:
    """Element-wise nonlinearity without learnable parameters."""

    n_params = 0

    def __init__(self, function: Union[str, ActivationFunction]) -> None:
        if isinstance(function, str):
            function = get_activation(function)
        self.function: ActivationFunction = function
        self._cache: Optional[Vector] = None

    @property
    def has_cache(self) -> bool:
        return self._cache is not None

    def clear_cache(self) -> None:
        self._cache = None

    def forward(self, inputs: VectorLike) -> Vector:
        x = as_vector(inputs, name="input")
        self._cache = x.copy()
        return self.function.activate(x)

    def backward(self, delta: VectorLike, learning_rate: float) -> Vector:
        if self._cache is None:
            raise MissingCacheError("Activation.backward called without a preceding forward")
        grad = as_vector(delta, name="gradient")
        check_width(grad, self._cache.shape[0], name="gradient")
        upstream = self.function.derivative(self._cache) * grad
        self._cache = None
        return upstream

    def __repr__(self) -> str:
        return f"Activation({self.function.name!r})"


class Convolutional:
    """Declared convolutional layer. Not implemented; every pass raises."""

    n_params = 0
    has_cache = False

    def __init__(self, *args: object, **kwargs: object) -> None:
        self.args = args
        self.kwargs = kwargs

    def clear_cache(self) -> None:
        return None

    def forward(self, inputs: VectorLike) -> Vector:
        raise UnimplementedLayerError("Convolutional.forward is not implemented")

    def backward(self, delta: VectorLike, learning_rate: float) -> Vector:
        raise UnimplementedLayerError("Convolutional.backward is not implemented")


__all__ = ["Layer", "FullyConnected", "Activation", "Convolutional"]
