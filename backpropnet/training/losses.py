"""Loss functions and the registry the training pipeline resolves them from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Protocol, Tuple

import numpy as np

from ..core.types import Vector, VectorLike, as_vector, check_width


class LossFunction(Protocol):
    name: str

    def loss(self, target: VectorLike, predicted: VectorLike) -> float:
        """Scalar loss of ``predicted`` against ``target``."""

    def gradient(self, target: VectorLike, predicted: VectorLike) -> Vector:
        """dL/d(predicted), same shape as ``predicted``."""


def _paired(target: VectorLike, predicted: VectorLike) -> Tuple[Vector, Vector]:
    t = as_vector(target, name="target")
    p = as_vector(predicted, name="predicted")
    check_width(p, t.shape[0], name="predicted")
    return t, p


@dataclass(frozen=True)
class MSE:
    """Mean squared error over one vector."""

    name: str = "mse"

    def loss(self, target: VectorLike, predicted: VectorLike) -> float:
        t, p = _paired(target, predicted)
        return float(np.mean(np.square(p - t)))

    def gradient(self, target: VectorLike, predicted: VectorLike) -> Vector:
        t, p = _paired(target, predicted)
        return 2.0 * (p - t) / p.shape[0]

    def sum_squared_error(self, target: VectorLike, predicted: VectorLike) -> float:
        """Unnormalised ``sum((predicted - target)^2)``, as reported by training loops."""

        t, p = _paired(target, predicted)
        return float(np.sum(np.square(p - t)))


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, LossFunction] = {}

    def register(self, loss: LossFunction) -> None:
        self._registry[loss.name] = loss

    def get(self, name: str) -> LossFunction:
        if name not in self._registry:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}")
        return self._registry[name]

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = LossRegistry()
REGISTRY.register(MSE())

__all__ = ["LossFunction", "MSE", "LossRegistry", "REGISTRY"]
