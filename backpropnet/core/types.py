"""Core typing contracts for backpropnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Union

import numpy as np

from .errors import ShapeMismatchError

Array = np.ndarray
Vector = np.ndarray
VectorLike = Union[Array, Sequence[float]]


def as_vector(values: VectorLike, *, name: str = "vector") -> Vector:
    """Return ``values`` as a 1-D ``float64`` array."""

    vec = np.asarray(values, dtype=np.float64)
    if vec.ndim != 1:
        raise ShapeMismatchError(
            f"{name} must be one-dimensional, got shape {vec.shape}",
            actual=int(vec.size),
        )
    return vec


def check_width(vec: Vector, expected: int, *, name: str = "vector") -> None:
    """Fail fast when ``vec`` does not have ``expected`` entries."""

    if vec.shape[0] != expected:
        raise ShapeMismatchError(
            f"{name} has length {vec.shape[0]}, expected {expected}",
            expected=expected,
            actual=int(vec.shape[0]),
        )


@dataclass(frozen=True)
class EpochRecord:
    """Loss observed at the end of one training epoch."""

    epoch: int
    loss: float


@dataclass
class TrainResult:
    """Summary returned by :meth:`backpropnet.training.network.Network.train`."""

    epochs: int
    history: List[float] = field(default_factory=list)

    @property
    def final_loss(self) -> float:
        return self.history[-1] if self.history else float("nan")

    def records(self) -> List[EpochRecord]:
        return [EpochRecord(epoch=idx + 1, loss=loss) for idx, loss in enumerate(self.history)]


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`backpropnet.training.pipelines.run_pipeline`."""

    epochs: int
    final_loss: float
    metrics_path: str
    manifest_path: str
    predictions: List[List[float]] = field(default_factory=list)
