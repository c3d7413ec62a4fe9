"""Layer composition and the online gradient-descent training loops."""

from __future__ import annotations

import math
from typing import Iterator, List, Mapping, Optional, Sequence

import numpy as np

from ..core.activations import ActivationFunction
from ..core.errors import ShapeMismatchError
from ..core.layers import Activation, FullyConnected, Layer
from ..core.types import TrainResult, Vector, VectorLike, as_vector, check_width


def _validate_schedule(learning_rate: float, epochs: int) -> None:
    if not math.isfinite(learning_rate) or learning_rate <= 0:
        raise ValueError(f"learning_rate must be a finite positive number, got {learning_rate}")
    if int(epochs) != epochs or epochs < 0:
        raise ValueError(f"epochs must be a non-negative integer, got {epochs}")


class Network:
    """Ordered stack of layers.

    ``forward`` runs the layers left to right and ``backward`` right to left.
    Parameters are updated inside each layer's ``backward``; there is no
    separate optimiser step.
    """

    def __init__(self, layers: Optional[Sequence[Layer]] = None) -> None:
        self.layers: List[Layer] = list(layers or [])

    @classmethod
    def from_sizes(
        cls,
        input_size: int,
        layer_sizes: Sequence[int],
        activation: str | ActivationFunction = "sigmoid",
        rng: Optional[np.random.Generator] = None,
    ) -> "Network":
        """Build ``FullyConnected -> Activation`` pairs, one per entry of ``layer_sizes``."""

        if not layer_sizes:
            raise ValueError("layer_sizes must contain at least one layer width")
        rng = rng if rng is not None else np.random.default_rng()
        network = cls()
        width = int(input_size)
        for size in layer_sizes:
            network.add_layer(FullyConnected(width, int(size), rng=rng))
            network.add_layer(Activation(activation))
            width = int(size)
        return network

    # ------------------------------------------------------------------
    # Composition

    def add_layer(self, layer: Layer) -> "Network":
        self.layers.append(layer)
        return self

    def remove_layer(self) -> Layer:
        if not self.layers:
            raise IndexError("remove_layer called on an empty network")
        return self.layers.pop()

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self.layers)

    def __getitem__(self, index: int) -> Layer:
        return self.layers[index]

    @property
    def n_params(self) -> int:
        return int(sum(layer.n_params for layer in self.layers))

    def __repr__(self) -> str:
        inner = ", ".join(repr(layer) for layer in self.layers)
        return f"Network([{inner}])"

    # ------------------------------------------------------------------
    # Propagation

    def forward(self, inputs: VectorLike) -> Vector:
        output = as_vector(inputs, name="input")
        for layer in self.layers:
            output = layer.forward(output)
        return output

    def backward(self, gradient: VectorLike, learning_rate: float) -> Vector:
        grad = as_vector(gradient, name="gradient")
        for layer in reversed(self.layers):
            grad = layer.backward(grad, learning_rate)
        return grad

    def predict(self, inputs: VectorLike) -> Vector:
        """Inference-only forward pass that leaves no cached inputs behind."""

        try:
            return self.forward(inputs)
        finally:
            for layer in self.layers:
                layer.clear_cache()

    # ------------------------------------------------------------------
    # Training loops

    def train(
        self,
        inputs: VectorLike,
        target: VectorLike,
        learning_rate: float,
        epochs: int,
        *,
        callbacks: Sequence[object] = (),
        report_every: int = 1,
    ) -> TrainResult:
        """Fit a single sample: one forward/backward per epoch.

        The output delta is ``output - target`` without the 2/N factor of the
        MSE gradient; that constant is absorbed by the learning rate. The
        recorded loss is the summed squared error before each update.
        """

        _validate_schedule(learning_rate, epochs)
        x = as_vector(inputs, name="input")
        t = as_vector(target, name="target")
        result = TrainResult(epochs=int(epochs))
        for epoch in range(1, int(epochs) + 1):
            sse = self._step(x, t, learning_rate)
            result.history.append(sse)
            self._report(epoch, int(epochs), sse, callbacks, report_every)
        return result

    def train_batch(
        self,
        inputs: Sequence[VectorLike],
        targets: Sequence[VectorLike],
        learning_rate: float,
        epochs: int,
        *,
        callbacks: Sequence[object] = (),
        report_every: int = 100,
    ) -> TrainResult:
        """Online SGD over a fixed sample list.

        Parameters are updated after every sample, in order, with no shuffling
        and no gradient accumulation. The recorded loss is the summed squared
        error over all samples of the epoch.
        """

        _validate_schedule(learning_rate, epochs)
        if len(inputs) != len(targets):
            raise ShapeMismatchError(
                f"got {len(inputs)} inputs but {len(targets)} targets",
                expected=len(inputs),
                actual=len(targets),
            )
        samples = [
            (as_vector(x, name="input"), as_vector(t, name="target"))
            for x, t in zip(inputs, targets)
        ]
        result = TrainResult(epochs=int(epochs))
        for epoch in range(1, int(epochs) + 1):
            total = 0.0
            for x, t in samples:
                total += self._step(x, t, learning_rate)
            result.history.append(total)
            self._report(epoch, int(epochs), total, callbacks, report_every)
        return result

    # ------------------------------------------------------------------
    # Internal helpers

    def _step(self, x: Vector, target: Vector, learning_rate: float) -> float:
        output = self.forward(x)
        check_width(target, output.shape[0], name="target")
        delta = output - target
        sse = float(np.sum(np.square(delta)))
        self.backward(delta, learning_rate)
        return sse

    @staticmethod
    def _report(
        epoch: int,
        epochs: int,
        loss: float,
        callbacks: Sequence[object],
        report_every: int,
    ) -> None:
        if epoch % max(1, report_every) != 0 and epoch != epochs:
            return
        metrics: Mapping[str, float] = {"loss": loss}
        for callback in callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


__all__ = ["Network"]
