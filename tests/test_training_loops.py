from __future__ import annotations

from typing import Mapping

import numpy as np
import pytest

from backpropnet.core.errors import ShapeMismatchError
from backpropnet.core.layers import FullyConnected
from backpropnet.training.losses import MSE
from backpropnet.training.network import Network
from backpropnet.training.pipelines import XOR_INPUTS, XOR_TARGETS


class _Capture:
    def __init__(self) -> None:
        self.history: list[tuple[int, Mapping[str, float]]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((epoch, {k: float(v) for k, v in metrics.items()}))


def _xor_network(seed: int) -> Network:
    return Network.from_sizes(2, [3, 1], activation="sigmoid", rng=np.random.default_rng(seed))


def test_single_sample_loss_is_non_increasing() -> None:
    net = _xor_network(0)
    result = net.train([1.0, 0.0], [1.0], learning_rate=0.01, epochs=20)
    history = result.history
    assert len(history) == 20
    for prev, curr in zip(history[:10], history[1:11]):
        assert curr <= prev + 1e-12


def test_single_sample_reports_sum_squared_error() -> None:
    net = _xor_network(1)
    x, t = [0.0, 1.0], [1.0]
    expected = MSE().sum_squared_error(t, net.predict(x))
    result = net.train(x, t, learning_rate=0.1, epochs=1)
    assert result.history[0] == pytest.approx(expected)


def test_train_uses_unnormalised_delta() -> None:
    layer_w = [[0.5, -0.25]]
    net = Network()
    net.add_layer(FullyConnected.from_weights(layer_w, [0.0]))
    net.train([1.0, 2.0], [1.0], learning_rate=0.1, epochs=1)
    # output 0.0, delta -1.0 -> W += 0.1 * [1, 2]
    np.testing.assert_allclose(net[0].weights, [[0.6, -0.05]])
    np.testing.assert_allclose(net[0].bias, [0.1])


def test_xor_converges() -> None:
    net = _xor_network(0)
    net.train_batch(XOR_INPUTS, XOR_TARGETS, learning_rate=0.1, epochs=10000, report_every=1000)
    for x, target in zip(XOR_INPUTS, XOR_TARGETS):
        assert abs(net.predict(x)[0] - target[0]) < 0.1, f"XOR output for {x} did not converge"


def test_train_batch_updates_after_every_sample() -> None:
    net = Network([FullyConnected.from_weights([[0.0]], [0.0])])
    net.train_batch([[1.0], [1.0]], [[1.0], [1.0]], learning_rate=0.5, epochs=1)
    # first sample: delta -1 -> w = 0.5, b = 0.5; second: output 1.0, no change
    np.testing.assert_allclose(net[0].weights, [[0.5]])
    np.testing.assert_allclose(net[0].bias, [0.5])


def test_train_batch_accumulates_epoch_loss() -> None:
    net = Network([FullyConnected.from_weights([[0.0]], [0.0])])
    result = net.train_batch([[1.0], [1.0]], [[1.0], [1.0]], learning_rate=0.5, epochs=2)
    assert result.history[0] == pytest.approx(1.0 + 0.0)
    assert result.history[1] == pytest.approx(0.0)
    assert result.final_loss == pytest.approx(0.0)
    assert [r.epoch for r in result.records()] == [1, 2]


def test_callbacks_receive_reported_epochs() -> None:
    capture = _Capture()
    seen: list[tuple[int, Mapping[str, float]]] = []
    net = _xor_network(0)
    net.train_batch(
        XOR_INPUTS,
        XOR_TARGETS,
        learning_rate=0.1,
        epochs=25,
        callbacks=[capture, lambda epoch, metrics: seen.append((epoch, metrics))],
        report_every=10,
    )
    assert [epoch for epoch, _ in capture.history] == [10, 20, 25]
    assert [epoch for epoch, _ in seen] == [10, 20, 25]
    assert all("loss" in metrics for _, metrics in capture.history)


def test_divergence_is_reported_not_hidden() -> None:
    net = Network([FullyConnected.from_weights([[1.0]], [0.0])])
    with np.errstate(over="ignore", invalid="ignore"):
        result = net.train([10.0], [0.0], learning_rate=10.0, epochs=200)
    assert not np.isfinite(result.final_loss) or result.final_loss > 1e100


def test_mismatched_sample_counts() -> None:
    with pytest.raises(ShapeMismatchError):
        _xor_network(0).train_batch(XOR_INPUTS, XOR_TARGETS[:3], learning_rate=0.1, epochs=1)


def test_target_width_mismatch() -> None:
    with pytest.raises(ShapeMismatchError):
        _xor_network(0).train([0.0, 1.0], [1.0, 0.0], learning_rate=0.1, epochs=1)


@pytest.mark.parametrize(
    "learning_rate, epochs",
    [(0.0, 1), (-0.1, 1), (float("nan"), 1), (float("inf"), 1), (0.1, -1), (0.1, 1.5)],
)
def test_invalid_schedule(learning_rate: float, epochs) -> None:
    with pytest.raises(ValueError):
        _xor_network(0).train([0.0, 1.0], [1.0], learning_rate=learning_rate, epochs=epochs)


def test_zero_epochs_is_a_no_op() -> None:
    net = _xor_network(0)
    before = net[0].weights.copy()
    result = net.train_batch(XOR_INPUTS, XOR_TARGETS, learning_rate=0.1, epochs=0)
    assert result.history == []
    np.testing.assert_array_equal(net[0].weights, before)
