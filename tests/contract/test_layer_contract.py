import numpy as np
import pytest

from backpropnet.core.errors import MissingCacheError, ShapeMismatchError
from backpropnet.core.layers import Activation, FullyConnected

_FACTORIES = {
    "fully_connected": lambda: FullyConnected(3, 2, rng=np.random.default_rng(0)),
    "sigmoid": lambda: Activation("sigmoid"),
    "relu": lambda: Activation("relu"),
}


@pytest.mark.parametrize("kind", sorted(_FACTORIES))
def test_backward_before_forward_fails(kind: str) -> None:
    layer = _FACTORIES[kind]()
    assert not layer.has_cache
    with pytest.raises(MissingCacheError):
        layer.backward(np.ones(2), 0.1)


@pytest.mark.parametrize("kind", sorted(_FACTORIES))
def test_second_backward_without_forward_fails(kind: str) -> None:
    layer = _FACTORIES[kind]()
    out = layer.forward([0.1, 0.2, 0.3])
    assert layer.has_cache
    layer.backward(np.ones_like(out), 0.1)
    assert not layer.has_cache
    with pytest.raises(MissingCacheError):
        layer.backward(np.ones_like(out), 0.1)


def test_second_backward_does_not_touch_parameters() -> None:
    layer = FullyConnected(3, 2, rng=np.random.default_rng(1))
    layer.forward([1.0, 2.0, 3.0])
    layer.backward([1.0, 1.0], 0.1)
    weights, bias = layer.weights.copy(), layer.bias.copy()
    with pytest.raises(MissingCacheError):
        layer.backward([1.0, 1.0], 0.1)
    np.testing.assert_array_equal(layer.weights, weights)
    np.testing.assert_array_equal(layer.bias, bias)


def test_forward_replaces_previous_cache() -> None:
    layer = FullyConnected.from_weights([[1.0, 1.0]], [0.0])
    layer.forward([5.0, 5.0])
    layer.forward([1.0, 2.0])
    layer.backward([1.0], 1.0)
    np.testing.assert_allclose(layer.weights, [[0.0, -1.0]])


@pytest.mark.parametrize("bad_input", [[1.0, 2.0], [1.0, 2.0, 3.0, 4.0], []])
def test_fully_connected_forward_shape_mismatch(bad_input) -> None:
    layer = FullyConnected(3, 2, rng=np.random.default_rng(0))
    with pytest.raises(ShapeMismatchError) as excinfo:
        layer.forward(bad_input)
    assert excinfo.value.expected == 3
    assert not layer.has_cache


def test_fully_connected_backward_shape_mismatch_leaves_parameters() -> None:
    layer = FullyConnected(3, 2, rng=np.random.default_rng(0))
    before = layer.weights.copy()
    layer.forward([1.0, 2.0, 3.0])
    with pytest.raises(ShapeMismatchError):
        layer.backward([1.0, 2.0, 3.0], 0.1)
    np.testing.assert_array_equal(layer.weights, before)


@pytest.mark.parametrize("function", ["sigmoid", "tanh", "relu"])
def test_activation_backward_shape_mismatch(function: str) -> None:
    layer = Activation(function)
    layer.forward([1.0, 2.0])
    with pytest.raises(ShapeMismatchError) as excinfo:
        layer.backward([1.0], 0.1)
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 1


def test_matrix_input_is_rejected() -> None:
    layer = Activation("sigmoid")
    with pytest.raises(ShapeMismatchError):
        layer.forward([[1.0, 2.0], [3.0, 4.0]])
