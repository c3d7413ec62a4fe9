"""backpropnet public API."""

from .core import activations, errors, layers, types  # noqa: F401
from .core.activations import ReLU, Sigmoid, Tanh, get_activation
from .core.errors import MissingCacheError, ShapeMismatchError, UnimplementedLayerError
from .core.layers import Activation, Convolutional, FullyConnected, Layer
from .training.losses import MSE
from .training.network import Network
from .training.pipelines import load_preset, presets, run_pipeline

__all__ = [
    "Activation",
    "Convolutional",
    "FullyConnected",
    "Layer",
    "MSE",
    "MissingCacheError",
    "Network",
    "ReLU",
    "ShapeMismatchError",
    "Sigmoid",
    "Tanh",
    "UnimplementedLayerError",
    "activations",
    "errors",
    "get_activation",
    "layers",
    "load_preset",
    "presets",
    "run_pipeline",
    "types",
]
