"""Networks, losses and training pipelines."""

from .losses import MSE, REGISTRY
from .network import Network

__all__ = ["MSE", "REGISTRY", "Network"]
