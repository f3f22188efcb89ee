"""Core numerical primitives for DeepLearner."""

from . import activations, errors, network, tensor, types

__all__ = ["activations", "errors", "network", "tensor", "types"]
