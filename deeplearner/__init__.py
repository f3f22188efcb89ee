"""DeepLearner public API."""

from .core import activations  # noqa: F401
from .core import tensor  # noqa: F401
from .core import types  # noqa: F401
from .core.network import Sequential
from .core.tensor import Tensor
from .training.losses import LEAST_SQUARES, MEAN_AVERAGE_ERROR
from .training.optimizers import SGD, AdaGrad, Adam, Momentum, build_optimizer
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__version__ = "0.3.0"

__all__ = [
    "AdaGrad",
    "Adam",
    "LEAST_SQUARES",
    "MEAN_AVERAGE_ERROR",
    "Momentum",
    "SGD",
    "Sequential",
    "Tensor",
    "Trainer",
    "activations",
    "build_optimizer",
    "load_preset",
    "presets",
    "run_pipeline",
    "tensor",
    "types",
]
