"""Cost registry used by the training loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

from ..core.errors import DimensionMismatch, DivisionBySingularity
from ..core.tensor import Tensor, norm, scale, subtract

LossFn = Callable[[Tensor, Tensor], float]
GradientFn = Callable[[Tensor, Tensor], Tensor]


@dataclass(frozen=True)
class Cost:
    """Scalar loss together with its gradient with respect to the network output."""

    name: str
    loss_fn: LossFn
    gradient_fn: GradientFn

    def loss(self, actual: Tensor, expected: Tensor) -> float:
        _check_shapes(actual, expected)
        return float(self.loss_fn(actual, expected))

    def gradient(self, actual: Tensor, expected: Tensor) -> Tensor:
        _check_shapes(actual, expected)
        return self.gradient_fn(actual, expected)


def _check_shapes(actual: Tensor, expected: Tensor) -> None:
    if actual.shape != expected.shape:
        raise DimensionMismatch(
            f"Network output is {actual.shape} but the expected vector is {expected.shape}"
        )


class CostRegistry:
    """Central registry for cost functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Cost] = {}

    def register(self, name: str, loss_fn: LossFn, gradient_fn: GradientFn) -> Cost:
        cost = Cost(name, loss_fn, gradient_fn)
        self._registry[name] = cost
        return cost

    def alias(self, alias: str, name: str) -> None:
        self._registry[alias] = self.get(name)

    def get(self, name: str) -> Cost:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown cost {name!r}. Available costs: {available}") from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = CostRegistry()


def _least_squares(actual: Tensor, expected: Tensor) -> float:
    residual = subtract(actual, expected)
    return norm(residual) ** 2 / 2.0


def _least_squares_grad(actual: Tensor, expected: Tensor) -> Tensor:
    return subtract(actual, expected)


def _mean_average(actual: Tensor, expected: Tensor) -> float:
    # Uses the 2-norm of the residual, not a sum of absolute values.
    return norm(subtract(actual, expected)) / 2.0


def _mean_average_grad(actual: Tensor, expected: Tensor) -> Tensor:
    residual = subtract(actual, expected)
    magnitude = norm(residual)
    if magnitude == 0.0:
        raise DivisionBySingularity(
            "Mean average error gradient is undefined when the output equals the target"
        )
    return scale(1.0 / (2.0 * magnitude), residual)


LEAST_SQUARES = REGISTRY.register("least_squares", _least_squares, _least_squares_grad)
MEAN_AVERAGE_ERROR = REGISTRY.register("mean_average_error", _mean_average, _mean_average_grad)
REGISTRY.alias("mse", "least_squares")
REGISTRY.alias("mae", "mean_average_error")

__all__ = ["Cost", "CostRegistry", "LEAST_SQUARES", "MEAN_AVERAGE_ERROR", "REGISTRY"]
