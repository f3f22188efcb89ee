import math

import pytest

from deeplearner.core.errors import DimensionMismatch, DivisionBySingularity
from deeplearner.core.tensor import Tensor
from deeplearner.training.losses import (
    LEAST_SQUARES,
    MEAN_AVERAGE_ERROR,
    REGISTRY,
    CostRegistry,
)

ACTUAL = Tensor.column([4.0, 6.0])
EXPECTED = Tensor.column([1.0, 2.0])


def test_least_squares_is_half_squared_norm():
    assert LEAST_SQUARES.loss(ACTUAL, EXPECTED) == pytest.approx(12.5)
    assert LEAST_SQUARES.gradient(ACTUAL, EXPECTED) == Tensor.column([3.0, 4.0])


def test_mean_average_error_uses_the_residual_norm():
    # Residual (3, 4): the loss is ||r|| / 2, not the mean absolute value 3.5.
    assert MEAN_AVERAGE_ERROR.loss(ACTUAL, EXPECTED) == pytest.approx(2.5)
    grad = MEAN_AVERAGE_ERROR.gradient(ACTUAL, EXPECTED)
    assert grad.allclose(Tensor.column([0.3, 0.4]))


def test_mean_average_error_gradient_needs_a_residual():
    with pytest.raises(DivisionBySingularity):
        MEAN_AVERAGE_ERROR.gradient(EXPECTED, EXPECTED)
    assert isinstance(DivisionBySingularity("x"), ZeroDivisionError)
    assert MEAN_AVERAGE_ERROR.loss(EXPECTED, EXPECTED) == 0.0


def test_costs_reject_mismatched_vectors():
    with pytest.raises(DimensionMismatch):
        LEAST_SQUARES.loss(ACTUAL, Tensor.column([1.0]))
    with pytest.raises(DimensionMismatch):
        MEAN_AVERAGE_ERROR.gradient(ACTUAL, Tensor.column([1.0, 2.0, 3.0]))


def test_registry_aliases_and_errors():
    assert REGISTRY.get("mse") is LEAST_SQUARES
    assert REGISTRY.get("mae") is MEAN_AVERAGE_ERROR
    with pytest.raises(KeyError, match="Available costs"):
        REGISTRY.get("hinge")


def test_custom_registry():
    registry = CostRegistry()
    cost = registry.register(
        "sum_abs",
        lambda a, e: sum(abs(x - y) for x, y in zip(a.flatten(), e.flatten())),
        lambda a, e: (a - e).map(lambda r: math.copysign(1.0, r)),
    )
    assert registry.get("sum_abs") is cost
    assert cost.loss(ACTUAL, EXPECTED) == 7.0
    assert list(registry.names()) == ["sum_abs"]
