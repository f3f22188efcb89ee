import math

import pytest

from deeplearner.core.activations import (
    BinaryStep,
    LeakyReLU,
    Linear,
    ReLU,
    Sigmoid,
    Softmax,
    Softplus,
    Tanh,
    activation_spec,
    available_activations,
    get_activation,
)
from deeplearner.core.tensor import Tensor


def test_sigmoid_at_zero():
    z = Tensor.column([0.0])
    assert Sigmoid().activate(z) == Tensor.column([0.5])
    assert Sigmoid().derivative(z) == Tensor.column([0.25])


def test_sigmoid_does_not_overflow():
    out = Sigmoid().activate(Tensor.column([-1000.0, 1000.0]))
    assert out.flatten() == [0.0, 1.0]


def test_relu_values_and_derivative():
    z = Tensor.column([-2.0, 3.0])
    assert ReLU().activate(z) == Tensor.column([0.0, 3.0])
    assert ReLU().derivative(z) == Tensor.column([0.0, 1.0])


def test_relu_derivative_at_zero_is_zero():
    assert ReLU().derivative(Tensor.column([0.0])) == Tensor.column([0.0])


def test_tanh_derivative():
    z = Tensor.column([0.5])
    assert Tanh().derivative(z)[0, 0] == pytest.approx(1 - math.tanh(0.5) ** 2)


def test_binary_step():
    z = Tensor.column([-1.0, 0.0, 2.0])
    assert BinaryStep().activate(z).flatten() == [0.0, 0.0, 1.0]
    assert BinaryStep().derivative(z).flatten() == [0.0, 0.0, 0.0]


def test_leaky_relu_slopes():
    act = LeakyReLU(slope_neg=0.1, slope_pos=2.0)
    z = Tensor.column([-2.0, 3.0])
    assert act.activate(z).allclose(Tensor.column([-0.2, 6.0]))
    assert act.derivative(z).flatten() == [0.1, 2.0]


def test_softmax_columns_sum_to_one():
    out = Softmax().activate(Tensor.column([1.0, 2.0, 3.0]))
    assert sum(out.flatten()) == pytest.approx(1.0)
    assert out[2, 0] > out[1, 0] > out[0, 0]
    big = Softmax().activate(Tensor.column([1000.0, 1000.0]))
    assert big.flatten() == pytest.approx([0.5, 0.5])


def test_softmax_derivative_is_the_jacobian_diagonal():
    # Only the diagonal term a_i * (1 - a_i) is used; off-diagonal terms are ignored.
    z = Tensor.column([1.0, 2.0, 3.0])
    probs = Softmax().activate(z).flatten()
    derivative = Softmax().derivative(z).flatten()
    assert derivative == pytest.approx([a * (1.0 - a) for a in probs])
    assert derivative != pytest.approx(probs)


def test_softplus_and_linear():
    z = Tensor.column([0.0, 800.0])
    assert Softplus().activate(z)[0, 0] == pytest.approx(math.log(2.0))
    assert Softplus().activate(z)[1, 0] == pytest.approx(800.0)
    assert Softplus().derivative(Tensor.column([0.0])) == Tensor.column([0.5])
    assert Linear().activate(z) == z
    assert Linear().derivative(z).flatten() == [1.0, 1.0]


def test_registry_lookup():
    assert isinstance(get_activation("relu"), ReLU)
    assert isinstance(get_activation("ReLU"), ReLU)
    leaky = get_activation({"name": "leaky_relu", "slope_neg": 0.2})
    assert leaky == LeakyReLU(slope_neg=0.2)
    sig = Sigmoid()
    assert get_activation(sig) is sig
    assert "softmax" in available_activations()
    with pytest.raises(KeyError, match="Available activations"):
        get_activation("swish")


def test_activation_spec_roundtrip():
    act = LeakyReLU(slope_neg=0.3)
    assert get_activation(activation_spec(act)) == act
    assert activation_spec(Sigmoid()) == {"name": "sigmoid"}
