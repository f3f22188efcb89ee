"""Activation functions for DeepLearner.

Every activation is a small immutable object exposing ``activate(z)`` and
``derivative(z)``. Both are pure functions of the pre-activation ``z`` and
return a tensor of the same shape.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Mapping, Protocol, Union

from .tensor import Tensor, map_elements


class Activation(Protocol):
    """Protocol implemented by every activation function."""

    name: str

    def activate(self, z: Tensor) -> Tensor:
        """Return the layer output for pre-activation ``z``."""

    def derivative(self, z: Tensor) -> Tensor:
        """Return the elementwise derivative evaluated at ``z``."""


def _logistic(x: float) -> float:
    if x >= 0.0:
        return 1.0 / (1.0 + math.exp(-x))
    e = math.exp(x)
    return e / (1.0 + e)


def _softplus(x: float) -> float:
    if x > 0.0:
        return x + math.log1p(math.exp(-x))
    return math.log1p(math.exp(x))


@dataclass(frozen=True)
class Sigmoid:
    name = "sigmoid"

    def activate(self, z: Tensor) -> Tensor:
        return map_elements(z, _logistic)

    def derivative(self, z: Tensor) -> Tensor:
        def _prime(x: float) -> float:
            a = _logistic(x)
            return a * (1.0 - a)

        return map_elements(z, _prime)


@dataclass(frozen=True)
class ReLU:
    """Rectified linear unit; the derivative at exactly zero is 0."""

    name = "relu"

    def activate(self, z: Tensor) -> Tensor:
        return map_elements(z, lambda x: x if x > 0.0 else 0.0)

    def derivative(self, z: Tensor) -> Tensor:
        return map_elements(z, lambda x: 1.0 if x > 0.0 else 0.0)


@dataclass(frozen=True)
class Tanh:
    name = "tanh"

    def activate(self, z: Tensor) -> Tensor:
        return map_elements(z, math.tanh)

    def derivative(self, z: Tensor) -> Tensor:
        return map_elements(z, lambda x: 1.0 - math.tanh(x) ** 2)


@dataclass(frozen=True)
class BinaryStep:
    """Heaviside step. Its derivative is zero everywhere by convention."""

    name = "binary_step"

    def activate(self, z: Tensor) -> Tensor:
        return map_elements(z, lambda x: 1.0 if x > 0.0 else 0.0)

    def derivative(self, z: Tensor) -> Tensor:
        return Tensor.zeros(z.rows, z.columns)


@dataclass(frozen=True)
class LeakyReLU:
    """Piecewise linear unit with independent slopes on each side of zero."""

    slope_neg: float = 0.01
    slope_pos: float = 1.0
    name = "leaky_relu"

    def activate(self, z: Tensor) -> Tensor:
        return map_elements(z, lambda x: self.slope_pos * x if x > 0.0 else self.slope_neg * x)

    def derivative(self, z: Tensor) -> Tensor:
        return map_elements(z, lambda x: self.slope_pos if x > 0.0 else self.slope_neg)


@dataclass(frozen=True)
class Softmax:
    """Column-wise softmax.

    The derivative is the diagonal term ``a_i * (1 - a_i)`` of the Jacobian,
    not the full matrix. Pairing softmax with anything but a cross-entropy
    style cost therefore only approximates the true gradient.
    """

    name = "softmax"

    def activate(self, z: Tensor) -> Tensor:
        columns = []
        for col in z.T.tolist():
            if not col:
                columns.append(col)
                continue
            peak = max(col)
            exps = [math.exp(x - peak) for x in col]
            total = sum(exps)
            columns.append([e / total for e in exps])
        return Tensor(columns).T if columns else Tensor.zeros(z.rows, z.columns)

    def derivative(self, z: Tensor) -> Tensor:
        return map_elements(self.activate(z), lambda a: a * (1.0 - a))


@dataclass(frozen=True)
class Softplus:
    name = "softplus"

    def activate(self, z: Tensor) -> Tensor:
        return map_elements(z, _softplus)

    def derivative(self, z: Tensor) -> Tensor:
        return map_elements(z, _logistic)


@dataclass(frozen=True)
class Linear:
    name = "linear"

    def activate(self, z: Tensor) -> Tensor:
        return z

    def derivative(self, z: Tensor) -> Tensor:
        return map_elements(z, lambda _: 1.0)


ActivationLike = Union[Activation, str, Mapping[str, object]]

_FACTORIES: Dict[str, Callable[..., Activation]] = {
    "sigmoid": Sigmoid,
    "relu": ReLU,
    "tanh": Tanh,
    "binary_step": BinaryStep,
    "leaky_relu": LeakyReLU,
    "softmax": Softmax,
    "softplus": Softplus,
    "linear": Linear,
}


def available_activations() -> list[str]:
    return sorted(_FACTORIES)


def get_activation(spec: ActivationLike) -> Activation:
    """Resolve ``spec`` into an activation instance.

    ``spec`` may already be an activation, a registered name such as
    ``"relu"``, or a mapping like ``{"name": "leaky_relu", "slope_neg": 0.1}``.
    """

    if isinstance(spec, str):
        name, params = spec, {}
    elif isinstance(spec, Mapping):
        params = dict(spec)
        name = str(params.pop("name", ""))
    else:
        return spec
    key = name.lower()
    if key not in _FACTORIES:
        available = ", ".join(available_activations())
        raise KeyError(f"Unknown activation {name!r}. Available activations: {available}")
    return _FACTORIES[key](**params)


def activation_spec(activation: Activation) -> Dict[str, object]:
    """Return a JSON friendly description that :func:`get_activation` accepts."""

    payload: Dict[str, object] = {"name": activation.name}
    payload.update(asdict(activation))
    return payload


__all__ = [
    "Activation",
    "BinaryStep",
    "LeakyReLU",
    "Linear",
    "ReLU",
    "Sigmoid",
    "Softmax",
    "Softplus",
    "Tanh",
    "activation_spec",
    "available_activations",
    "get_activation",
]
