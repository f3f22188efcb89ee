"""Sequential multilayer perceptron built on :mod:`deeplearner.core.tensor`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, MutableSequence, Protocol, Sequence

import numpy as np

from .activations import Activation, ActivationLike, get_activation
from .errors import ConfigurationError, DimensionMismatch
from .tensor import Tensor, add, hadamard_multiply, multiply, randomize, transpose
from .types import ForwardState, LayerGradients, ModelDescription

UNINITIALIZED = "uninitialized"
CONFIGURED = "configured"
READY = "ready"


class CostFunction(Protocol):
    """Subset of :class:`deeplearner.training.losses.Cost` used by backprop."""

    def loss(self, actual: Tensor, expected: Tensor) -> float:
        ...

    def gradient(self, actual: Tensor, expected: Tensor) -> Tensor:
        ...


@dataclass
class Sequential:
    """Dense feed-forward network.

    ``layer_dims`` lists the node count of every layer, input layer first. The
    network owns ``len(layer_dims) - 1`` weight matrices (shape
    ``dims[i + 1] x dims[i]``) and as many bias columns (``dims[i + 1] x 1``),
    all randomised uniformly in ``[0, 1)`` on construction.
    """

    layer_dims: Sequence[int]
    seed: int | None = None
    _weights: MutableSequence[Tensor] = field(init=False, repr=False)
    _biases: MutableSequence[Tensor] = field(init=False, repr=False)
    _activations: tuple[Activation, ...] = field(init=False, repr=False, default=())
    _state: str = field(init=False, repr=False, default=UNINITIALIZED)

    def __post_init__(self) -> None:
        dims = [int(d) for d in self.layer_dims]
        if len(dims) < 2:
            raise ConfigurationError(
                "A network needs at least an input and an output layer, "
                f"got {len(dims)} layer(s)"
            )
        if any(d < 1 for d in dims):
            raise ConfigurationError(f"Every layer needs at least one node, got {dims}")
        self.layer_dims = dims
        self.reset(self.seed)

    # ------------------------------------------------------------------
    # Parameters

    def reset(self, seed: int | None) -> None:
        """Re-randomise every weight and bias.

        Optimizers keep accumulators between calls, so callers re-using an
        optimizer after a reset should also call ``optimizer.reset()``.
        """

        self.seed = seed
        rng = np.random.default_rng(seed)
        weights: list[Tensor] = []
        biases: list[Tensor] = []
        for in_dim, out_dim in zip(self.layer_dims[:-1], self.layer_dims[1:]):
            weights.append(randomize(Tensor.zeros(out_dim, in_dim), rng))
            biases.append(randomize(Tensor.zeros(out_dim, 1), rng))
        self._weights = weights
        self._biases = biases

    @property
    def weights(self) -> tuple[Tensor, ...]:
        return tuple(self._weights)

    @property
    def biases(self) -> tuple[Tensor, ...]:
        return tuple(self._biases)

    @property
    def depth(self) -> int:
        """Number of computed (non-input) layers."""

        return len(self._weights)

    def replace_parameters(self, weights: Sequence[Tensor], biases: Sequence[Tensor]) -> None:
        """Swap in new parameter tensors; shapes must match the current ones."""

        if len(weights) != self.depth or len(biases) != self.depth:
            raise DimensionMismatch(
                f"Expected {self.depth} weight and bias tensors, "
                f"got {len(weights)} and {len(biases)}"
            )
        for idx, (new, old) in enumerate(zip(weights, self._weights)):
            if new.shape != old.shape:
                raise DimensionMismatch(f"Weight {idx} must be {old.shape}, got {new.shape}")
        for idx, (new, old) in enumerate(zip(biases, self._biases)):
            if new.shape != old.shape:
                raise DimensionMismatch(f"Bias {idx} must be {old.shape}, got {new.shape}")
        self._weights = list(weights)
        self._biases = list(biases)

    def state_dict(self) -> dict[str, Tensor]:
        state = {f"W{idx}": w for idx, w in enumerate(self._weights)}
        state.update({f"b{idx}": b for idx, b in enumerate(self._biases)})
        return state

    def load_state_dict(self, state: Mapping[str, Tensor]) -> None:
        weights, biases = [], []
        for idx in range(self.depth):
            for key, bucket in ((f"W{idx}", weights), (f"b{idx}", biases)):
                if key not in state:
                    raise KeyError(f"Missing parameter {key} in state dict")
                bucket.append(state[key])
        self.replace_parameters(weights, biases)

    def parameter_count(self) -> int:
        return sum(w.rows * w.columns + b.rows for w, b in zip(self._weights, self._biases))

    # ------------------------------------------------------------------
    # Configuration

    @property
    def state(self) -> str:
        return self._state

    @property
    def activations(self) -> tuple[Activation, ...]:
        return self._activations

    @property
    def is_configured(self) -> bool:
        return self._state in {CONFIGURED, READY}

    def set_activations(self, *activations: ActivationLike) -> None:
        """Assign one activation per computed layer, in order."""

        if len(activations) == 1 and isinstance(activations[0], (list, tuple)):
            activations = tuple(activations[0])
        if len(activations) != self.depth:
            raise ConfigurationError(
                f"Invalid number of activations. Expected: {self.depth}. "
                f"Received: {len(activations)}."
            )
        self._activations = tuple(get_activation(a) for a in activations)
        if self._state == UNINITIALIZED:
            self._state = CONFIGURED

    def mark_ready(self) -> None:
        if not self.is_configured:
            raise ConfigurationError("Activations must be set before the network can be ready")
        self._state = READY

    def describe(self) -> ModelDescription:
        return ModelDescription(
            layer_dims=list(self.layer_dims),
            activations=[a.name for a in self._activations],
        )

    # ------------------------------------------------------------------
    # Propagation

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError("Activations have not been set for this network")

    def _check_input(self, x: Tensor) -> None:
        if x.shape != (self.layer_dims[0], 1):
            raise DimensionMismatch(
                f"Input vector is {x.rows}x{x.columns} while the first layer expects "
                f"a {self.layer_dims[0]}x1 column"
            )

    def _check_target(self, y: Tensor) -> None:
        if y.shape != (self.layer_dims[-1], 1):
            raise DimensionMismatch(
                f"Target vector is {y.rows}x{y.columns} while the last layer has "
                f"{self.layer_dims[-1]} node(s)"
            )

    def forward(self, x: Tensor) -> tuple[Tensor, ForwardState]:
        self._require_configured()
        self._check_input(x)
        pre_activations: list[Tensor | None] = [None]
        layer_outputs: list[Tensor] = [x]
        for W, b, act in zip(self._weights, self._biases, self._activations):
            z = add(multiply(W, layer_outputs[-1]), b)
            pre_activations.append(z)
            layer_outputs.append(act.activate(z))
        state = ForwardState(pre_activations=pre_activations, layer_outputs=layer_outputs)
        return state.output, state

    def backward(self, state: ForwardState, target: Tensor, cost: CostFunction) -> LayerGradients:
        """Backpropagate ``cost`` through the activations captured in ``state``.

        ``deltas[i]`` is the error term of computed layer ``i`` (i.e. of
        ``layer_outputs[i + 1]``).
        """

        self._check_target(target)
        last = self.depth - 1
        deltas: list[Tensor] = [Tensor.zeros(0, 0)] * self.depth
        deltas[last] = hadamard_multiply(
            cost.gradient(state.output, target),
            self._activations[last].derivative(state.pre_activations[last + 1]),
        )
        for idx in range(last - 1, -1, -1):
            back = multiply(transpose(self._weights[idx + 1]), deltas[idx + 1])
            deltas[idx] = hadamard_multiply(
                back, self._activations[idx].derivative(state.pre_activations[idx + 1])
            )
        weight_grads = [
            multiply(delta, transpose(state.layer_outputs[idx]))
            for idx, delta in enumerate(deltas)
        ]
        return LayerGradients(weights=weight_grads, biases=list(deltas))

    def ffbp(self, x: Tensor, target: Tensor, cost: CostFunction) -> tuple[float, LayerGradients]:
        """Forward pass, loss and backward pass for a single example."""

        self._check_target(target)
        output, state = self.forward(x)
        loss = cost.loss(output, target)
        return loss, self.backward(state, target, cost)

    def predict(self, x: Tensor) -> Tensor:
        output, _ = self.forward(x)
        return output

    def predict_text(self, text: str) -> Tensor:
        """Predict from a space separated list of input values."""

        from ..data.text import parse_vector

        return self.predict(parse_vector(text))


__all__ = ["CONFIGURED", "READY", "UNINITIALIZED", "Sequential"]
