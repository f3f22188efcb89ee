"""Gradient-descent optimizers.

Every optimizer maps ``(parameter, per-example gradients)`` to a new parameter
tensor. The gradients of a mini-batch are summed, not averaged; each rule
divides by the batch size itself.

Optimizers with memory keep their accumulators in numbered slots. The caller
picks a stable slot per parameter tensor (the trainer uses ``2 * layer`` for
weights and ``2 * layer + 1`` for biases), so the state follows the layer even
though a brand new tensor is produced on every step. ``reset()`` drops all
accumulators and must be called between independent training runs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from ..core.errors import DimensionMismatch
from ..core.tensor import (
    Tensor,
    add,
    hadamard_divide,
    hadamard_multiply,
    map_elements,
    scale,
    sum_all,
    zeros_like,
)


@dataclass
class Optimizer:
    """Base class holding the learning rate and the slot accumulators."""

    learning_rate: float = 0.01
    _slots: List[List[Tensor] | None] = field(init=False, repr=False, default_factory=list)

    name = "optimizer"
    accumulators = 0

    def optimize(self, parameter: Tensor, gradients: Sequence[Tensor], slot: int = 0) -> Tensor:
        total = self._accumulate(parameter, gradients)
        return self._update(parameter, total, len(gradients), slot)

    def reset(self) -> None:
        self._slots = []

    def check_slots(self, parameters: Sequence[Tensor]) -> None:
        """Raise ``DimensionMismatch`` unless slot ``i`` fits ``parameters[i]``.

        Lets a caller validate every slot before any accumulator is advanced.
        """

        for slot, parameter in enumerate(parameters):
            self._check_slot(slot, parameter)

    def state_size(self) -> int:
        """Number of parameter slots currently holding accumulators."""

        return sum(1 for entry in self._slots if entry is not None)

    # ------------------------------------------------------------------
    # Helpers

    def _update(self, parameter: Tensor, total: Tensor, batch: int, slot: int) -> Tensor:
        raise NotImplementedError

    @staticmethod
    def _accumulate(parameter: Tensor, gradients: Sequence[Tensor]) -> Tensor:
        if len(gradients) == 0:
            raise DimensionMismatch("Cannot optimize with an empty gradient batch")
        for idx, grad in enumerate(gradients):
            if grad.shape != parameter.shape:
                raise DimensionMismatch(
                    f"Gradient {idx} is {grad.shape} but the parameter is {parameter.shape}"
                )
        return sum_all(gradients)

    def _load(self, slot: int, parameter: Tensor) -> List[Tensor]:
        if slot < 0:
            raise ValueError(f"Slot index must be non-negative, got {slot}")
        if slot >= len(self._slots):
            self._slots.extend([None] * (slot + 1 - len(self._slots)))
        entry = self._check_slot(slot, parameter)
        if entry is None:
            return [zeros_like(parameter) for _ in range(self.accumulators)]
        return entry

    def _check_slot(self, slot: int, parameter: Tensor) -> List[Tensor] | None:
        entry = self._slots[slot] if slot < len(self._slots) else None
        if entry is not None and entry[0].shape != parameter.shape:
            raise DimensionMismatch(
                f"Slot {slot} holds state for a {entry[0].shape} parameter but received "
                f"{parameter.shape}; call reset() between independent training runs"
            )
        return entry

    def _store(self, slot: int, values: List[Tensor]) -> None:
        self._slots[slot] = values


def _sqrt_eps(eps: float) -> Callable[[float], float]:
    return lambda x: math.sqrt(x + eps)


@dataclass
class SGD(Optimizer):
    """Plain mini-batch gradient descent."""

    name = "sgd"

    def _update(self, parameter: Tensor, total: Tensor, batch: int, slot: int) -> Tensor:
        return add(parameter, scale(-self.learning_rate / batch, total))


@dataclass
class Momentum(Optimizer):
    """Gradient descent with a velocity term.

    ``m = beta * m_old - (lr / n) * sum``; the parameter moves by ``m``.
    """

    beta: float = 0.9
    name = "momentum"
    accumulators = 1

    def _update(self, parameter: Tensor, total: Tensor, batch: int, slot: int) -> Tensor:
        (velocity,) = self._load(slot, parameter)
        velocity = add(scale(self.beta, velocity), scale(-self.learning_rate / batch, total))
        self._store(slot, [velocity])
        return add(parameter, velocity)


@dataclass
class AdaGrad(Optimizer):
    """Per-entry step sizes scaled by the running sum of squared gradients."""

    epsilon: float = 1e-7
    name = "adagrad"
    accumulators = 1

    def _update(self, parameter: Tensor, total: Tensor, batch: int, slot: int) -> Tensor:
        (squares,) = self._load(slot, parameter)
        squares = add(squares, hadamard_multiply(total, total))
        self._store(slot, [squares])
        step = hadamard_divide(total, map_elements(squares, _sqrt_eps(self.epsilon)))
        return add(parameter, scale(-self.learning_rate / batch, step))


@dataclass
class Adam(Optimizer):
    """Adaptive moment estimation with bias correction.

    The step counter is shared by all slots and advances on every call to
    :meth:`optimize`.
    """

    learning_rate: float = 0.001
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-7
    t: int = field(init=False, default=0)
    name = "adam"
    accumulators = 2

    def reset(self) -> None:
        super().reset()
        self.t = 0

    def _update(self, parameter: Tensor, total: Tensor, batch: int, slot: int) -> Tensor:
        first, second = self._load(slot, parameter)
        self.t += 1
        first = add(scale(self.beta1, first), scale(-(1.0 - self.beta1) / batch, total))
        second = add(
            scale(self.beta2, second),
            scale((1.0 - self.beta2) / batch**2, hadamard_multiply(total, total)),
        )
        self._store(slot, [first, second])
        first_hat = scale(1.0 / (1.0 - self.beta1**self.t), first)
        second_hat = scale(1.0 / (1.0 - self.beta2**self.t), second)
        step = hadamard_divide(first_hat, map_elements(second_hat, _sqrt_eps(self.epsilon)))
        return add(parameter, scale(self.learning_rate, step))


_OPTIMIZERS: Dict[str, type] = {
    "sgd": SGD,
    "momentum": Momentum,
    "adagrad": AdaGrad,
    "adam": Adam,
}


def available_optimizers() -> list[str]:
    return sorted(_OPTIMIZERS)


def build_optimizer(name: str, **hyperparameters: float) -> Optimizer:
    """Instantiate the optimizer registered under ``name``.

    ``lr`` is accepted as an alias of ``learning_rate``.
    """

    key = str(name).lower()
    if key not in _OPTIMIZERS:
        available = ", ".join(available_optimizers())
        raise KeyError(f"Unknown optimizer {name!r}. Available optimizers: {available}")
    if "lr" in hyperparameters:
        hyperparameters["learning_rate"] = hyperparameters.pop("lr")
    return _OPTIMIZERS[key](**{k: float(v) for k, v in hyperparameters.items()})


__all__ = [
    "AdaGrad",
    "Adam",
    "Momentum",
    "Optimizer",
    "SGD",
    "available_optimizers",
    "build_optimizer",
]
