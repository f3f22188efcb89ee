"""Index-aligned store of training inputs and targets."""

from __future__ import annotations

from typing import Iterable, Iterator, List

import numpy as np

from ..core.errors import DimensionMismatch
from ..core.tensor import Tensor
from ..core.types import Batch, Sample


class SampleStore:
    """Two equal-length lists of column vectors.

    ``load`` validates every pair before touching the store, so a failed load
    leaves the previous contents intact. ``shuffle`` is the only operation that
    reorders the samples and it applies one permutation to both lists.
    """

    def __init__(self, d_in: int | None = None, d_out: int | None = None) -> None:
        self.d_in = d_in
        self.d_out = d_out
        self._inputs: List[Tensor] = []
        self._targets: List[Tensor] = []

    @property
    def inputs(self) -> tuple[Tensor, ...]:
        return tuple(self._inputs)

    @property
    def targets(self) -> tuple[Tensor, ...]:
        return tuple(self._targets)

    def __len__(self) -> int:
        return len(self._inputs)

    def __iter__(self) -> Iterator[Sample]:
        return iter(zip(self._inputs, self._targets))

    def load(self, pairs: Iterable[Sample], *, replace: bool = True) -> int:
        """Validate and store ``pairs``; returns the number of stored samples."""

        inputs: List[Tensor] = []
        targets: List[Tensor] = []
        d_in, d_out = self.d_in, self.d_out
        if not replace and self._inputs:
            d_in = d_in or self._inputs[0].rows
            d_out = d_out or self._targets[0].rows
        for idx, (x, y) in enumerate(pairs):
            if not (x.is_column and y.is_column):
                raise DimensionMismatch(
                    f"Sample {idx} must be a pair of column vectors, got {x.shape} and {y.shape}"
                )
            d_in = d_in or x.rows
            d_out = d_out or y.rows
            if x.rows != d_in:
                raise DimensionMismatch(f"Sample {idx} has {x.rows} inputs, expected {d_in}")
            if y.rows != d_out:
                raise DimensionMismatch(f"Sample {idx} has {y.rows} targets, expected {d_out}")
            inputs.append(x)
            targets.append(y)
        if replace:
            self._inputs, self._targets = inputs, targets
        else:
            self._inputs.extend(inputs)
            self._targets.extend(targets)
        return len(self)

    def shuffle(self, rng: np.random.Generator) -> None:
        order = rng.permutation(len(self._inputs))
        self._inputs = [self._inputs[i] for i in order]
        self._targets = [self._targets[i] for i in order]

    def draw(self, batch_size: int) -> Batch:
        """Return the first ``batch_size`` samples in the current order."""

        if batch_size > len(self):
            raise DimensionMismatch(
                f"Cannot draw {batch_size} samples from a store holding {len(self)}"
            )
        return Batch(
            inputs=list(self._inputs[:batch_size]),
            targets=list(self._targets[:batch_size]),
        )

    def batches(self, batch_size: int) -> Iterator[Batch]:
        """Yield every full consecutive batch in the current order."""

        for start in range(0, len(self) - batch_size + 1, batch_size):
            end = start + batch_size
            yield Batch(
                inputs=list(self._inputs[start:end]),
                targets=list(self._targets[start:end]),
            )


__all__ = ["SampleStore"]
