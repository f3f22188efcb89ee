"""Mini-batch training loop for :class:`~deeplearner.core.network.Sequential`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from ..core.errors import ConfigurationError
from ..core.network import Sequential
from ..core.tensor import Tensor
from ..core.types import Batch, Sample, TrainingHistory
from ..data.samples import SampleStore
from ..reporting.checkpoint import save_state
from .losses import REGISTRY as COST_REGISTRY
from .losses import Cost
from .optimizers import Optimizer

logger = logging.getLogger(__name__)

MEMORY_SCOPES = ("run", "epoch")
BATCH_STRATEGIES = ("single", "sweep")


class Trainer:
    """Drive epochs of shuffle, batch draw, backprop and optimizer updates.

    ``memory_scope`` decides how long optimizer accumulators live: ``"run"``
    keeps them across epochs (momentum carries over), ``"epoch"`` resets the
    optimizer after every epoch. ``batch_strategy`` is ``"single"`` (one batch
    drawn from the front of the freshly shuffled store per epoch) or
    ``"sweep"`` (every full batch of the shuffled store).
    """

    def __init__(
        self,
        model: Sequential,
        optimizer: Optimizer,
        cost: Cost | str = "least_squares",
        callbacks: Sequence[object] | None = None,
        *,
        seed: int | None = 0,
    ) -> None:
        self.model = model
        self.optimizer = optimizer
        self.cost = COST_REGISTRY.get(cost) if isinstance(cost, str) else cost
        self.callbacks = list(callbacks or [])
        self.samples = SampleStore(d_in=model.layer_dims[0], d_out=model.layer_dims[-1])
        self._rng = np.random.default_rng(seed)

    def load_samples(self, pairs: Iterable[Sample]) -> int:
        """Replace the training set; nothing is stored if any pair is invalid."""

        return self.samples.load(pairs)

    # ------------------------------------------------------------------
    # Epochs

    def learn(
        self,
        batch_size: int,
        *,
        batch_strategy: str = "single",
        memory_scope: str = "run",
    ) -> float:
        """Run one epoch and return the average loss of the processed examples."""

        self._validate(batch_size, batch_strategy, memory_scope)
        self.samples.shuffle(self._rng)
        if batch_strategy == "single":
            batches: List[Batch] = [self.samples.draw(batch_size)]
        else:
            batches = list(self.samples.batches(batch_size))

        total_loss = 0.0
        seen = 0
        for batch in batches:
            loss, weight_grads, bias_grads = self._batch_gradients(batch)
            total_loss += loss
            seen += len(batch)
            self._apply(weight_grads, bias_grads)

        if memory_scope == "epoch":
            self.optimizer.reset()
        return total_loss / seen

    def run(
        self,
        epochs: int,
        batch_size: int,
        *,
        cutoff: float | None = None,
        memory_scope: str = "run",
        batch_strategy: str = "single",
        fresh_optimizer: bool = True,
        checkpoint_dir: str | Path | None = None,
    ) -> TrainingHistory:
        """Train for ``epochs`` epochs, or until the epoch loss drops to ``cutoff``."""

        if epochs < 1:
            raise ConfigurationError(f"Cannot train for less than 1 epoch, got {epochs}")
        self._validate(batch_size, batch_strategy, memory_scope)
        if fresh_optimizer:
            self.optimizer.reset()

        logger.info(
            "Initiating training sequence: %d samples, batch size %d, optimizer %s",
            len(self.samples),
            batch_size,
            self.optimizer.name,
        )
        history = TrainingHistory()
        best_loss = float("inf")
        ckpt_dir = Path(checkpoint_dir) if checkpoint_dir is not None else None

        for epoch in range(1, epochs + 1):
            loss = self.learn(
                batch_size, batch_strategy=batch_strategy, memory_scope=memory_scope
            )
            history.losses.append(loss)
            logger.info("Epoch %d complete. Error: %s.", epoch, loss)
            self._emit_epoch(epoch, {"loss": loss})

            if ckpt_dir is not None and loss < best_loss - 1e-12:
                best_loss = loss
                save_state(ckpt_dir / "best.ckpt", self.model.state_dict())
            if cutoff is not None and loss <= cutoff:
                history.reached_cutoff = True
                logger.info("Loss %s reached cutoff %s after %d epochs", loss, cutoff, epoch)
                break

        if ckpt_dir is not None:
            save_state(ckpt_dir / "last.ckpt", self.model.state_dict())
        self.model.mark_ready()
        logger.info("Training completed successfully.")
        return history

    # ------------------------------------------------------------------
    # Internal helpers

    def _validate(self, batch_size: int, batch_strategy: str, memory_scope: str) -> None:
        if not self.model.is_configured:
            raise ConfigurationError("Set the network activations before training")
        if batch_strategy not in BATCH_STRATEGIES:
            raise ConfigurationError(
                f"batch_strategy must be one of {BATCH_STRATEGIES}, got {batch_strategy!r}"
            )
        if memory_scope not in MEMORY_SCOPES:
            raise ConfigurationError(
                f"memory_scope must be one of {MEMORY_SCOPES}, got {memory_scope!r}"
            )
        if batch_size < 1:
            raise ConfigurationError(f"Batch size must be at least 1, got {batch_size}")
        if len(self.samples) == 0:
            raise ConfigurationError("No training samples have been loaded")
        if len(self.samples) < batch_size:
            raise ConfigurationError(
                f"Batch size {batch_size} exceeds the {len(self.samples)} loaded samples"
            )

    def _batch_gradients(
        self, batch: Batch
    ) -> tuple[float, List[List[Tensor]], List[List[Tensor]]]:
        depth = self.model.depth
        weight_grads: List[List[Tensor]] = [[] for _ in range(depth)]
        bias_grads: List[List[Tensor]] = [[] for _ in range(depth)]
        total_loss = 0.0
        for x, y in zip(batch.inputs, batch.targets):
            loss, grads = self.model.ffbp(x, y, self.cost)
            total_loss += loss
            for idx in range(depth):
                weight_grads[idx].append(grads.weights[idx])
                bias_grads[idx].append(grads.biases[idx])
        return total_loss, weight_grads, bias_grads

    def _apply(self, weight_grads: List[List[Tensor]], bias_grads: List[List[Tensor]]) -> None:
        params = [p for pair in zip(self.model.weights, self.model.biases) for p in pair]
        self.optimizer.check_slots(params)
        weights: List[Tensor] = []
        biases: List[Tensor] = []
        for idx, (W, b) in enumerate(zip(self.model.weights, self.model.biases)):
            weights.append(self.optimizer.optimize(W, weight_grads[idx], slot=2 * idx))
            biases.append(self.optimizer.optimize(b, bias_grads[idx], slot=2 * idx + 1))
        self.model.replace_parameters(weights, biases)

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


__all__ = ["BATCH_STRATEGIES", "MEMORY_SCOPES", "Trainer"]
