"""Core typing contracts for DeepLearner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .tensor import Tensor

Sample = Tuple[Tensor, Tensor]


@dataclass(frozen=True)
class Batch:
    """A mini-batch of index-aligned input and target column vectors."""

    inputs: List[Tensor]
    targets: List[Tensor]

    def __len__(self) -> int:
        return len(self.inputs)


@dataclass
class ForwardState:
    """Intermediate values captured during the forward pass.

    ``pre_activations[0]`` is ``None`` because the input layer has no weights;
    ``layer_outputs[0]`` is the input vector itself.
    """

    pre_activations: List[Tensor | None]
    layer_outputs: List[Tensor]

    @property
    def output(self) -> Tensor:
        return self.layer_outputs[-1]


@dataclass
class LayerGradients:
    """Per-layer parameter gradients for a single training example."""

    weights: List[Tensor]
    biases: List[Tensor]


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_dims: List[int]
    activations: List[str] = field(default_factory=list)


@dataclass
class TrainingHistory:
    """Average loss of every completed epoch."""

    losses: List[float] = field(default_factory=list)
    reached_cutoff: bool = False

    @property
    def epochs(self) -> int:
        return len(self.losses)

    @property
    def final_loss(self) -> float:
        return self.losses[-1] if self.losses else float("nan")


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`deeplearner.training.pipelines.run_pipeline`."""

    epochs: int
    final_loss: float
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    model_path: str = ""
