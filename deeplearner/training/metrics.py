"""Evaluation metrics for trained networks."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Sequence

import numpy as np

from ..core.network import Sequential
from ..core.types import Sample
from .losses import Cost

DEFAULT_METRICS = ("mae", "rmse", "r2")


def compute_metric(name: str, predictions: np.ndarray, targets: np.ndarray) -> float:
    """Regression metric over row-major ``(n, d_out)`` arrays."""

    key = name.lower()
    if key == "mae":
        return float(np.mean(np.abs(predictions - targets)))
    if key == "rmse":
        return float(np.sqrt(np.mean((predictions - targets) ** 2)))
    if key == "r2":
        mean = np.mean(targets, axis=0, keepdims=True)
        ss_res = float(np.sum((targets - predictions) ** 2))
        ss_tot = float(np.sum((targets - mean) ** 2))
        return 1.0 if ss_tot == 0 else float(1 - ss_res / (ss_tot + 1e-9))
    raise KeyError(f"Unknown metric: {name}")


def compute_metrics(
    names: Iterable[str], predictions: np.ndarray, targets: np.ndarray
) -> Mapping[str, float]:
    return {name.lower(): compute_metric(name, predictions, targets) for name in names}


def evaluate(
    model: Sequential,
    samples: Sequence[Sample],
    cost: Cost,
    metric_names: Iterable[str] = DEFAULT_METRICS,
) -> Dict[str, float]:
    """Average ``cost`` and regression metrics of ``model`` over ``samples``."""

    if not samples:
        raise ValueError("Cannot evaluate on an empty sample set")
    losses = []
    preds = []
    targs = []
    for x, y in samples:
        output = model.predict(x)
        losses.append(cost.loss(output, y))
        preds.append(output.flatten())
        targs.append(y.flatten())
    results: Dict[str, float] = {"loss": float(np.mean(losses))}
    results.update(compute_metrics(metric_names, np.asarray(preds), np.asarray(targs)))
    return results


__all__ = ["DEFAULT_METRICS", "compute_metric", "compute_metrics", "evaluate"]
