"""Utility helpers for dataset loaders."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.tensor import Tensor
from ..core.types import Sample


def to_samples(features: np.ndarray, targets: np.ndarray) -> List[Sample]:
    """Convert row-major ``(n, d)`` arrays into ``(column, column)`` pairs."""

    features = np.asarray(features, dtype=np.float64)
    targets = np.asarray(targets, dtype=np.float64)
    if features.ndim == 1:
        features = features.reshape(-1, 1)
    if targets.ndim == 1:
        targets = targets.reshape(-1, 1)
    if features.shape[0] != targets.shape[0]:
        raise ValueError(
            f"Feature rows ({features.shape[0]}) and target rows ({targets.shape[0]}) differ"
        )
    return [
        (Tensor.from_numpy(x), Tensor.from_numpy(y)) for x, y in zip(features, targets)
    ]


def standardize(
    array: np.ndarray,
    *,
    mean: np.ndarray | None = None,
    std: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Apply standard scaling returning the scaled array and parameters."""

    if mean is None or std is None:
        mean = array.mean(axis=0, keepdims=True)
        std = array.std(axis=0, keepdims=True)
        std = np.where(std == 0, 1.0, std)
    scaled = (array - mean) / std
    return scaled, mean, std


__all__ = ["standardize", "to_samples"]
