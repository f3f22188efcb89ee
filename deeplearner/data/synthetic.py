"""Pure in-memory synthetic datasets."""

from __future__ import annotations

import numpy as np

from ..core.tensor import Tensor
from .registry import DatasetSpec, register_dataset


def _make_dataset(
    freq: float, n_points: int, seed: int, noise: float
) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, n_points, dtype=np.float64).reshape(-1, 1)
    y_true = np.sin(freq * np.pi * x)
    y = y_true + noise * rng.standard_normal(size=y_true.shape)
    return x, y


@register_dataset("synthetic")
def make_synthetic(
    freq: float = 1.0,
    n_points: int = 64,
    seed: int = 0,
    noise: float = 0.05,
    **_: object,
) -> DatasetSpec:
    """Noisy samples of ``sin(freq * pi * x)`` on ``[-1, 1]``."""

    x, y = _make_dataset(freq=freq, n_points=int(n_points), seed=seed, noise=noise)
    samples = [(Tensor.from_numpy(xi), Tensor.from_numpy(yi)) for xi, yi in zip(x, y)]
    provenance = {
        "type": "synthetic",
        "freq": freq,
        "n_points": int(n_points),
        "seed": seed,
        "noise": noise,
    }
    return DatasetSpec(
        name="synthetic",
        samples=samples,
        d_in=1,
        d_out=1,
        provenance=provenance,
    )


__all__ = ["make_synthetic"]
