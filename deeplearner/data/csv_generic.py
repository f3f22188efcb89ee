"""Generic CSV loader for regression samples."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import numpy as np
import pandas as pd

from ..core.errors import DataFormatError
from ..core.types import Sample
from .registry import DatasetSpec, register_dataset
from .utils import standardize, to_samples


def _target_list(target_cols: str | Sequence[str]) -> List[str]:
    if isinstance(target_cols, str):
        return [c.strip() for c in target_cols.split(",") if c.strip()]
    return [str(c) for c in target_cols]


def _load_csv(path: Path, target_cols: Sequence[str]) -> tuple[np.ndarray, np.ndarray]:
    df = pd.read_csv(path)
    missing = [c for c in target_cols if c not in df.columns]
    if missing:
        raise KeyError(f"Target column(s) {missing!r} not found in CSV")
    y_df = df[list(target_cols)]
    x_df = df.drop(columns=list(target_cols))
    if x_df.shape[1] == 0:
        raise DataFormatError(f"{path} has no input columns besides the targets")
    try:
        X = x_df.to_numpy(dtype=np.float64)
        y = y_df.to_numpy(dtype=np.float64)
    except ValueError as exc:
        raise DataFormatError(f"{path} contains non-numeric values") from exc
    if np.isnan(X).any() or np.isnan(y).any():
        raise DataFormatError(f"{path} contains missing values")
    return X, y


def load_csv_samples(
    csv_path: str | Path,
    target_cols: str | Sequence[str] = "target",
    *,
    standardize_inputs: bool = False,
) -> List[Sample]:
    """Read ``csv_path`` and return one sample per row."""

    X, y = _load_csv(Path(csv_path), _target_list(target_cols))
    if standardize_inputs:
        X, _, _ = standardize(X)
    return to_samples(X, y)


@register_dataset("csv")
def load_csv_dataset(
    *,
    csv_path: str | Path,
    target_col: str | Sequence[str] = "target",
    standardize_inputs: bool = False,
    **_: object,
) -> DatasetSpec:
    """Load a regression dataset from a CSV file."""

    path = Path(csv_path)
    targets = _target_list(target_col)
    X, y = _load_csv(path, targets)
    normalization: dict[str, list[float]] = {}
    if standardize_inputs:
        X, mean, std = standardize(X)
        normalization = {"mean": mean.flatten().tolist(), "std": std.flatten().tolist()}
    provenance = {
        "type": "csv",
        "path": str(path),
        "target_cols": targets,
        "normalization": normalization,
    }
    return DatasetSpec(
        name="csv",
        samples=to_samples(X, y),
        d_in=int(X.shape[1]),
        d_out=int(y.shape[1]),
        provenance=provenance,
    )


__all__ = ["load_csv_dataset", "load_csv_samples"]
