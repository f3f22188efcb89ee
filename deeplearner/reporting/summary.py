"""Deterministic run summaries computed from a JSONL metrics file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

import numpy as np


def compute_auc(points: Sequence[float]) -> float:
    """Trapezoidal area under ``points`` along a unit-step axis."""

    if len(points) < 2:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return float(np.sum((y[1:] + y[:-1]) / 2.0))


def _collect(records: Iterable[Mapping[str, object]]) -> dict[str, List[float]]:
    metrics: dict[str, List[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in {"epoch", "seed"} or isinstance(value, bool):
                continue
            if isinstance(value, (int, float)):
                metrics.setdefault(key, []).append(float(value))
    return metrics


def summarise(records: Sequence[Mapping[str, object]], *, tail: int = 32) -> dict:
    tail_window = min(tail, len(records))
    out: dict[str, Mapping[str, float]] = {}
    for name, values in _collect(records).items():
        arr = np.asarray(values, dtype=np.float64)
        out[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "last": float(arr[-1]),
            "tail_auc": compute_auc(arr[-tail_window:].tolist()) if tail_window else 0.0,
        }
    return {"version": 1, "records": len(records), "tail_window": tail_window, "metrics": out}


def write_summary(
    metrics_jsonl: str | Path, out_summary_json: str | Path, *, tail: int = 32
) -> str:
    """Summarise ``metrics_jsonl`` into ``out_summary_json`` and return its path."""

    metrics_path = Path(metrics_jsonl)
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    records: List[Mapping[str, object]] = []
    if metrics_path.exists():
        for line in metrics_path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                records.append(json.loads(line))

    out_path.write_text(json.dumps(summarise(records, tail=tail), sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["compute_auc", "summarise", "write_summary"]
