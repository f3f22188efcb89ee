"""Per-epoch loss sinks attached to :class:`~deeplearner.training.trainer.Trainer`.

Epoch losses come out of IEEE arithmetic and a diverging run can report
``inf`` or ``nan``. Both sinks write such values as empty cells (CSV) or
``null`` (JSONL) so the files stay readable by strict parsers.
"""

from __future__ import annotations

import csv
import json
import math
import subprocess
from pathlib import Path
from typing import List, Mapping


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - git may be absent
        return "unknown"


def epoch_values(metrics: Mapping[str, object]) -> dict[str, float | None]:
    """Numeric entries of ``metrics``; non-finite values map to ``None``."""

    values: dict[str, float | None] = {}
    for key, value in metrics.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        value = float(value)
        values[key] = value if math.isfinite(value) else None
    return values


class JsonlSink:
    """One JSON object per epoch, tagged with split, seed, optimizer and git sha.

    The file is truncated on construction so a rerun into the same run
    directory does not mix epochs of two runs.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
        optimizer: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.seed = seed
        self.optimizer = optimizer
        self.sha = sha or _git_sha()

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record: dict[str, object] = {"epoch": int(epoch), "split": self.split, "seed": self.seed}
        if self.optimizer is not None:
            record["optimizer"] = self.optimizer
        record["sha"] = self.sha
        record.update(epoch_values(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, allow_nan=False) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Epoch table with columns ``epoch, split`` followed by the metric names.

    The metric columns are fixed by the first epoch; later epochs leave
    missing metrics empty and drop unknown ones.
    """

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self._fields: List[str] | None = None

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        values = epoch_values(metrics)
        write_header = self._fields is None
        if self._fields is None:
            self._fields = ["epoch", "split", *values]
        row: dict[str, object] = {"epoch": int(epoch), "split": self.split}
        row.update({k: "" if v is None else v for k, v in values.items()})
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(
                handle, fieldnames=self._fields, restval="", extrasaction="ignore"
            )
            if write_header:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_epoch


__all__ = ["CsvSink", "JsonlSink", "epoch_values"]
