"""Run manifest: everything needed to rerun a training pipeline."""

from __future__ import annotations

import json
import os
import platform
import time
from pathlib import Path
from typing import Mapping

import numpy as np

from ..core.types import TrainingHistory
from .metrics import _git_sha, epoch_values


def _training_outcome(history: TrainingHistory) -> dict[str, object]:
    outcome: dict[str, object] = {
        "epochs": history.epochs,
        "reached_cutoff": history.reached_cutoff,
    }
    outcome.update(epoch_values({"final_loss": history.final_loss}))
    return outcome


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    model: Mapping[str, object] | None = None,
    history: TrainingHistory | None = None,
) -> str:
    """Write ``manifest.json`` for a run and return its path.

    ``config`` is the resolved pipeline config, ``model`` describes the network
    layout and ``history`` adds how training ended (epoch count, final loss,
    whether the cutoff stopped it). ``DEEPLEARNER_RUN_TAG`` is copied into the
    environment block to label batches of runs.
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest: dict[str, object] = {
        "git_sha": _git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": dict(config),
        "dataset": dict(dataset_provenance),
        "model": dict(model or {}),
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
            "run_tag": os.environ.get("DEEPLEARNER_RUN_TAG", ""),
        },
    }
    if history is not None:
        manifest["training"] = _training_outcome(history)
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


__all__ = ["write_manifest"]
