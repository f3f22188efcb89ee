"""Persist and restore network parameters.

``save_state`` writes a compressed ``.npz`` archive of a state dict.
``save_model`` additionally stores the architecture (``model.json``) and a
human readable dump of every weight matrix and bias vector, one matrix per
block separated by a blank line.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping

import numpy as np

from ..core.activations import activation_spec
from ..core.errors import ConfigurationError
from ..core.network import Sequential
from ..core.tensor import Tensor

MODEL_ARCHIVE = "model.npz"
MODEL_CONFIG = "model.json"
WEIGHTS_TEXT = "weights.txt"
BIASES_TEXT = "biases.txt"


def save_state(path: str | Path, state: Mapping[str, Tensor]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {name: value.to_numpy() for name, value in state.items()}
    with path.open("wb") as handle:
        np.savez_compressed(handle, **payload)
    return path


def load_state(path: str | Path) -> Dict[str, Tensor]:
    with np.load(Path(path)) as archive:
        return {name: Tensor.from_numpy(archive[name]) for name in archive.files}


def _write_blocks(path: Path, tensors) -> None:
    path.write_text("\n\n".join(t.format_rows() for t in tensors) + "\n", encoding="utf-8")


def save_model(model: Sequential, directory: str | Path) -> Path:
    """Write ``model`` into ``directory`` and return the directory."""

    if not model.is_configured:
        raise ConfigurationError("Only networks with activations can be saved")
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    save_state(directory / MODEL_ARCHIVE, model.state_dict())
    config = {
        "layer_dims": list(model.layer_dims),
        "activations": [activation_spec(a) for a in model.activations],
        "state": model.state,
    }
    (directory / MODEL_CONFIG).write_text(json.dumps(config, indent=2), encoding="utf-8")
    _write_blocks(directory / WEIGHTS_TEXT, model.weights)
    _write_blocks(directory / BIASES_TEXT, model.biases)
    return directory


def load_model(directory: str | Path) -> Sequential:
    """Rebuild a network saved by :func:`save_model`."""

    directory = Path(directory)
    config = json.loads((directory / MODEL_CONFIG).read_text(encoding="utf-8"))
    model = Sequential(config["layer_dims"])
    model.set_activations(config["activations"])
    model.load_state_dict(load_state(directory / MODEL_ARCHIVE))
    if config.get("state") == "ready":
        model.mark_ready()
    return model


__all__ = ["load_model", "load_state", "save_model", "save_state"]
