"""Pipeline assembly: build dataset, network and trainer from a config mapping."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core.errors import ConfigurationError
from ..core.network import Sequential
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.checkpoint import save_model
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .losses import REGISTRY as COST_REGISTRY
from .metrics import evaluate
from .optimizers import Optimizer, build_optimizer
from .trainer import Trainer

REQUIRED_SECTIONS = ("data", "model", "train")

_PRESETS: Dict[str, Mapping[str, object]] = {
    "sine-sgd": {
        "data": {
            "name": "synthetic",
            "options": {"freq": 1, "n_points": 64, "seed": 0},
        },
        "model": {"hidden": [8], "activations": ["sigmoid", "linear"]},
        "train": {
            "epochs": 40,
            "batch_size": 8,
            "seed": 0,
            "cost": "least_squares",
            "optimizer": {"name": "sgd", "learning_rate": 0.1},
            "memory_scope": "run",
            "batch_strategy": "sweep",
            "run_dir": "runs/sine-sgd",
            "enable_plots": False,
            "save_model": True,
        },
    },
    "sine-momentum": {
        "data": {
            "name": "synthetic",
            "options": {"freq": 1, "n_points": 64, "seed": 0},
        },
        "model": {"hidden": [16], "activations": ["sigmoid", "linear"]},
        "train": {
            "epochs": 200,
            "batch_size": 8,
            "seed": 0,
            "cost": "least_squares",
            "optimizer": {"name": "momentum", "learning_rate": 0.05, "beta": 0.9},
            "memory_scope": "run",
            "batch_strategy": "single",
            "run_dir": "runs/sine-momentum",
            "enable_plots": False,
            "save_model": True,
        },
    },
    "sine-adam": {
        "data": {
            "name": "synthetic",
            "options": {"freq": 2, "n_points": 128, "seed": 1},
        },
        "model": {"hidden": [16, 8], "activations": ["tanh", "tanh", "linear"]},
        "train": {
            "epochs": 60,
            "batch_size": 16,
            "seed": 1,
            "cost": "least_squares",
            "optimizer": {"name": "adam", "learning_rate": 0.01},
            "memory_scope": "run",
            "batch_strategy": "sweep",
            "cutoff": 0.001,
            "run_dir": "runs/sine-adam",
            "enable_plots": False,
            "save_model": True,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _check_sections(config: Mapping[str, object], source: str) -> None:
    missing = set(REQUIRED_SECTIONS) - set(config)
    if missing:
        raise KeyError(f"{source} is missing required sections: {', '.join(sorted(missing))}")


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                _check_sections(data, f"Preset {file.name}")
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_presets = _file_presets()
    if name in file_presets:
        return file_presets[name]
    if name not in _PRESETS:
        available = ", ".join(sorted(presets()))
        raise KeyError(f"Unknown preset: {name}. Available presets: {available}")
    return deepcopy(_PRESETS[name])


class _MetricsCapture:
    def __init__(self) -> None:
        self.history: list[tuple[int, Mapping[str, float]]] = []
        self.last: Mapping[str, float] = {}

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        payload = {k: float(v) for k, v in metrics.items()}
        self.history.append((int(epoch), payload))
        self.last = payload


def build_model(model_cfg: Mapping[str, object], d_in: int, d_out: int, seed: int) -> Sequential:
    """Create and configure the network described by ``model_cfg``."""

    dims = _build_dims(model_cfg, d_in, d_out)
    model = Sequential(dims, seed=seed)
    activations = model_cfg.get("activations")
    if activations is None:
        activations = ["sigmoid"] * (len(dims) - 2) + ["linear"]
    elif isinstance(activations, (str, Mapping)):
        activations = [activations] * (len(dims) - 1)
    model.set_activations(list(activations))  # type: ignore[arg-type]
    return model


def build_training_optimizer(train_cfg: Mapping[str, object]) -> Optimizer:
    spec = train_cfg.get("optimizer", "sgd")
    if isinstance(spec, Mapping):
        params = dict(spec)
        name = str(params.pop("name", "sgd"))
    else:
        name, params = str(spec), {}
    if "lr" in train_cfg and "learning_rate" not in params and "lr" not in params:
        params["learning_rate"] = train_cfg["lr"]
    return build_optimizer(name, **params)


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train one network end to end and write its artefacts to ``run_dir``."""

    _check_sections(config, "Config")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    if "name" not in data_cfg:
        raise KeyError("The data section needs a dataset `name`")
    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))

    d_in = int(model_cfg.get("d_in", dataset.d_in))
    d_out = int(model_cfg.get("d_out", dataset.d_out))
    if (d_in, d_out) != (dataset.d_in, dataset.d_out):
        raise ConfigurationError(
            f"Configured dimensions ({d_in}, {d_out}) do not match dataset "
            f"dimensions ({dataset.d_in}, {dataset.d_out})"
        )

    seed = int(train_cfg.get("seed", 0))
    epochs = int(train_cfg.get("epochs", 1))
    batch_size = int(train_cfg.get("batch_size", 1))
    cutoff = float(train_cfg["cutoff"]) if train_cfg.get("cutoff") is not None else None
    cost_name = str(train_cfg.get("cost", "least_squares"))
    cost = COST_REGISTRY.get(cost_name)

    model = build_model(model_cfg, d_in, d_out, seed)
    optimizer = build_training_optimizer(train_cfg)

    run_dir = _resolve_run_dir(train_cfg, dataset.name, optimizer.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        samples=len(dataset.samples),
        dims=model.layer_dims,
        activations=[a.name for a in model.activations],
        cost=cost.name,
        optimizer=optimizer.name,
        param_count=model.parameter_count(),
    )

    jsonl = JsonlSink(
        run_dir / "metrics_train.jsonl", split="train", seed=seed, optimizer=optimizer.name
    )
    csv_sink = CsvSink(run_dir / "metrics.csv", split="train")
    capture = _MetricsCapture()
    plots = PlotAdapter(
        run_dir,
        enable_plots=bool(train_cfg.get("enable_plots", False)),
        cutoff=cutoff,
        label=f"{dataset.name}, {optimizer.name}",
    )

    trainer = Trainer(model, optimizer, cost, callbacks=[jsonl, csv_sink, capture, plots], seed=seed)
    trainer.load_samples(dataset.samples)
    history = trainer.run(
        epochs,
        batch_size,
        cutoff=cutoff,
        memory_scope=str(train_cfg.get("memory_scope", "run")),
        batch_strategy=str(train_cfg.get("batch_strategy", "single")),
        checkpoint_dir=run_dir / "checkpoints",
    )
    plots.close()

    evaluation = evaluate(model, dataset.samples, cost)
    (run_dir / "metrics_eval.json").write_text(json.dumps(evaluation, indent=2))

    resolved = _safe_config(config, model.layer_dims)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=resolved,
        dataset_provenance=dataset.provenance,
        model={
            "layer_dims": list(model.layer_dims),
            "activations": [a.name for a in model.activations],
            "parameters": model.parameter_count(),
        },
        history=history,
    )
    summary_path = write_summary(
        jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32))
    )
    (run_dir / "config.json").write_text(json.dumps(resolved, indent=2))

    model_path = ""
    if bool(train_cfg.get("save_model", True)):
        model_path = str(save_model(model, run_dir / "model"))

    return RunResult(
        epochs=history.epochs,
        final_loss=history.final_loss,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        model_path=model_path,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str, optimizer: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset / optimizer


def _build_dims(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> List[int]:
    if "hidden" in model_cfg:
        hidden = [int(h) for h in model_cfg["hidden"]]  # type: ignore[union-attr]
    else:
        depth = int(model_cfg.get("depth", 1))
        hidden = [int(model_cfg.get("hidden_dim", 8))] * depth
    return [d_in, *hidden, d_out]


def _safe_config(config: Mapping[str, object], dims: Sequence[int]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["layer_dims"] = list(dims)
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    samples: int,
    dims: Sequence[int],
    activations: Sequence[str],
    cost: str,
    optimizer: str,
    param_count: int,
) -> None:
    print("=== DeepLearner run ===")
    print(f"Dataset       : {dataset_name} ({samples} samples)")
    print(f"Dimensions    : {list(dims)}")
    print(f"Activations   : {', '.join(activations)}")
    print(f"Cost          : {cost}")
    print(f"Optimizer     : {optimizer}")
    print(f"Parameters    : {param_count}")
    print("=======================")


__all__ = [
    "REQUIRED_SECTIONS",
    "build_model",
    "build_training_optimizer",
    "load_preset",
    "presets",
    "run_pipeline",
]
