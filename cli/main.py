"""Command line entry point for DeepLearner training runs."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from deeplearner.data.text import parse_vector
from deeplearner.reporting.checkpoint import load_model
from deeplearner.training import pipelines
from deeplearner.training.optimizers import available_optimizers


def _format_result(result, prediction: list[float] | None = None) -> str:
    payload = {
        "epochs": result.epochs,
        "final_loss": result.final_loss,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if result.summary_path:
        payload["summary"] = result.summary_path
    if result.model_path:
        payload["model"] = result.model_path
    if prediction is not None:
        payload["prediction"] = prediction
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="sine-sgd",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--data-file", type=Path, help="Train on a text sample file (inputs,targets per line)"
    )
    parser.add_argument("--csv-path", help="Train on a CSV file")
    parser.add_argument(
        "--target-col",
        action="append",
        help="Target column of the CSV file (repeatable, defaults to 'target')",
    )
    parser.add_argument("--epochs", type=int, help="Override the number of epochs")
    parser.add_argument("--batch-size", type=int, help="Override the mini-batch size")
    parser.add_argument("--seed", type=int, help="Seed used for initialisation and shuffling")
    parser.add_argument(
        "--optimizer", choices=available_optimizers(), help="Override the optimizer"
    )
    parser.add_argument("--run-dir", help="Directory receiving the run artefacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a loss curve to loss.png"
    )
    parser.add_argument(
        "--predict",
        metavar="VALUES",
        help='Space separated input vector to predict after training, e.g. "0.5"',
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "--log-level", default="INFO", help="Logging level for training progress"
    )
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in {".yml", ".yaml"}:
        import yaml

        return yaml.safe_load(text) or {}
    return json.loads(text)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def resolve_config(args: argparse.Namespace) -> dict:
    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = _load_override(args.config)
        if set(pipelines.REQUIRED_SECTIONS) <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, override)

    if args.data_file:
        config["data"] = {"name": "text", "options": {"path": str(args.data_file)}}
    elif args.csv_path:
        opts: dict = {"csv_path": args.csv_path}
        if args.target_col:
            opts["target_col"] = args.target_col
        config["data"] = {"name": "csv", "options": opts}

    train_cfg = config.setdefault("train", {})
    if args.epochs is not None:
        train_cfg["epochs"] = int(args.epochs)
    if args.batch_size is not None:
        train_cfg["batch_size"] = int(args.batch_size)
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.optimizer:
        current = train_cfg.get("optimizer", {})
        lr = current.get("learning_rate") if isinstance(current, dict) else None
        train_cfg["optimizer"] = {"name": args.optimizer}
        if lr is not None:
            train_cfg["optimizer"]["learning_rate"] = lr
    if args.run_dir:
        train_cfg["run_dir"] = args.run_dir
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    if args.predict:
        train_cfg["save_model"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)

    prediction = None
    if args.predict:
        model = load_model(result.model_path)
        prediction = model.predict(parse_vector(args.predict)).flatten()
    print(_format_result(result, prediction))


if __name__ == "__main__":
    main()
