import json
from pathlib import Path

import pytest

from deeplearner.core.errors import ConfigurationError
from deeplearner.reporting.checkpoint import load_model
from deeplearner.training import pipelines


def _config(run_dir: Path, **train_overrides) -> dict:
    train = {
        "epochs": 5,
        "batch_size": 4,
        "seed": 11,
        "cost": "least_squares",
        "optimizer": {"name": "momentum", "learning_rate": 0.05, "beta": 0.9},
        "batch_strategy": "sweep",
        "run_dir": str(run_dir),
        "enable_plots": False,
    }
    train.update(train_overrides)
    return {
        "data": {"name": "synthetic", "options": {"freq": 1, "n_points": 16, "seed": 0}},
        "model": {"hidden": [4], "activations": ["tanh", "linear"]},
        "train": train,
    }


def test_pipeline_produces_artifacts(tmp_path):
    config = _config(tmp_path / "run")
    result = pipelines.run_pipeline(config)
    run_dir = tmp_path / "run"

    assert result.epochs == 5
    assert Path(result.metrics_path).exists()
    for name in ("metrics.csv", "summary.json", "config.json", "metrics_eval.json"):
        assert (run_dir / name).exists()
    assert (run_dir / "checkpoints" / "last.ckpt").exists()

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["seed"] == 11
    assert manifest["config"]["model"]["layer_dims"] == [1, 4, 1]
    assert manifest["dataset"]["type"] == "synthetic"
    assert manifest["training"]["epochs"] == 5
    assert manifest["training"]["reached_cutoff"] is False

    metrics = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [m["epoch"] for m in metrics] == [1, 2, 3, 4, 5]
    assert metrics[-1]["loss"] == pytest.approx(result.final_loss)
    assert {m["optimizer"] for m in metrics} == {"momentum"}

    model = load_model(result.model_path)
    assert model.layer_dims == [1, 4, 1]


def test_pipeline_determinism(tmp_path):
    first = pipelines.run_pipeline(_config(tmp_path / "a"))
    second = pipelines.run_pipeline(_config(tmp_path / "b"))
    assert Path(first.metrics_path).read_bytes() == Path(second.metrics_path).read_bytes()
    assert Path(first.summary_path).read_bytes() == Path(second.summary_path).read_bytes()


def test_pipeline_honours_cutoff(tmp_path):
    result = pipelines.run_pipeline(_config(tmp_path / "run", epochs=50, cutoff=10.0))
    assert result.epochs == 1


def test_pipeline_rejects_bad_configs(tmp_path):
    with pytest.raises(KeyError):
        pipelines.run_pipeline({"data": {"name": "synthetic"}, "model": {}})
    bad_dims = _config(tmp_path / "run")
    bad_dims["model"]["d_in"] = 3
    with pytest.raises(ConfigurationError):
        pipelines.run_pipeline(bad_dims)
    bad_acts = _config(tmp_path / "run")
    bad_acts["model"]["activations"] = ["tanh"]
    with pytest.raises(ConfigurationError):
        pipelines.run_pipeline(bad_acts)
    with pytest.raises(KeyError):
        pipelines.run_pipeline(_config(tmp_path / "run", optimizer="rmsprop"))


def test_presets_are_complete():
    available = pipelines.presets()
    assert {"sine-sgd", "sine-momentum", "sine-adam", "sine-adagrad"} <= set(available)
    for name, config in available.items():
        assert set(pipelines.REQUIRED_SECTIONS) <= set(config), name
    preset = pipelines.load_preset("sine-adagrad")
    assert preset["train"]["optimizer"]["name"] == "adagrad"
    with pytest.raises(KeyError, match="Available presets"):
        pipelines.load_preset("missing")


def test_build_model_defaults():
    model = pipelines.build_model({"hidden": [3, 2]}, d_in=2, d_out=1, seed=0)
    assert model.layer_dims == [2, 3, 2, 1]
    assert [a.name for a in model.activations] == ["sigmoid", "sigmoid", "linear"]
    shared = pipelines.build_model({"depth": 2, "hidden_dim": 5, "activations": "relu"}, 1, 1, 0)
    assert shared.layer_dims == [1, 5, 5, 1]
    assert {a.name for a in shared.activations} == {"relu"}


def test_optimizer_config_forms():
    assert pipelines.build_training_optimizer({}).name == "sgd"
    opt = pipelines.build_training_optimizer({"optimizer": "adam", "lr": 0.02})
    assert opt.name == "adam" and opt.learning_rate == 0.02
