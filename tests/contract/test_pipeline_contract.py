import csv
import json
from pathlib import Path

import pytest

from neurobuilder.core.errors import ConfigurationError
from neurobuilder.training import pipelines


def _config(run_dir, epochs=5):
    config = pipelines.load_preset("xor-quickstart")
    config["train"].update({"epochs": epochs, "run_dir": str(run_dir)})
    return config


def test_pipeline_writes_run_artifacts(tmp_path):
    result = pipelines.run_pipeline(_config(tmp_path / "run"))
    run_dir = tmp_path / "run"

    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [record["epoch"] for record in records] == [1, 2, 3, 4, 5]
    assert {"loss", "accuracy", "split", "seed"} <= set(records[0])

    with (run_dir / "metrics.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 5

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["model"]["layer_dims"] == [2, 4, 1]
    assert manifest["dataset"]["type"] == "xor"
    assert manifest["training"]["epochs_completed"] == 5
    assert manifest["training"]["cancelled"] is False

    summary = json.loads(Path(result.summary_path).read_text())
    assert summary["records"] == 5
    assert summary["metrics"]["loss"]["last"] == pytest.approx(result.final_loss)

    weights = json.loads(Path(result.weights_path).read_text())
    assert len(weights["layers"]) == 2
    assert (run_dir / "config.json").exists()
    assert result.epochs == 5 and result.cancelled is False


def test_pipeline_is_deterministic(tmp_path):
    first = pipelines.run_pipeline(_config(tmp_path / "a"))
    second = pipelines.run_pipeline(_config(tmp_path / "b"))
    assert Path(first.summary_path).read_text() == Path(second.summary_path).read_text()
    assert Path(first.weights_path).read_text() == Path(second.weights_path).read_text()


def test_pipeline_saves_plot_when_enabled(tmp_path):
    config = _config(tmp_path / "plots", epochs=3)
    config["train"]["enable_plots"] = True
    result = pipelines.run_pipeline(config)
    assert (tmp_path / "plots" / "loss.png").exists()
    assert result.plot_path == str(tmp_path / "plots" / "loss.png")


def test_pipeline_requires_all_sections(tmp_path):
    config = _config(tmp_path / "run")
    del config["model"]
    with pytest.raises(ConfigurationError):
        pipelines.run_pipeline(config)


def test_presets_and_config_merging(tmp_path):
    assert {"xor-quickstart", "linsep-basic"} <= set(pipelines.presets())
    with pytest.raises(ConfigurationError):
        pipelines.load_preset("does-not-exist")

    override = tmp_path / "override.yaml"
    override.write_text("train:\n  epochs: 3\n  lr: 0.2\n")
    merged = pipelines.merge_config(
        pipelines.load_preset("linsep-basic"), pipelines.read_config_file(override)
    )
    assert merged["train"]["epochs"] == 3
    assert merged["train"]["lr"] == 0.2
    assert merged["train"]["batch_size"] == 16
    assert merged["data"]["name"] == "linsep"

    with pytest.raises(ConfigurationError):
        pipelines.read_config_file(tmp_path / "override.toml")
