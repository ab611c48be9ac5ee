"""Pipeline assembly: config dict in, trained network and run artifacts out."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core.errors import ConfigurationError
from ..core.network import LayerSpec, Network, build_network, parse_specs
from ..core.types import RunResult
from ..data import Dataset, get_dataset
from ..persistence import save_weights
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .trainer import Trainer, TrainingConfig, TrainingStatus

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-quickstart": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "layers": [
                {"role": "input", "width": 2},
                {"role": "hidden", "width": 4, "activation": "tanh", "useBias": True},
                {"role": "output", "width": 1, "activation": "sigmoid", "useBias": True},
            ],
        },
        "train": {
            "epochs": 500,
            "batch_size": 4,
            "seed": 42,
            "lr": 0.5,
            "run_dir": "runs/xor-quickstart",
            "enable_plots": False,
        },
    },
    "linsep-basic": {
        "data": {"name": "linsep", "options": {"n_points": 200, "seed": 7}},
        "model": {
            "layers": [
                {"role": "input", "width": 2},
                {"role": "hidden", "width": 4, "activation": "relu", "useBias": True},
                {"role": "output", "width": 1, "activation": "sigmoid", "useBias": True},
            ],
        },
        "train": {
            "epochs": 100,
            "batch_size": 16,
            "seed": 42,
            "lr": 0.5,
            "run_dir": "runs/linsep-basic",
            "enable_plots": False,
        },
    },
}


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    try:
        return deepcopy(_PRESETS[name])  # type: ignore[return-value]
    except KeyError:
        available = ", ".join(sorted(_PRESETS))
        raise ConfigurationError(f"Unknown preset {name!r}. Available presets: {available}") from None


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Read a JSON or YAML config file into a mapping."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in {".json", ".yaml", ".yml"}:
        raise ConfigurationError(f"Unsupported config file type: {path.suffix}")
    text = path.read_text()
    if suffix == ".json":
        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Config {path.name} is not valid JSON: {exc}") from exc
    else:
        import yaml

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config {path.name} is not valid YAML: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Config {path.name} must decode to a mapping")
    return data


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into ``base``; lists are replaced."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = deepcopy(value)
    return base


def build_model(
    model_cfg: Mapping[str, object], dataset: Dataset, seed: int
) -> tuple[List[LayerSpec], Network]:
    records = model_cfg.get("layers")
    if not isinstance(records, list) or not records:
        raise ConfigurationError("model.layers must be a non-empty list of layer descriptions")
    specs = parse_specs(records)
    network = build_network(specs, input_size=dataset.input_size, seed=seed)
    network.validate()
    return specs, network


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train the network described by ``config`` and write run artifacts."""

    for section in ("data", "model", "train"):
        if not isinstance(config.get(section), Mapping):
            raise ConfigurationError(f"Config is missing the {section!r} section")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    dataset = get_dataset(str(data_cfg.get("name")), **dict(data_cfg.get("options") or {}))
    training = TrainingConfig.from_mapping(train_cfg)
    specs, network = build_model(model_cfg, dataset, training.seed)

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        rows=len(dataset),
        dims=network.describe().layer_dims,
        activations=network.describe().activations,
        training=training,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=training.seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="train")
    capture = MetricsCapture()
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    trainer = Trainer(network, callbacks=[jsonl, csv_sink, capture, plots])
    loss_curve = trainer.run(dataset, training)
    cancelled = trainer.state.status is TrainingStatus.CANCELLED
    plot = plots.close(cancelled=cancelled)

    resolved = _safe_config(config, specs)
    (run_dir / "config.json").write_text(json.dumps(resolved, indent=2))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=resolved,
        dataset_provenance=dataset.provenance,
        model=network.describe(),
        loss_curve=loss_curve,
        cancelled=cancelled,
    )
    summary = write_summary(
        jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32))
    )
    weights = save_weights(network, run_dir / "weights.json")

    return RunResult(
        epochs=len(loss_curve),
        final_loss=loss_curve[-1] if loss_curve else float("nan"),
        cancelled=cancelled,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        weights_path=weights,
        summary_path=summary,
        plot_path=plot or "",
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if train_cfg.get("run_dir"):
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object], specs: Sequence[LayerSpec]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["layers"] = [spec.to_build_spec() for spec in specs]
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    rows: int,
    dims: Sequence[int],
    activations: Sequence[str],
    training: TrainingConfig,
    param_count: int,
) -> None:
    print("=== NeuroBuilder run ===")
    print(f"Dataset       : {dataset_name} ({rows} rows)")
    print(f"Dimensions    : {list(dims)}")
    print(f"Activations   : {list(activations)}")
    print(f"Learning rate : {training.learning_rate}")
    print(f"Epochs        : {training.epochs} (batch size {training.batch_size})")
    print(f"Parameters    : {param_count}")
    print("========================")


__all__ = ["build_model", "load_preset", "merge_config", "presets", "read_config_file", "run_pipeline"]
