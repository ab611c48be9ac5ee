"""Command line entry point for NeuroBuilder training runs."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable

from neurobuilder.core.errors import NeuroBuilderError
from neurobuilder.inference import predict
from neurobuilder.persistence import load_file
from neurobuilder.training import pipelines


def _format_result(result, prediction=None) -> str:
    payload = {
        "epochs": result.epochs,
        "final_loss": result.final_loss,
        "cancelled": result.cancelled,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "weights": result.weights_path,
    }
    if result.summary_path:
        payload["summary"] = result.summary_path
    if result.plot_path:
        payload["plot"] = result.plot_path
    if prediction is not None:
        payload["prediction"] = prediction
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="xor-quickstart",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--csv-path", help="Train on this CSV file instead of the preset data")
    parser.add_argument("--epochs", type=int, help="Number of training epochs")
    parser.add_argument("--lr", type=float, help="Learning rate")
    parser.add_argument("--batch-size", type=int, help="Mini-batch size")
    parser.add_argument("--seed", type=int, help="Seed for weight init and shuffling")
    parser.add_argument("--run-dir", help="Directory for run artifacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Save a loss curve plot in the run directory"
    )
    parser.add_argument(
        "--predict",
        help="Comma-separated input vector to run through the trained network",
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument("--dump-config", type=Path, help="Dump the resolved config to a JSON file")
    return parser.parse_args(argv)


def _apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    if args.config:
        override = pipelines.read_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    train_cfg = config.setdefault("train", {})
    if args.csv_path:
        config["data"] = {"name": "csv", "options": {"csv_path": args.csv_path}}
        # the CSV decides the input width
        model_cfg = config.setdefault("model", {})
        model_cfg["layers"] = [
            layer for layer in model_cfg.get("layers", []) if layer.get("role") != "input"
        ]
    if args.epochs is not None:
        train_cfg["epochs"] = int(args.epochs)
    if args.lr is not None:
        train_cfg["lr"] = float(args.lr)
    if args.batch_size is not None:
        train_cfg["batch_size"] = int(args.batch_size)
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.run_dir:
        train_cfg["run_dir"] = args.run_dir
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    try:
        config = _apply_overrides(pipelines.load_preset(args.preset), args)
        if args.dump_config:
            args.dump_config.parent.mkdir(parents=True, exist_ok=True)
            args.dump_config.write_text(json.dumps(config, indent=2))

        result = pipelines.run_pipeline(config)
        prediction = None
        if args.predict:
            vector = [float(value) for value in args.predict.split(",")]
            network = load_file(result.weights_path).network
            prediction = predict(network, vector)
    except (NeuroBuilderError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    print(_format_result(result, prediction))


if __name__ == "__main__":
    main()
