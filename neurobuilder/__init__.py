"""NeuroBuilder public API."""

from .core import activations, types  # noqa: F401
from .core.errors import (
    ConfigurationError,
    FormatError,
    NeuroBuilderError,
    ShapeError,
    UsageError,
)
from .core.layers import DenseLayer
from .core.network import LayerSpec, Network, build_network
from .data import Dataset, get_dataset, parse_csv
from .inference import activation_snapshot, predict
from .session import Session
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer, TrainingConfig

__all__ = [
    "ConfigurationError",
    "Dataset",
    "DenseLayer",
    "FormatError",
    "LayerSpec",
    "Network",
    "NeuroBuilderError",
    "Session",
    "ShapeError",
    "Trainer",
    "TrainingConfig",
    "UsageError",
    "activation_snapshot",
    "activations",
    "build_network",
    "get_dataset",
    "load_preset",
    "parse_csv",
    "predict",
    "presets",
    "run_pipeline",
    "types",
]
