"""Metric helpers for the training driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import numpy as np

from ..core.errors import ConfigurationError, ShapeError
from ..core.types import Array

THRESHOLD = 0.5

METRICS = ("accuracy", "mae", "rmse")


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def default_metrics(output_width: int) -> List[str]:
    if output_width == 1:
        return ["accuracy"]
    return []


def validate_metric_names(names: Iterable[str], output_width: int) -> None:
    for name in names:
        key = name.lower()
        if key not in METRICS:
            raise ConfigurationError(
                f"Unknown metric {name!r}. Available metrics: {', '.join(METRICS)}"
            )
        if key == "accuracy" and output_width != 1:
            raise ConfigurationError("accuracy is only defined for single-output networks")


def binary_accuracy(predictions: Array, targets: Array, threshold: float = THRESHOLD) -> float:
    """Fraction of rows whose thresholded single output equals the 0/1 target."""

    if predictions.ndim != 2 or predictions.shape[1] != 1:
        raise ShapeError(f"Binary accuracy needs a single output column, got {predictions.shape}")
    if predictions.shape != targets.shape:
        raise ShapeError(
            f"Predictions {predictions.shape} and targets {targets.shape} differ in shape"
        )
    if predictions.shape[0] == 0:
        return 0.0
    pred_idx = (predictions >= threshold).astype(int)
    targ_idx = targets.astype(int)
    return float(np.mean(pred_idx == targ_idx))


def compute_metric(name: str, predictions: Array, targets: Array) -> MetricResult:
    key = name.lower()
    if key == "accuracy":
        value = binary_accuracy(predictions, targets)
    elif key == "mae":
        value = float(np.mean(np.abs(predictions - targets)))
    elif key == "rmse":
        value = float(np.sqrt(np.mean((predictions - targets) ** 2)))
    else:
        raise ConfigurationError(f"Unknown metric: {name}")
    return MetricResult(name=key, value=value)


def compute_metrics(
    names: Iterable[str], predictions: Array, targets: Array
) -> Mapping[str, float]:
    results: Dict[str, float] = {}
    for name in names:
        metric = compute_metric(name, predictions, targets)
        results[metric.name] = metric.value
    return results


__all__ = [
    "METRICS",
    "MetricResult",
    "THRESHOLD",
    "validate_metric_names",
    "binary_accuracy",
    "default_metrics",
    "compute_metric",
    "compute_metrics",
]
