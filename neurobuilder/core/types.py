"""Core typing contracts for NeuroBuilder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List

import numpy as np

Array = np.ndarray

RandomSource = Callable[[], float]


@dataclass(frozen=True)
class Batch:
    """A single mini-batch of data."""

    inputs: Array
    targets: Array


@dataclass
class LayerCache:
    """State produced by :meth:`DenseLayer.forward` and consumed by ``backward``.

    A cache is valid for exactly one backward call on the layer that created
    it, and only while no newer training forward has run on that layer.
    """

    layer_id: int
    generation: int
    inputs: Array
    outputs: Array
    consumed: bool = False


@dataclass
class NetworkCache:
    """Per-layer caches captured during a network forward pass."""

    layers: List[LayerCache]


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_dims: List[int]
    activations: List[str]


@dataclass(frozen=True)
class EpochReport:
    """Full-dataset evaluation emitted after an epoch."""

    epoch: int
    loss: float
    metrics: Dict[str, float] = field(default_factory=dict)

    def as_record(self) -> Dict[str, float]:
        record = {"loss": self.loss}
        record.update(self.metrics)
        return record


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`neurobuilder.training.pipelines.run_pipeline`."""

    epochs: int
    final_loss: float
    cancelled: bool
    metrics_path: str
    manifest_path: str
    weights_path: str
    summary_path: str = ""
    plot_path: str = ""
