"""Single-vector inference and activation snapshots for visualisation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .core.errors import UsageError
from .core.network import Network
from .core.types import Array


@dataclass(frozen=True)
class LayerSnapshot:
    """Activations of one layer for a single input vector.

    ``normalized`` rescales ``raw`` into ``[0, 1]`` by the layer's own min and
    max; a single-neuron layer is clamped into ``[0, 1]`` instead.
    """

    index: int
    raw: List[float]
    normalized: List[float]


def _as_row(network: Network, vector: Sequence[float]) -> Array:
    row = np.asarray(vector, dtype=np.float64).reshape(1, -1)
    if row.shape[1] != network.input_size:
        raise UsageError(
            f"Input vector has {row.shape[1]} values; the network expects {network.input_size}"
        )
    return row


def predict(network: Network, vector: Sequence[float]) -> List[float]:
    """Run ``vector`` through ``network`` and return the output vector."""

    row = _as_row(network, vector)
    return network.predict(row)[0].tolist()


def normalize(values: Array) -> Array:
    if values.size == 0:
        return values.copy()
    if values.size == 1:
        return np.clip(values, 0.0, 1.0)
    low = float(values.min())
    span = float(values.max()) - low
    return (values - low) / (span or 1.0)


def activation_snapshot(network: Network, vector: Sequence[float]) -> List[LayerSnapshot]:
    """Per-layer raw and normalised activations for ``vector``.

    Computed with stateless forward passes, so it can run between training
    steps without invalidating a pending backward.
    """

    row = _as_row(network, vector)
    snapshots = []
    for idx, outputs in enumerate(network.activations(row)):
        values = outputs[0]
        snapshots.append(
            LayerSnapshot(
                index=idx,
                raw=values.tolist(),
                normalized=normalize(values).tolist(),
            )
        )
    return snapshots


__all__ = ["LayerSnapshot", "activation_snapshot", "normalize", "predict"]
