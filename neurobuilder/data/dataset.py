"""In-memory dataset container."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Sequence

import numpy as np

from ..core.errors import ConfigurationError, ShapeError
from ..core.matrix import as_matrix
from ..core.types import Array, Batch


@dataclass(frozen=True)
class Dataset:
    """Parallel input feature rows and target rows."""

    inputs: Array
    targets: Array
    name: str = "custom"
    provenance: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.inputs.ndim != 2 or self.targets.ndim != 2:
            raise ShapeError("Dataset inputs and targets must be 2-D matrices")
        if self.inputs.shape[0] != self.targets.shape[0]:
            raise ConfigurationError(
                f"Dataset has {self.inputs.shape[0]} input rows but "
                f"{self.targets.shape[0]} target rows"
            )

    @classmethod
    def from_rows(
        cls,
        inputs: Sequence[Sequence[float]],
        targets: Sequence[Sequence[float]],
        *,
        name: str = "custom",
        provenance: Dict[str, Any] | None = None,
    ) -> "Dataset":
        if len(inputs) == 0:
            empty = np.zeros((0, 0), dtype=np.float64)
            return cls(empty, empty.copy(), name=name, provenance=dict(provenance or {}))
        return cls(
            as_matrix(inputs),
            as_matrix(targets) if len(targets) else np.zeros((0, 0)),
            name=name,
            provenance=dict(provenance or {}),
        )

    @property
    def input_size(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def output_size(self) -> int:
        return int(self.targets.shape[1])

    def __len__(self) -> int:
        return int(self.inputs.shape[0])

    def take(self, indices: Sequence[int]) -> Batch:
        idx = np.asarray(indices, dtype=np.intp)
        return Batch(inputs=self.inputs[idx], targets=self.targets[idx])

    def batches(self, order: Sequence[int], batch_size: int) -> Iterator[Batch]:
        """Yield consecutive batches over ``order``; the last one may be short."""

        if batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {batch_size}")
        for start in range(0, len(order), batch_size):
            yield self.take(order[start : start + batch_size])


__all__ = ["Dataset"]
