"""Loss registry used by the training driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.errors import ConfigurationError, ShapeError
from ..core.types import Array

LossFn = Callable[[Array, Array], tuple[float, Array]]


@dataclass(frozen=True)
class Loss:
    """Loss wrapper returning both the scalar loss and dL/dy."""

    name: str
    fn: LossFn

    def __call__(self, predictions: Array, targets: Array) -> tuple[float, Array]:
        if predictions.shape != targets.shape:
            raise ShapeError(
                f"Predictions {predictions.shape} and targets {targets.shape} differ in shape"
            )
        return self.fn(predictions, targets)


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, fn: LossFn) -> None:
        self._registry[name] = Loss(name, fn)

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, name: str) -> Loss:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise ConfigurationError(f"Unknown loss {name!r}. Available losses: {available}")
        return self._registry[name]


REGISTRY = LossRegistry()


def mse(pred: Array, target: Array) -> tuple[float, Array]:
    """Mean over rows of the per-row squared error sum.

    The gradient is normalised by the output width only; averaging over the
    batch happens in the layer update.
    """

    diff = pred - target
    loss = float(np.mean(np.sum(np.square(diff), axis=1)))
    grad = 2.0 * diff / pred.shape[1]
    return loss, grad


REGISTRY.register("mse", mse)

__all__ = ["Loss", "LossRegistry", "REGISTRY", "mse"]
