"""Activation functions for NeuroBuilder.

Each activation pairs a forward function with its derivative written in terms
of the forward *output*, so backpropagation never recomputes the activation.
For ReLU the derivative at exactly zero is taken to be 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

import numpy as np

from .errors import ConfigurationError
from .matrix import elementwise
from .types import Array


class Activation(str, Enum):
    RELU = "relu"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    LINEAR = "linear"


@dataclass(frozen=True)
class ActivationFunctions:
    """Forward function and output-based derivative for one activation."""

    kind: Activation
    forward: Callable[[Array], Array]
    backward: Callable[[Array], Array]

    @property
    def name(self) -> str:
        return self.kind.value


@elementwise
def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


@elementwise
def relu_deriv(y: Array) -> Array:
    return (np.asarray(y) > 0).astype(np.float64)


@elementwise
def sigmoid(x: Array) -> Array:
    return 1.0 / (1.0 + np.exp(-x))


@elementwise
def sigmoid_deriv(y: Array) -> Array:
    return y * (1.0 - y)


@elementwise
def tanh(x: Array) -> Array:
    return np.tanh(x)


@elementwise
def tanh_deriv(y: Array) -> Array:
    return 1.0 - y**2


@elementwise
def linear(x: Array) -> Array:
    return np.array(x, dtype=np.float64, copy=True)


@elementwise
def linear_deriv(y: Array) -> Array:
    return np.ones_like(y, dtype=np.float64)


_TABLE: Dict[Activation, ActivationFunctions] = {
    Activation.RELU: ActivationFunctions(Activation.RELU, relu, relu_deriv),
    Activation.SIGMOID: ActivationFunctions(Activation.SIGMOID, sigmoid, sigmoid_deriv),
    Activation.TANH: ActivationFunctions(Activation.TANH, tanh, tanh_deriv),
    Activation.LINEAR: ActivationFunctions(Activation.LINEAR, linear, linear_deriv),
}


def resolve(name: str | Activation) -> ActivationFunctions:
    """Return the functions bound to ``name``."""

    try:
        kind = Activation(name)
    except ValueError:
        available = ", ".join(names())
        raise ConfigurationError(
            f"Unknown activation {name!r}. Available activations: {available}"
        ) from None
    return _TABLE[kind]


def names() -> List[str]:
    return [kind.value for kind in Activation]


__all__ = ["Activation", "ActivationFunctions", "resolve", "names"]
