"""Fully-connected layer with hand-derived backpropagation."""

from __future__ import annotations

import itertools
from typing import Optional

import numpy as np

from . import matrix
from .activations import ActivationFunctions, resolve
from .errors import ConfigurationError, ShapeError, UsageError
from .initializers import gaussian, xorshift
from .types import Array, LayerCache, RandomSource

_LAYER_IDS = itertools.count(1)


class DenseLayer:
    """Affine transform ``x @ W + b`` followed by an elementwise activation.

    ``forward`` returns the outputs together with a :class:`LayerCache`; the
    matching ``backward`` call consumes that cache, updates ``W`` and ``b`` in
    place and returns the gradient with respect to the layer input. Only the
    most recent training forward may be followed by a backward.
    """

    def __init__(
        self,
        input_size: int,
        output_size: int,
        activation: str = "relu",
        use_bias: bool = True,
        rand: Optional[RandomSource] = None,
    ) -> None:
        if int(input_size) <= 0 or int(output_size) <= 0:
            raise ConfigurationError(
                f"Layer widths must be positive, got {input_size}x{output_size}"
            )
        self.input_size = int(input_size)
        self.output_size = int(output_size)
        self.act: ActivationFunctions = resolve(activation)
        self.use_bias = bool(use_bias)
        rand = rand or xorshift(42)
        self.W: Array = gaussian(self.input_size, self.output_size, rand)
        self.b: Optional[Array] = matrix.zeros(1, self.output_size) if self.use_bias else None
        self._id = next(_LAYER_IDS)
        self._generation = 0

    @property
    def activation(self) -> str:
        return self.act.name

    def _affine(self, inputs: Array) -> Array:
        if inputs.ndim != 2 or inputs.shape[1] != self.input_size:
            raise ShapeError(
                f"Layer expects {self.input_size} input columns, got shape {inputs.shape}"
            )
        bias = self.b if self.use_bias else matrix.zeros(1, self.output_size)
        return matrix.add_broadcast_row(matrix.multiply(inputs, self.W), bias)

    def predict(self, inputs: Array) -> Array:
        """Inference-only forward pass; leaves any in-flight cache valid."""

        inputs = matrix.as_matrix(inputs)
        return matrix.map_activation(self._affine(inputs), self.act.forward)

    def forward(self, inputs: Array) -> tuple[Array, LayerCache]:
        inputs = matrix.as_matrix(inputs)
        outputs = self.predict(inputs)
        self._generation += 1
        cache = LayerCache(
            layer_id=self._id,
            generation=self._generation,
            inputs=inputs,
            outputs=outputs,
        )
        return outputs, cache

    def backward(self, cache: LayerCache, grad_output: Array, lr: float) -> Array:
        self._check_cache(cache)
        grad_output = matrix.as_matrix(grad_output)
        if grad_output.shape != cache.outputs.shape:
            raise UsageError(
                f"Gradient shape {grad_output.shape} does not match cached output "
                f"shape {cache.outputs.shape}"
            )
        cache.consumed = True

        batch = cache.inputs.shape[0]
        grad_pre = matrix.hadamard(
            grad_output, matrix.map_activation(cache.outputs, self.act.backward)
        )
        grad_w = matrix.multiply(matrix.transpose(cache.inputs), grad_pre)
        grad_in = matrix.multiply(grad_pre, matrix.transpose(self.W))

        step = lr / batch
        self.W -= step * grad_w
        if self.use_bias:
            self.b -= step * matrix.column_sums(grad_pre)
        return grad_in

    def _check_cache(self, cache: LayerCache) -> None:
        if cache.layer_id != self._id:
            raise UsageError("Forward state belongs to a different layer")
        if cache.consumed:
            raise UsageError("Forward state was already consumed by a backward pass")
        if cache.generation != self._generation:
            raise UsageError("Forward state is stale: a newer forward pass ran on this layer")

    def set_parameters(self, W: Array, b: Optional[Array]) -> None:
        """Replace the parameters after checking their shapes."""

        W = np.array(W, dtype=np.float64)
        if W.shape != (self.input_size, self.output_size):
            raise ShapeError(
                f"W must be {self.input_size}x{self.output_size}, got shape {W.shape}"
            )
        if self.use_bias:
            if b is None:
                raise ShapeError("Layer uses a bias but no bias row was given")
            b = np.array(b, dtype=np.float64)
            if b.shape != (1, self.output_size):
                raise ShapeError(f"b must be 1x{self.output_size}, got shape {b.shape}")
        else:
            b = None
        self.W = W
        self.b = b
        self._generation += 1

    def parameter_count(self) -> int:
        return int(self.W.size + (self.b.size if self.b is not None else 0))

    def __repr__(self) -> str:
        return (
            f"DenseLayer({self.input_size}, {self.output_size}, "
            f"activation={self.activation!r}, use_bias={self.use_bias})"
        )


__all__ = ["DenseLayer"]
