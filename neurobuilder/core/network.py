"""Ordered composition of dense layers."""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from .activations import resolve
from .errors import ConfigurationError, ShapeError, UsageError
from .initializers import xorshift
from .layers import DenseLayer
from .matrix import as_matrix
from .types import Array, ModelDescription, NetworkCache, RandomSource

ROLES = ("input", "hidden", "output")


def is_positive_width(value: Any) -> bool:
    """True for positive whole numbers; bools and non-integral floats are rejected."""

    return (
        not isinstance(value, bool)
        and isinstance(value, numbers.Real)
        and float(value).is_integer()
        and value > 0
    )


@dataclass(frozen=True)
class LayerSpec:
    """One entry of a network description.

    ``input`` entries only carry a width; ``hidden`` and ``output`` entries
    become dense layers.
    """

    role: str
    width: int
    activation: str = "relu"
    use_bias: bool = True

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ConfigurationError(f"Unknown layer role {self.role!r}; expected one of {ROLES}")
        if not is_positive_width(self.width):
            raise ConfigurationError(f"Layer width must be a positive integer, got {self.width!r}")
        if self.role != "input":
            resolve(self.activation)

    @classmethod
    def from_build_spec(cls, record: Mapping[str, Any]) -> "LayerSpec":
        """Parse ``{role, width, activation?, useBias?}``."""

        try:
            role = str(record["role"])
            width = record["width"]
        except (KeyError, TypeError) as exc:
            raise ConfigurationError(f"Build spec entry {record!r} needs 'role' and 'width'") from exc
        return cls(
            role=role,
            width=width,
            activation=str(record.get("activation") or "relu"),
            use_bias=record.get("useBias", True) is not False,
        )

    @classmethod
    def from_architecture(cls, record: Mapping[str, Any]) -> "LayerSpec":
        """Parse the persisted ``{type, neurons, activation, bias}`` record."""

        try:
            role = str(record["type"])
            width = record["neurons"]
        except (KeyError, TypeError) as exc:
            raise ConfigurationError(
                f"Architecture entry {record!r} needs 'type' and 'neurons'"
            ) from exc
        return cls(
            role=role,
            width=width,
            activation=str(record.get("activation") or "relu"),
            use_bias=record.get("bias", True) is not False,
        )

    def to_build_spec(self) -> dict:
        record: dict = {"role": self.role, "width": int(self.width)}
        if self.role != "input":
            record.update({"activation": self.activation, "useBias": self.use_bias})
        return record

    def to_architecture(self) -> dict:
        record: dict = {"type": self.role, "neurons": int(self.width)}
        if self.role != "input":
            record.update({"activation": self.activation, "bias": self.use_bias})
        return record


class Network:
    """Feed-forward network; forward folds left, backward folds right."""

    def __init__(self, input_size: int) -> None:
        self.input_size = int(input_size)
        self.layers: List[DenseLayer] = []

    @property
    def output_size(self) -> int:
        return self.layers[-1].output_size if self.layers else self.input_size

    def add(self, layer: DenseLayer) -> None:
        self.layers.append(layer)

    def validate(self) -> None:
        """Check that adjacent layer widths chain from ``input_size``."""

        width = self.input_size
        for idx, layer in enumerate(self.layers):
            if layer.input_size != width:
                raise ShapeError(
                    f"Layer {idx} expects {layer.input_size} inputs but receives {width}"
                )
            width = layer.output_size

    def forward(self, inputs: Array) -> tuple[Array, NetworkCache]:
        caches = []
        x = as_matrix(inputs)
        for layer in self.layers:
            x, cache = layer.forward(x)
            caches.append(cache)
        return x, NetworkCache(layers=caches)

    def predict(self, inputs: Array) -> Array:
        x = as_matrix(inputs)
        for layer in self.layers:
            x = layer.predict(x)
        return x

    def activations(self, inputs: Array) -> List[Array]:
        """Return every layer's output for ``inputs`` without touching caches."""

        outputs: List[Array] = []
        x = as_matrix(inputs)
        for layer in self.layers:
            x = layer.predict(x)
            outputs.append(x)
        return outputs

    def backward(self, cache: NetworkCache, grad_output: Array, lr: float) -> None:
        if len(cache.layers) != len(self.layers):
            raise UsageError("Forward state does not match the network's layers")
        grad = grad_output
        for layer, layer_cache in zip(reversed(self.layers), reversed(cache.layers)):
            grad = layer.backward(layer_cache, grad, lr)

    def describe(self) -> ModelDescription:
        dims = [self.input_size] + [layer.output_size for layer in self.layers]
        return ModelDescription(
            layer_dims=dims,
            activations=[layer.activation for layer in self.layers],
        )

    def parameter_count(self) -> int:
        return int(sum(layer.parameter_count() for layer in self.layers))

    def __len__(self) -> int:
        return len(self.layers)


def parse_specs(records: Iterable[LayerSpec | Mapping[str, Any]]) -> List[LayerSpec]:
    """Accept ``LayerSpec`` objects, build-spec records or architecture records."""

    specs: List[LayerSpec] = []
    for record in records:
        if isinstance(record, LayerSpec):
            specs.append(record)
        elif isinstance(record, Mapping) and "role" in record:
            specs.append(LayerSpec.from_build_spec(record))
        elif isinstance(record, Mapping) and "type" in record:
            specs.append(LayerSpec.from_architecture(record))
        else:
            raise ConfigurationError(f"Unrecognised layer description: {record!r}")
    return specs


def build_network(
    specs: Iterable[LayerSpec | Mapping[str, Any]],
    input_size: Optional[int] = None,
    seed: int = 42,
    rand: Optional[RandomSource] = None,
) -> Network:
    """Build a fresh network from a layer description.

    An ``input`` entry sets the running width; when there is none,
    ``input_size`` is used. Every dense layer draws its weights from one
    random source seeded with ``seed``.
    """

    parsed = parse_specs(specs)
    declared = next((spec.width for spec in parsed if spec.role == "input"), input_size)
    if declared is None:
        raise ConfigurationError("Network needs an input entry or an explicit input_size")
    rand = rand or xorshift(seed)
    network = Network(int(declared))
    width = int(declared)
    for spec in parsed:
        if spec.role == "input":
            if network.layers:
                raise ConfigurationError("Input entries must precede hidden and output layers")
            width = int(spec.width)
            network.input_size = width
            continue
        network.add(DenseLayer(width, spec.width, spec.activation, spec.use_bias, rand))
        width = int(spec.width)
    return network


__all__ = ["ROLES", "LayerSpec", "is_positive_width", "Network", "parse_specs", "build_network"]
