"""JSON weights and architecture formats.

Weights format::

    {"layers": [{"type": "hidden", "in": 2, "out": 4, "activation": "tanh",
                 "useBias": true, "W": [[...], [...]], "b": [[...]]}, ...]}

Architecture format::

    [{"type": "input", "neurons": 2},
     {"type": "hidden", "neurons": 4, "activation": "tanh", "bias": true}, ...]

optionally wrapped as ``{"architecture": [...], "weights": [...]}``.
"""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

import numpy as np

from .core.errors import ConfigurationError, FormatError
from .core.initializers import xorshift
from .core.layers import DenseLayer
from .core.network import LayerSpec, Network, build_network, is_positive_width
from .core.types import Array


@dataclass(frozen=True)
class ImportedModel:
    """Result of importing a payload."""

    kind: str
    specs: List[LayerSpec]
    network: Network
    weights_applied: bool


def _layer_role(idx: int, count: int) -> str:
    return "output" if idx == count - 1 else "hidden"


def export_weights(network: Network) -> dict:
    layers = []
    for idx, layer in enumerate(network.layers):
        layers.append(
            {
                "type": _layer_role(idx, len(network.layers)),
                "in": layer.input_size,
                "out": layer.output_size,
                "activation": layer.activation,
                "useBias": layer.use_bias,
                "W": layer.W.tolist(),
                "b": layer.b.tolist() if layer.b is not None else None,
            }
        )
    return {"layers": layers}


def export_architecture(specs: Sequence[LayerSpec]) -> List[dict]:
    return [spec.to_architecture() for spec in specs]


def specs_for(network: Network) -> List[LayerSpec]:
    """Describe ``network`` as a list of layer specs."""

    specs = [LayerSpec("input", network.input_size)]
    for idx, layer in enumerate(network.layers):
        specs.append(
            LayerSpec(
                _layer_role(idx, len(network.layers)),
                layer.output_size,
                layer.activation,
                layer.use_bias,
            )
        )
    return specs


def _matrix(value: Any, what: str) -> Array:
    try:
        out = np.array(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"{what} is not a numeric matrix") from exc
    if out.ndim != 2:
        raise FormatError(f"{what} must be a 2-D matrix")
    return out


def _width(value: Any, what: str) -> int:
    if not is_positive_width(value):
        raise FormatError(f"{what} must be a positive integer, got {value!r}")
    return int(value)


def _layer_records(payload: Any) -> Sequence[Mapping[str, Any]]:
    records = payload.get("layers") if isinstance(payload, Mapping) else payload
    if not isinstance(records, list):
        raise FormatError("Weights payload must contain a list of layers")
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise FormatError(f"Layer {idx} must be an object")
    return records


def import_weights(payload: Any) -> Network:
    """Rebuild a network from the weights format."""

    records = _layer_records(payload)
    if not records:
        raise FormatError("Weights payload has no layers")

    rand = xorshift(42)
    network: Optional[Network] = None
    width = None
    for idx, record in enumerate(records):
        try:
            n_in = _width(record["in"], f"Layer {idx} in")
            n_out = _width(record["out"], f"Layer {idx} out")
            activation = str(record.get("activation") or "relu")
            use_bias = record.get("useBias", True) is not False
            W = _matrix(record["W"], f"Layer {idx} W")
            b = _matrix(record["b"], f"Layer {idx} b") if use_bias else None
        except FormatError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise FormatError(f"Layer {idx} is missing or has invalid fields: {exc}") from exc
        if width is not None and n_in != width:
            raise FormatError(
                f"Layer {idx} expects {n_in} inputs but the previous layer emits {width}"
            )
        if network is None:
            network = Network(n_in)
        try:
            layer = DenseLayer(n_in, n_out, activation, use_bias, rand)
            layer.set_parameters(W, b)
        except ConfigurationError as exc:
            raise FormatError(f"Layer {idx}: {exc}") from exc
        network.add(layer)
        width = n_out
    return network


def _prepare_weights(network: Network, weights: Any) -> Optional[List[tuple[Array, Optional[Array]]]]:
    try:
        records = _layer_records(weights)
    except FormatError as exc:
        warnings.warn(f"Ignoring weights: {exc}", UserWarning, stacklevel=3)
        return None
    if len(records) != len(network.layers):
        warnings.warn(
            f"Ignoring weights: {len(records)} layer records for {len(network.layers)} layers",
            UserWarning,
            stacklevel=3,
        )
        return None
    prepared = []
    for idx, (layer, record) in enumerate(zip(network.layers, records)):
        try:
            W = _matrix(record.get("W"), f"Layer {idx} W")
            b = _matrix(record.get("b"), f"Layer {idx} b") if layer.use_bias else None
        except FormatError as exc:
            warnings.warn(f"Ignoring weights: {exc}", UserWarning, stacklevel=3)
            return None
        if W.shape != layer.W.shape or (b is not None and b.shape != (1, layer.output_size)):
            warnings.warn(
                f"Ignoring weights: layer {idx} shapes do not match the architecture",
                UserWarning,
                stacklevel=3,
            )
            return None
        prepared.append((W, b))
    return prepared


def import_architecture(
    records: Any, weights: Any = None, *, input_size: Optional[int] = None, seed: int = 42
) -> ImportedModel:
    """Rebuild a network from the architecture format.

    ``weights`` is applied only when every layer record fits the rebuilt
    network; otherwise a warning is issued and the fresh random weights stay.
    """

    if not isinstance(records, list):
        raise FormatError("Architecture payload must be a list of layer records")
    try:
        specs = [LayerSpec.from_architecture(record) for record in records]
        network = build_network(specs, input_size=input_size, seed=seed)
    except ConfigurationError as exc:
        raise FormatError(f"Invalid architecture: {exc}") from exc

    applied = False
    if weights is not None:
        prepared = _prepare_weights(network, weights)
        if prepared is not None:
            for layer, (W, b) in zip(network.layers, prepared):
                layer.set_parameters(W, b)
            applied = True
    return ImportedModel(kind="architecture", specs=specs, network=network, weights_applied=applied)


def load_payload(payload: Any, *, input_size: Optional[int] = None, seed: int = 42) -> ImportedModel:
    """Import either recognised format, dispatching on the payload's shape."""

    if isinstance(payload, Mapping) and "layers" in payload:
        network = import_weights(payload)
        return ImportedModel(
            kind="weights", specs=specs_for(network), network=network, weights_applied=True
        )
    if isinstance(payload, Mapping) and "architecture" in payload:
        return import_architecture(
            payload["architecture"], payload.get("weights"), input_size=input_size, seed=seed
        )
    if (
        isinstance(payload, list)
        and payload
        and all(isinstance(item, Mapping) and "neurons" in item for item in payload)
    ):
        return import_architecture(payload, input_size=input_size, seed=seed)
    raise ConfigurationError(
        "Payload matches neither the weights format nor the architecture format"
    )


def loads(text: str, **kwargs: Any) -> ImportedModel:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Invalid JSON: {exc}") from exc
    return load_payload(payload, **kwargs)


def dumps(network: Network, indent: int | None = 2) -> str:
    return json.dumps(export_weights(network), indent=indent)


def save_weights(network: Network, path: str | Path) -> str:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(network))
    return str(path)


def load_file(path: str | Path, **kwargs: Any) -> ImportedModel:
    return loads(Path(path).read_text(), **kwargs)


__all__ = [
    "ImportedModel",
    "dumps",
    "export_architecture",
    "export_weights",
    "import_architecture",
    "import_weights",
    "load_file",
    "load_payload",
    "loads",
    "save_weights",
    "specs_for",
]
