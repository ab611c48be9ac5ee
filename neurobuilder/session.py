"""Explicit session state for interactive front ends.

A :class:`Session` owns the current architecture, the network built from it,
the loaded dataset and the trainer. Rebuilding the topology discards the old
network and its learned weights. Imports build the replacement network in
full before swapping it in, so a failed import leaves the session unchanged.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from .core.errors import ConfigurationError
from .core.network import LayerSpec, Network, build_network, parse_specs
from .data import Dataset, get_dataset, parse_csv
from .inference import LayerSnapshot, activation_snapshot, predict
from .persistence import ImportedModel, export_architecture, export_weights, load_payload, loads
from .training.trainer import Trainer, TrainingConfig


class Session:
    def __init__(self, input_size: int = 2, output_size: int = 1, seed: int = 42) -> None:
        self.input_size = int(input_size)
        self.output_size = int(output_size)
        self.seed = int(seed)
        self.architecture: List[LayerSpec] = []
        self.dataset: Optional[Dataset] = None
        self.network = Network(self.input_size)
        self.trainer = Trainer(self.network)

    # ------------------------------------------------------------------
    # Topology

    def set_architecture(self, records: Sequence[LayerSpec | Mapping[str, Any]]) -> Network:
        specs = parse_specs(records)
        network = build_network(specs, input_size=self.input_size, seed=self.seed)
        self.architecture = specs
        self.input_size = network.input_size
        self._install(network)
        return network

    def add_layer(
        self, role: str, width: int, activation: str = "relu", use_bias: bool = True
    ) -> Network:
        spec = LayerSpec(role, width, activation, use_bias)
        specs = list(self.architecture)
        if role == "input":
            specs = [spec] + [s for s in specs if s.role != "input"]
        elif role == "hidden":
            # hidden layers go in front of the first output layer
            at = next((i for i, s in enumerate(specs) if s.role == "output"), len(specs))
            specs.insert(at, spec)
        else:
            specs.append(spec)
        return self.set_architecture(specs)

    def clear(self) -> Network:
        return self.set_architecture([])

    def rebuild(self) -> Network:
        return self.set_architecture(self.architecture)

    def ensure_io(self) -> Network:
        """Make sure the architecture has an input entry and an output layer."""

        specs = [s for s in self.architecture]
        if not any(s.role == "input" for s in specs):
            specs.insert(0, LayerSpec("input", self.input_size))
        else:
            specs = [
                LayerSpec("input", self.input_size) if s.role == "input" else s for s in specs
            ]
        if not any(s.role == "output" for s in specs):
            specs.append(LayerSpec("output", self.output_size, "sigmoid", True))
        else:
            specs = [
                LayerSpec("output", self.output_size, s.activation, s.use_bias)
                if s.role == "output"
                else s
                for s in specs
            ]
        return self.set_architecture(specs)

    def quick_start(self) -> Network:
        """2-4-1 tanh/sigmoid network with the XOR dataset loaded."""

        self.input_size, self.output_size = 2, 1
        self.set_architecture(
            [
                LayerSpec("input", 2),
                LayerSpec("hidden", 4, "tanh", True),
                LayerSpec("output", 1, "sigmoid", True),
            ]
        )
        self.load_dataset("xor")
        return self.network

    # ------------------------------------------------------------------
    # Data

    def load_dataset(self, dataset: str | Dataset, **options: Any) -> Dataset:
        """Load ``dataset`` and resize the network's input and output to fit it."""

        loaded = get_dataset(dataset, **options) if isinstance(dataset, str) else dataset
        if len(loaded) == 0:
            raise ConfigurationError("Dataset is empty")
        self.input_size = loaded.input_size
        self.output_size = loaded.output_size
        self.dataset = loaded
        self.ensure_io()
        return loaded

    def load_csv(self, text: str) -> Dataset:
        return self.load_dataset(parse_csv(text))

    # ------------------------------------------------------------------
    # Training and inference

    def train(
        self,
        config: TrainingConfig | Mapping[str, object],
        callbacks: Sequence[object] | None = None,
    ) -> List[float]:
        if self.dataset is None:
            raise ConfigurationError("Load a dataset before training")
        if not isinstance(config, TrainingConfig):
            config = TrainingConfig.from_mapping(config)
        return self.trainer.run(self.dataset, config, callbacks)

    def cancel(self) -> None:
        self.trainer.cancel()

    def predict(self, vector: Sequence[float]) -> List[float]:
        return predict(self.network, vector)

    def snapshot(self, vector: Sequence[float] | None = None) -> List[LayerSnapshot]:
        """Activation snapshot for ``vector``; defaults to the first dataset row."""

        if vector is None:
            if self.dataset is not None and len(self.dataset):
                vector = self.dataset.inputs[0].tolist()
            else:
                vector = [0.0] * self.network.input_size
        return activation_snapshot(self.network, vector)

    # ------------------------------------------------------------------
    # Persistence

    def export_weights(self) -> dict:
        return export_weights(self.network)

    def export_architecture(self) -> List[dict]:
        return export_architecture(self.architecture)

    def import_payload(self, payload: Any) -> ImportedModel:
        """Import a decoded JSON payload (or JSON text) in either format."""

        if isinstance(payload, str):
            imported = loads(payload, input_size=self.input_size, seed=self.seed)
        else:
            imported = load_payload(payload, input_size=self.input_size, seed=self.seed)
        self.architecture = list(imported.specs)
        self.input_size = imported.network.input_size
        self.output_size = imported.network.output_size
        self._install(imported.network)
        return imported

    def _install(self, network: Network) -> None:
        self.network = network
        self.trainer = Trainer(network, callbacks=self.trainer.callbacks)


__all__ = ["Session"]
