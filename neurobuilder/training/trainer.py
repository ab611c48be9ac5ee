"""Deterministic, cancellable mini-batch training loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Mapping, Sequence

from ..core.errors import ConfigurationError, UsageError
from ..core.initializers import shuffle_in_place, xorshift
from ..core.network import Network
from ..core.types import EpochReport
from ..data.dataset import Dataset
from .losses import REGISTRY as LOSS_REGISTRY
from .losses import Loss
from .metrics import compute_metrics, default_metrics, validate_metric_names


class TrainingStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"


class CancellationToken:
    """Flag set by an external controller; honoured at epoch boundaries."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def reset(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class TrainingConfig:
    """Hyper-parameters of a training run."""

    learning_rate: float
    epochs: int
    batch_size: int
    seed: int = 42
    yield_every: int = 1
    loss: str = "mse"
    metrics: Sequence[str] | None = None

    def __post_init__(self) -> None:
        if not self.learning_rate > 0:
            raise ConfigurationError(f"learning_rate must be positive, got {self.learning_rate}")
        if int(self.epochs) < 1:
            raise ConfigurationError(f"epochs must be at least 1, got {self.epochs}")
        if int(self.batch_size) < 1:
            raise ConfigurationError(f"batch_size must be at least 1, got {self.batch_size}")
        if int(self.yield_every) < 1:
            raise ConfigurationError(f"yield_every must be at least 1, got {self.yield_every}")

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, object]) -> "TrainingConfig":
        """Build from a pipeline ``train`` section (``lr``, ``epochs``, ...)."""

        metrics = cfg.get("metrics")
        if isinstance(metrics, str):
            metrics = [m.strip() for m in metrics.split(",") if m.strip()]
        return cls(
            learning_rate=float(cfg.get("lr", cfg.get("learning_rate", 0.1))),
            epochs=int(cfg.get("epochs", 100)),
            batch_size=int(cfg.get("batch_size", 4)),
            seed=int(cfg.get("seed", 42)),
            yield_every=int(cfg.get("yield_every", 1)),
            loss=str(cfg.get("loss", "mse")),
            metrics=list(metrics) if metrics is not None else None,
        )


@dataclass
class TrainingState:
    """Progress of the current (or last) run."""

    status: TrainingStatus = TrainingStatus.IDLE
    epoch: int = 0
    loss_curve: List[float] = field(default_factory=list)
    last_report: EpochReport | None = None


class Trainer:
    """Drive epochs of shuffled mini-batch SGD over a :class:`Network`.

    :meth:`iter_epochs` is the primitive: a generator that suspends after
    every ``yield_every`` epochs (and after the last one) with an
    :class:`EpochReport`. The cancellation token is checked after each epoch,
    so cancelling while suspended stops the run before the next epoch starts.
    """

    def __init__(self, network: Network, callbacks: Sequence[object] | None = None) -> None:
        self.network = network
        self.callbacks = list(callbacks or [])
        self.token = CancellationToken()
        self.state = TrainingState()

    def cancel(self) -> None:
        self.token.cancel()

    def run(
        self,
        dataset: Dataset,
        config: TrainingConfig,
        callbacks: Sequence[object] | None = None,
    ) -> List[float]:
        """Train to completion (or cancellation) and return the loss curve."""

        listeners = self.callbacks + list(callbacks or [])
        for report in self.iter_epochs(dataset, config):
            self._emit_epoch(report, listeners)
        return list(self.state.loss_curve)

    def iter_epochs(self, dataset: Dataset, config: TrainingConfig) -> Iterator[EpochReport]:
        """Validate eagerly, then return the epoch generator."""

        if self.state.status is TrainingStatus.RUNNING:
            raise UsageError("Trainer is already running")
        loss_fn = LOSS_REGISTRY.resolve(config.loss)
        metric_names = (
            list(config.metrics)
            if config.metrics is not None
            else default_metrics(self.network.output_size)
        )
        validate_metric_names(metric_names, self.network.output_size)
        self._validate(dataset)
        return self._epochs(dataset, config, loss_fn, metric_names)

    def _epochs(
        self,
        dataset: Dataset,
        config: TrainingConfig,
        loss_fn: Loss,
        metric_names: List[str],
    ) -> Iterator[EpochReport]:
        self.state = TrainingState(status=TrainingStatus.RUNNING)
        self.token.reset()
        rand = xorshift(config.seed)

        try:
            for epoch in range(1, int(config.epochs) + 1):
                order = list(range(len(dataset)))
                shuffle_in_place(order, rand)
                for batch in dataset.batches(order, int(config.batch_size)):
                    predictions, cache = self.network.forward(batch.inputs)
                    _, grad = loss_fn(predictions, batch.targets)
                    self.network.backward(cache, grad, config.learning_rate)

                report = self.evaluate(
                    dataset, loss=config.loss, metric_names=metric_names, epoch=epoch
                )
                self.state.epoch = epoch
                self.state.loss_curve.append(report.loss)
                self.state.last_report = report

                if epoch % int(config.yield_every) == 0 or epoch == int(config.epochs):
                    yield report
                if self.token.cancelled:
                    self.state.status = TrainingStatus.CANCELLED
                    return
            self.state.status = TrainingStatus.IDLE
        except GeneratorExit:
            # closed by the caller at a suspension point
            self.state.status = TrainingStatus.CANCELLED
            raise
        finally:
            if self.state.status is TrainingStatus.RUNNING:
                self.state.status = TrainingStatus.IDLE

    def evaluate(
        self,
        dataset: Dataset,
        *,
        loss: str = "mse",
        metric_names: Sequence[str] | None = None,
        epoch: int = 0,
    ) -> EpochReport:
        """Run one full-dataset forward pass and score it."""

        predictions = self.network.predict(dataset.inputs)
        loss_value, _ = LOSS_REGISTRY.resolve(loss)(predictions, dataset.targets)
        if metric_names is None:
            metric_names = default_metrics(self.network.output_size)
        metrics = dict(compute_metrics(metric_names, predictions, dataset.targets))
        return EpochReport(epoch=epoch, loss=loss_value, metrics=metrics)

    def _validate(self, dataset: Dataset) -> None:
        if len(dataset) == 0:
            raise ConfigurationError("Cannot train on an empty dataset")
        if dataset.input_size != self.network.input_size:
            raise ConfigurationError(
                f"Dataset has {dataset.input_size} features but the network "
                f"expects {self.network.input_size}"
            )
        if dataset.output_size != self.network.output_size:
            raise ConfigurationError(
                f"Dataset has {dataset.output_size} targets but the network "
                f"produces {self.network.output_size}"
            )
        self.network.validate()

    @staticmethod
    def _emit_epoch(report: EpochReport, listeners: Sequence[object]) -> None:
        metrics = report.as_record()
        for callback in listeners:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(report.epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(report.epoch, metrics)


__all__ = [
    "CancellationToken",
    "Trainer",
    "TrainingConfig",
    "TrainingState",
    "TrainingStatus",
]
