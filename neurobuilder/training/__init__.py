"""Losses, metrics and the training driver."""

from .losses import REGISTRY as LOSSES
from .trainer import CancellationToken, Trainer, TrainingConfig, TrainingStatus

__all__ = ["LOSSES", "CancellationToken", "Trainer", "TrainingConfig", "TrainingStatus"]
