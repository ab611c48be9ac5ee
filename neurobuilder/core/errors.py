"""Exception hierarchy for NeuroBuilder."""

from __future__ import annotations


class NeuroBuilderError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(NeuroBuilderError, ValueError):
    """An invalid network, dataset or training configuration."""


class ShapeError(ConfigurationError):
    """Matrix operands whose shapes are incompatible."""


class FormatError(NeuroBuilderError, ValueError):
    """A malformed persisted payload or CSV document."""


class UsageError(NeuroBuilderError, RuntimeError):
    """An engine call made with the wrong inputs or in the wrong order."""


__all__ = [
    "NeuroBuilderError",
    "ConfigurationError",
    "ShapeError",
    "FormatError",
    "UsageError",
]
