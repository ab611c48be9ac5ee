"""Core numerical primitives for NeuroBuilder."""

from . import activations, errors, initializers, layers, matrix, network, types

__all__ = ["activations", "errors", "initializers", "layers", "matrix", "network", "types"]
