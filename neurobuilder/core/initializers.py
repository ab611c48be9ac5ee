"""Random sources and weight initialisation."""

from __future__ import annotations

import math
from typing import MutableSequence, TypeVar

import numpy as np

from .errors import ConfigurationError
from .matrix import zeros
from .types import Array, RandomSource

DEFAULT_SCALE = 0.1

_MASK32 = 0xFFFFFFFF

T = TypeVar("T")


def xorshift(seed: int = 123) -> RandomSource:
    """Return a deterministic xorshift32 source of floats in ``[0, 1)``.

    Values are quantised to multiples of ``1e-6``, so an exact ``0.0`` can
    occur and callers feeding a logarithm must re-draw.
    """

    state = int(seed) & _MASK32
    if state == 0:
        raise ConfigurationError("xorshift seed must be non-zero modulo 2**32")

    def _next() -> float:
        nonlocal state
        state ^= (state << 13) & _MASK32
        state ^= state >> 17
        state ^= (state << 5) & _MASK32
        return (state % 1_000_000) / 1_000_000

    return _next


def from_generator(rng: np.random.Generator) -> RandomSource:
    """Adapt a NumPy generator to the zero-argument random source contract."""

    return lambda: float(rng.random())


def _nonzero(rand: RandomSource) -> float:
    value = rand()
    while value == 0:
        value = rand()
    return value


def gaussian(rows: int, cols: int, rand: RandomSource, scale: float = DEFAULT_SCALE) -> Array:
    """Sample a ``rows x cols`` matrix with Box-Muller, scaled by ``scale``."""

    out = zeros(rows, cols)
    for i in range(rows):
        for j in range(cols):
            u = _nonzero(rand)
            v = _nonzero(rand)
            z = math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
            out[i, j] = z * scale
    return out


def shuffle_in_place(items: MutableSequence[T], rand: RandomSource) -> None:
    """Fisher-Yates shuffle of ``items`` driven by ``rand``."""

    for i in range(len(items) - 1, 0, -1):
        j = int(rand() * (i + 1))
        items[i], items[j] = items[j], items[i]


__all__ = ["DEFAULT_SCALE", "xorshift", "from_generator", "gaussian", "shuffle_in_place"]
