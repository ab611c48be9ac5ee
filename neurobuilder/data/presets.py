"""Built-in toy datasets."""

from __future__ import annotations

from ..core.initializers import xorshift
from .dataset import Dataset
from .registry import register_dataset


@register_dataset("xor")
def make_xor(**_: object) -> Dataset:
    """The four-row XOR truth table."""

    return Dataset.from_rows(
        [[0, 0], [0, 1], [1, 0], [1, 1]],
        [[0], [1], [1], [0]],
        name="xor",
        provenance={"type": "xor", "rows": 4},
    )


@register_dataset("linsep")
def make_linsep(n_points: int = 200, seed: int = 7, **_: object) -> Dataset:
    """Points in the unit square labelled by whether ``a + b > 1``."""

    rand = xorshift(seed)
    inputs = []
    targets = []
    for _ in range(int(n_points)):
        a = rand()
        b = rand()
        inputs.append([a, b])
        targets.append([1.0 if a + b > 1 else 0.0])
    return Dataset.from_rows(
        inputs,
        targets,
        name="linsep",
        provenance={"type": "linsep", "n_points": int(n_points), "seed": int(seed)},
    )


__all__ = ["make_xor", "make_linsep"]
