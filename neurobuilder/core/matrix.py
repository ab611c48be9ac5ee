"""Dense matrix primitives used by layers, losses and the trainer.

Every matrix is a two dimensional ``float64`` array. Operations check their
operand shapes and return fresh arrays; nothing here mutates its inputs.
"""

from __future__ import annotations

from typing import Callable, TypeVar

import numpy as np

from .errors import ShapeError
from .types import Array

F = TypeVar("F", bound=Callable[..., object])


def zeros(rows: int, cols: int) -> Array:
    """Return a ``rows x cols`` matrix of zeros."""

    if rows < 0 or cols < 0:
        raise ShapeError(f"Cannot allocate a {rows}x{cols} matrix")
    return np.zeros((rows, cols), dtype=np.float64)


def as_matrix(values) -> Array:
    """Coerce nested sequences (or a single vector) into a 2-D matrix."""

    try:
        out = np.array(values, dtype=np.float64)
    except ValueError as exc:
        raise ShapeError(f"Rows must all have the same length: {exc}") from exc
    if out.ndim == 1:
        out = out.reshape(1, -1)
    if out.ndim != 2:
        raise ShapeError(f"Expected a 2-D matrix, got {out.ndim} dimensions")
    return out


def multiply(a: Array, b: Array) -> Array:
    """Standard matrix product ``a @ b``."""

    a, b = _require_2d(a, b)
    if a.shape[1] != b.shape[0]:
        raise ShapeError(f"Cannot multiply {_fmt(a)} by {_fmt(b)}")
    return a @ b


def add_broadcast_row(a: Array, row: Array) -> Array:
    """Add the ``1 x cols`` row vector ``row`` to every row of ``a``."""

    a, row = _require_2d(a, row)
    if row.shape != (1, a.shape[1]):
        raise ShapeError(f"Cannot broadcast row {_fmt(row)} over {_fmt(a)}")
    return a + row


def hadamard(a: Array, b: Array) -> Array:
    """Elementwise product of two equally shaped matrices."""

    a, b = _require_2d(a, b)
    if a.shape != b.shape:
        raise ShapeError(f"Hadamard product needs equal shapes, got {_fmt(a)} and {_fmt(b)}")
    return a * b


def transpose(a: Array) -> Array:
    (a,) = _require_2d(a)
    return a.T.copy()


def column_sums(a: Array) -> Array:
    """Sum each column, returning a ``1 x cols`` row."""

    (a,) = _require_2d(a)
    return a.sum(axis=0, keepdims=True)


def map_activation(a: Array, fn: Callable[[float], float]) -> Array:
    """Apply the scalar function ``fn`` to every entry of ``a``.

    NumPy ufuncs and functions marked with :func:`elementwise` already work
    on whole arrays and are called once; any other callable is applied entry
    by entry.
    """

    (a,) = _require_2d(a)
    if isinstance(fn, np.ufunc) or getattr(fn, "elementwise", False):
        out = np.asarray(fn(a), dtype=np.float64)
    else:
        out = np.vectorize(fn, otypes=[np.float64])(a)
    if out.shape != a.shape:
        raise ShapeError(f"Activation changed shape {_fmt(a)} -> {_fmt(out)}")
    return out


def elementwise(fn: F) -> F:
    """Mark ``fn`` as a NumPy-aware elementwise function."""

    fn.elementwise = True  # type: ignore[attr-defined]
    return fn


def _require_2d(*arrays) -> tuple[Array, ...]:
    """Coerce each operand to a ``float64`` array and require two dimensions."""

    out = []
    for array in arrays:
        try:
            coerced = np.asarray(array, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ShapeError(f"Expected a 2-D numeric matrix: {exc}") from exc
        if coerced.ndim != 2:
            raise ShapeError(f"Expected a 2-D matrix, got {coerced.ndim} dimensions")
        out.append(coerced)
    return tuple(out)


def _fmt(a: Array) -> str:
    return "x".join(str(dim) for dim in a.shape)


__all__ = [
    "zeros",
    "as_matrix",
    "multiply",
    "add_broadcast_row",
    "hadamard",
    "transpose",
    "column_sums",
    "map_activation",
    "elementwise",
]
