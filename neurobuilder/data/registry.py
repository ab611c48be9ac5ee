"""Dataset registry."""

from __future__ import annotations

from typing import Any, Callable, Iterable, MutableMapping

from ..core.errors import ConfigurationError
from .dataset import Dataset

DatasetFactory = Callable[..., Dataset]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("xor")
        def make_xor(**kwargs):
            ...

    or directly::

        register_dataset("xor", make_xor)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> Dataset:
    """Build the dataset registered as ``dataset`` with ``options``."""

    if dataset not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise ConfigurationError(f"Unknown dataset {dataset!r}. Available datasets: {available}")
    return _REGISTRY[dataset](**options)


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


__all__ = ["available_datasets", "get_dataset", "register_dataset"]
