"""Dataset container, registry and loaders."""

# Ensure built-in datasets register themselves when the package is imported.
from . import csv_dataset as _csv_dataset  # noqa: F401
from . import presets as _presets  # noqa: F401
from .csv_dataset import parse_csv
from .dataset import Dataset
from .registry import available_datasets, get_dataset, register_dataset

__all__ = [
    "Dataset",
    "available_datasets",
    "get_dataset",
    "parse_csv",
    "register_dataset",
]
