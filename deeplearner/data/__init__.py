"""Dataset registry, loaders and the training sample store."""

# Ensure built-in datasets register themselves when the package is imported.
from . import csv_generic as _csv_generic  # noqa: F401
from . import synthetic as _synthetic  # noqa: F401
from . import text as _text  # noqa: F401
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset
from .samples import SampleStore

__all__ = [
    "DatasetSpec",
    "SampleStore",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
