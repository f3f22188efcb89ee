"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, MutableMapping

from ..core.types import Sample


@dataclass(frozen=True)
class DatasetSpec:
    """A fully materialised dataset ready for :class:`~deeplearner.data.samples.SampleStore`.

    Attributes
    ----------
    name:
        Registry name of the dataset.
    samples:
        Ordered ``(input column, target column)`` pairs.
    d_in / d_out:
        Width of every input and every target vector.
    provenance:
        Free-form metadata (source path, generator options, ...) recorded in
        run manifests so experiments stay reproducible.
    """

    name: str
    samples: List[Sample]
    d_in: int
    d_out: int
    provenance: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.samples)


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("synthetic")
        def make_synthetic(**kwargs):
            ...

    or directly::

        register_dataset("synthetic", make_synthetic)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build the :class:`DatasetSpec` registered under ``dataset``."""

    if dataset not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset: {dataset}. Available datasets: {available}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def infer_dims(samples: List[Sample]) -> tuple[int, int]:
    if not samples:
        raise ValueError("Cannot infer dimensions of an empty dataset")
    x, y = samples[0]
    return x.rows, y.rows


def _validate_spec(spec: DatasetSpec) -> None:
    if not spec.samples:
        raise ValueError(f"Dataset {spec.name!r} is empty")
    if spec.d_in < 1 or spec.d_out < 1:
        raise ValueError(f"Dataset {spec.name!r} has invalid dimensions {spec.d_in}->{spec.d_out}")


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "infer_dims",
    "register_dataset",
]
