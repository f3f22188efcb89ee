"""Dense two-dimensional tensors with value semantics.

The engine is deliberately small: it implements exactly the linear algebra the
network needs (matrix product, sums, Hadamard operations, scaling, transpose,
elementwise maps and the Euclidean norm of a column vector) on plain Python
floats. Every operation returns a new :class:`Tensor`; operands are never
mutated, so the same instance can be shared freely between batch members.

NumPy is only used as a source of random numbers and as an interchange format
for checkpoints.
"""

from __future__ import annotations

import math
from typing import Callable, Iterable, Sequence

import numpy as np

from .errors import DimensionMismatch, ShapeError

Rows = tuple[tuple[float, ...], ...]


class Tensor:
    """Immutable ``rows x columns`` grid of floats."""

    __slots__ = ("_data", "_rows", "_columns")

    def __init__(self, data: Iterable[Iterable[float]] = ()) -> None:
        rows = tuple(tuple(float(value) for value in row) for row in data)
        columns = len(rows[0]) if rows else 0
        for idx, row in enumerate(rows):
            if len(row) != columns:
                raise DimensionMismatch(
                    f"All rows must have the same length: row {idx} has {len(row)} "
                    f"entries, expected {columns}"
                )
        self._data: Rows = rows
        self._rows = len(rows)
        self._columns = columns

    # ------------------------------------------------------------------
    # Construction helpers

    @classmethod
    def _wrap(cls, data: Rows, columns: int) -> "Tensor":
        out = cls.__new__(cls)
        out._data = data
        out._rows = len(data)
        out._columns = columns
        return out

    @classmethod
    def zeros(cls, rows: int, columns: int) -> "Tensor":
        if rows < 0 or columns < 0:
            raise DimensionMismatch(f"Negative dimensions: {rows}x{columns}")
        row = (0.0,) * columns
        return cls._wrap(tuple(row for _ in range(rows)), columns)

    @classmethod
    def column(cls, values: Iterable[float]) -> "Tensor":
        """Build a column vector from a flat sequence of values."""

        return cls._wrap(tuple((float(v),) for v in values), 1)

    @classmethod
    def from_numpy(cls, array: np.ndarray) -> "Tensor":
        arr = np.asarray(array, dtype=np.float64)
        if arr.ndim == 1:
            arr = arr.reshape(-1, 1)
        if arr.ndim != 2:
            raise ShapeError(f"Expected a 1-D or 2-D array, got {arr.ndim} dimensions")
        data = tuple(tuple(float(v) for v in row) for row in arr)
        return cls._wrap(data, int(arr.shape[1]))

    # ------------------------------------------------------------------
    # Introspection

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def shape(self) -> tuple[int, int]:
        return (self._rows, self._columns)

    @property
    def is_column(self) -> bool:
        return self._columns == 1

    def __getitem__(self, index: tuple[int, int]) -> float:
        row, col = index
        return self._data[row][col]

    def tolist(self) -> list[list[float]]:
        return [list(row) for row in self._data]

    def flatten(self) -> list[float]:
        return [value for row in self._data for value in row]

    def to_numpy(self) -> np.ndarray:
        return np.array(self.tolist(), dtype=np.float64).reshape(self.shape)

    def allclose(self, other: "Tensor", tol: float = 1e-9) -> bool:
        if not isinstance(other, Tensor) or self.shape != other.shape:
            return False
        return all(
            math.isclose(a, b, rel_tol=tol, abs_tol=tol)
            for a, b in zip(self.flatten(), other.flatten())
        )

    def format_rows(self) -> str:
        """Space separated rows, one per line."""

        return "\n".join(" ".join(repr(value) for value in row) for row in self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.shape == other.shape and self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Tensor(shape={self.shape}, data={self.tolist()})"

    # ------------------------------------------------------------------
    # Operator sugar

    @property
    def T(self) -> "Tensor":
        return transpose(self)

    def map(self, fn: Callable[[float], float]) -> "Tensor":
        return map_elements(self, fn)

    def norm(self) -> float:
        return norm(self)

    def __matmul__(self, other: "Tensor") -> "Tensor":
        return multiply(self, other)

    def __add__(self, other: "Tensor") -> "Tensor":
        return add(self, other)

    def __sub__(self, other: "Tensor") -> "Tensor":
        return subtract(self, other)

    def __neg__(self) -> "Tensor":
        return scale(-1.0, self)

    def __mul__(self, other):
        if isinstance(other, Tensor):
            return hadamard_multiply(self, other)
        return scale(float(other), self)

    def __rmul__(self, other):
        return scale(float(other), self)

    def __truediv__(self, other):
        if isinstance(other, Tensor):
            return hadamard_divide(self, other)
        return map_elements(self, lambda x: _ieee_divide(x, float(other)))


# ----------------------------------------------------------------------
# Operations


def _require_same_shape(a: Tensor, b: Tensor, op: str) -> None:
    if a.shape != b.shape:
        raise DimensionMismatch(
            f"{op} requires operands of identical shape, got {a.shape} and {b.shape}"
        )


def _ieee_divide(x: float, y: float) -> float:
    if y != 0.0:
        return x / y
    if x == 0.0 or math.isnan(x):
        return math.nan
    return math.copysign(math.inf, x) * math.copysign(1.0, y)


def multiply(a: Tensor, b: Tensor) -> Tensor:
    """Standard matrix product ``a @ b``."""

    if a.columns != b.rows:
        raise DimensionMismatch(
            f"Cannot multiply {a.shape} by {b.shape}: column count of the first "
            "operand must equal the row count of the second"
        )
    cols = tuple(zip(*b._data)) if b.rows else ((),) * b.columns
    data = tuple(
        tuple(sum((x * y for x, y in zip(row, col)), 0.0) for col in cols)
        for row in a._data
    )
    return Tensor._wrap(data, b.columns)


def scale(k: float, a: Tensor) -> Tensor:
    k = float(k)
    return Tensor._wrap(tuple(tuple(k * x for x in row) for row in a._data), a.columns)


def add(a: Tensor, b: Tensor) -> Tensor:
    _require_same_shape(a, b, "sum")
    data = tuple(tuple(x + y for x, y in zip(ra, rb)) for ra, rb in zip(a._data, b._data))
    return Tensor._wrap(data, a.columns)


def subtract(a: Tensor, b: Tensor) -> Tensor:
    return add(a, scale(-1.0, b))


def hadamard_multiply(a: Tensor, b: Tensor) -> Tensor:
    _require_same_shape(a, b, "Hadamard product")
    data = tuple(tuple(x * y for x, y in zip(ra, rb)) for ra, rb in zip(a._data, b._data))
    return Tensor._wrap(data, a.columns)


def hadamard_divide(a: Tensor, b: Tensor) -> Tensor:
    _require_same_shape(a, b, "Hadamard division")
    data = tuple(
        tuple(_ieee_divide(x, y) for x, y in zip(ra, rb)) for ra, rb in zip(a._data, b._data)
    )
    return Tensor._wrap(data, a.columns)


def transpose(a: Tensor) -> Tensor:
    data = tuple(zip(*a._data)) if a.rows else ((),) * a.columns
    return Tensor._wrap(tuple(tuple(row) for row in data), a.rows)


def map_elements(a: Tensor, fn: Callable[[float], float]) -> Tensor:
    return Tensor._wrap(
        tuple(tuple(float(fn(x)) for x in row) for row in a._data), a.columns
    )


def norm(v: Tensor) -> float:
    """Euclidean norm of a column vector."""

    if not v.is_column:
        raise ShapeError(
            f"Cannot compute the norm of a {v.rows}x{v.columns} tensor; expected 1 column"
        )
    return math.sqrt(sum((row[0] * row[0] for row in v._data), 0.0))


def identity(n: int) -> Tensor:
    if n < 0:
        raise DimensionMismatch(f"Negative dimension: {n}")
    data = tuple(tuple(1.0 if i == j else 0.0 for j in range(n)) for i in range(n))
    return Tensor._wrap(data, n)


def zeros(rows: int, columns: int) -> Tensor:
    return Tensor.zeros(rows, columns)


def zeros_like(a: Tensor) -> Tensor:
    return Tensor.zeros(a.rows, a.columns)


def randomize(a: Tensor, rng: np.random.Generator | None = None) -> Tensor:
    """Return a tensor shaped like ``a`` with independent uniform samples in [0, 1)."""

    rng = rng if rng is not None else np.random.default_rng()
    values = rng.random((a.rows, a.columns))
    return Tensor._wrap(tuple(tuple(float(v) for v in row) for row in values), a.columns)


def sum_all(tensors: Sequence[Tensor]) -> Tensor:
    """Sum a non-empty sequence of identically shaped tensors."""

    if len(tensors) == 0:
        raise DimensionMismatch("Cannot sum an empty sequence of tensors")
    total = tensors[0]
    for tensor in tensors[1:]:
        total = add(total, tensor)
    return total


__all__ = [
    "Tensor",
    "add",
    "hadamard_divide",
    "hadamard_multiply",
    "identity",
    "map_elements",
    "multiply",
    "norm",
    "randomize",
    "scale",
    "subtract",
    "sum_all",
    "transpose",
    "zeros",
    "zeros_like",
]
