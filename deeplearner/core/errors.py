"""Exception hierarchy shared by the DeepLearner core."""

from __future__ import annotations


class DeepLearnerError(Exception):
    """Base class for every error raised by the library."""


class DimensionMismatch(DeepLearnerError, ValueError):
    """Operands (or an input vector) have incompatible shapes."""


class ShapeError(DeepLearnerError, ValueError):
    """An operation was requested on a tensor of the wrong kind, e.g. the norm of a matrix."""


class ConfigurationError(DeepLearnerError, ValueError):
    """A network or training run was configured inconsistently."""


class DivisionBySingularity(DeepLearnerError, ZeroDivisionError):
    """A quantity is undefined because a divisor is exactly zero."""


class DataFormatError(DeepLearnerError, ValueError):
    """External training data could not be parsed."""


__all__ = [
    "ConfigurationError",
    "DataFormatError",
    "DeepLearnerError",
    "DimensionMismatch",
    "DivisionBySingularity",
    "ShapeError",
]
