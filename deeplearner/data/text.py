"""Plain-text sample files.

One training pair per line, inputs first and targets second, separated by a
single comma. Vector entries are separated by single spaces::

    5 10 15,1 2 3
    20 25 30,4 5 6

Blank lines are ignored. A file either parses completely or raises
:class:`~deeplearner.core.errors.DataFormatError`; partial results are never
returned.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from ..core.errors import DataFormatError
from ..core.tensor import Tensor
from ..core.types import Sample
from .registry import DatasetSpec, infer_dims, register_dataset


def parse_vector(text: str) -> Tensor:
    """Parse ``"1.0 2.5 3"`` into a column vector."""

    tokens = text.strip().split(" ")
    if tokens == [""]:
        raise DataFormatError("Empty vector")
    values = []
    for idx, token in enumerate(tokens):
        try:
            values.append(float(token))
        except ValueError as exc:
            raise DataFormatError(f"Unable to parse number in element {idx}: {token!r}") from exc
    return Tensor.column(values)


def parse_line(line: str) -> Sample:
    parts = line.strip().split(",")
    if len(parts) != 2:
        raise DataFormatError(
            f"Expected exactly one comma between inputs and outputs, got {len(parts) - 1}"
        )
    return parse_vector(parts[0]), parse_vector(parts[1])


def parse_lines(lines: Iterable[str]) -> List[Sample]:
    samples: List[Sample] = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            samples.append(parse_line(line))
        except DataFormatError as exc:
            raise DataFormatError(f"Line {lineno}: {exc}") from exc
    return samples


def load_text_samples(path: str | Path) -> List[Sample]:
    """Read every sample from ``path``."""

    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        return parse_lines(handle)


@register_dataset("text")
def load_text_dataset(*, path: str | Path, **_: object) -> DatasetSpec:
    """Registry entry for text sample files."""

    samples = load_text_samples(path)
    d_in, d_out = infer_dims(samples) if samples else (0, 0)
    return DatasetSpec(
        name="text",
        samples=samples,
        d_in=d_in,
        d_out=d_out,
        provenance={"type": "text", "path": str(path)},
    )


def format_sample(sample: Sample) -> str:
    x, y = sample
    return ",".join(" ".join(repr(v) for v in vec.flatten()) for vec in (x, y))


def write_text_samples(path: str | Path, samples: Iterable[Sample]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(format_sample(s) + "\n" for s in samples), encoding="utf-8")
    return path


__all__ = [
    "format_sample",
    "load_text_dataset",
    "load_text_samples",
    "parse_line",
    "parse_lines",
    "parse_vector",
    "write_text_samples",
]
