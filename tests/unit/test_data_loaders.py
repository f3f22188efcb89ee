import numpy as np
import pytest

from deeplearner.core.errors import DataFormatError, DimensionMismatch
from deeplearner.core.tensor import Tensor
from deeplearner.data import SampleStore, available_datasets, get_dataset, register_dataset
from deeplearner.data.csv_generic import load_csv_samples
from deeplearner.data.registry import DatasetSpec
from deeplearner.data.text import (
    load_text_samples,
    parse_line,
    parse_vector,
    write_text_samples,
)


def test_parse_line():
    x, y = parse_line("5 10 15,1 2 3")
    assert x == Tensor.column([5.0, 10.0, 15.0])
    assert y == Tensor.column([1.0, 2.0, 3.0])


@pytest.mark.parametrize("line", ["1 2", "1,2,3", "1 a,2", "1  2,3", ",1"])
def test_parse_line_rejects_malformed_rows(line):
    with pytest.raises(DataFormatError):
        parse_line(line)


def test_parse_vector_handles_signs_and_exponents():
    assert parse_vector("-1.5 2e-3").flatten() == [-1.5, 0.002]


def test_text_file_roundtrip(tmp_path):
    samples = [
        (Tensor.column([0.1, 0.2]), Tensor.column([1.0])),
        (Tensor.column([-3.0, 4.5]), Tensor.column([0.0])),
    ]
    path = write_text_samples(tmp_path / "samples.txt", samples)
    assert load_text_samples(path) == samples


def test_text_file_errors_report_line_numbers(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_text("1 2,3\n\n4 x,5\n")
    with pytest.raises(DataFormatError, match="Line 3"):
        load_text_samples(path)


def test_text_dataset_registry_entry(tmp_path):
    path = tmp_path / "xor.txt"
    path.write_text("0 0,0\n0 1,1\n1 0,1\n1 1,0\n")
    spec = get_dataset("text", path=path)
    assert (spec.d_in, spec.d_out, len(spec)) == (2, 1, 4)
    assert spec.provenance["path"] == str(path)


def test_empty_text_dataset_is_rejected(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("\n")
    with pytest.raises(ValueError):
        get_dataset("text", path=path)


def test_csv_loader(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b,target\n1,2,3\n4,5,9\n")
    samples = load_csv_samples(path)
    assert samples[1][0] == Tensor.column([4.0, 5.0])
    assert samples[1][1] == Tensor.column([9.0])
    spec = get_dataset("csv", csv_path=path, target_col=["b", "target"], standardize_inputs=True)
    assert (spec.d_in, spec.d_out) == (1, 2)
    assert spec.samples[0][0][0, 0] == pytest.approx(-1.0)


def test_csv_loader_errors(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,target\n1,2\nx,3\n")
    with pytest.raises(DataFormatError):
        load_csv_samples(path)
    with pytest.raises(KeyError):
        load_csv_samples(path, "label")


def test_synthetic_dataset_is_seeded():
    first = get_dataset("synthetic", n_points=16, seed=4)
    second = get_dataset("synthetic", n_points=16, seed=4)
    assert first.samples == second.samples
    assert (first.d_in, first.d_out, len(first)) == (1, 1, 16)


def test_registry_lookup_and_registration():
    assert {"csv", "synthetic", "text"} <= set(available_datasets())
    with pytest.raises(KeyError, match="Available datasets"):
        get_dataset("imagenet")

    @register_dataset("unit-constant")
    def _constant(**_):
        pair = (Tensor.column([1.0]), Tensor.column([2.0]))
        return DatasetSpec(name="unit-constant", samples=[pair], d_in=1, d_out=1)

    assert len(get_dataset("unit-constant")) == 1


def test_sample_store_keeps_pairs_aligned():
    store = SampleStore()
    store.load([(Tensor.column([float(i)]), Tensor.column([float(i) * 10])) for i in range(20)])
    store.shuffle(np.random.default_rng(0))
    assert [x[0, 0] * 10 for x in store.inputs] == [y[0, 0] for y in store.targets]
    batch = store.draw(5)
    assert len(batch) == 5
    assert batch.inputs == list(store.inputs[:5])
    assert [len(b) for b in store.batches(6)] == [6, 6, 6]


def test_sample_store_load_is_all_or_nothing():
    store = SampleStore(d_in=1, d_out=1)
    store.load([(Tensor.column([1.0]), Tensor.column([1.0]))])
    with pytest.raises(DimensionMismatch):
        store.load(
            [
                (Tensor.column([2.0]), Tensor.column([2.0])),
                (Tensor([[1.0, 2.0]]), Tensor.column([1.0])),
            ]
        )
    assert len(store) == 1
    with pytest.raises(DimensionMismatch):
        store.draw(2)
