import math

import numpy as np
import pytest

from deeplearner.core.errors import DimensionMismatch, ShapeError
from deeplearner.core.tensor import (
    Tensor,
    add,
    hadamard_divide,
    hadamard_multiply,
    identity,
    map_elements,
    multiply,
    norm,
    randomize,
    scale,
    subtract,
    sum_all,
    transpose,
    zeros,
)

A = Tensor([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
B = Tensor([[0.5, -1.0, 2.0], [3.0, 0.0, -4.0]])


def test_construction_rejects_ragged_rows():
    with pytest.raises(DimensionMismatch):
        Tensor([[1.0, 2.0], [3.0]])


def test_shape_and_indexing():
    assert A.shape == (2, 3)
    assert A[1, 2] == 6.0
    assert Tensor.column([1, 2, 3]).is_column
    assert not A.is_column


def test_transpose_is_an_involution():
    assert transpose(transpose(A)) == A
    assert A.T.shape == (3, 2)
    assert A.T[2, 0] == 3.0


def test_sum_and_hadamard_commute():
    assert add(A, B) == add(B, A)
    assert hadamard_multiply(A, B) == hadamard_multiply(B, A)


def test_identity_is_neutral_for_multiply():
    assert multiply(identity(2), A) == A
    assert multiply(A, identity(3)) == A


def test_multiply_values():
    left = Tensor([[1.0, 2.0], [3.0, 4.0]])
    right = Tensor([[5.0], [6.0]])
    assert multiply(left, right) == Tensor([[17.0], [39.0]])
    assert (left @ right) == Tensor([[17.0], [39.0]])


def test_multiply_rejects_incompatible_shapes():
    with pytest.raises(DimensionMismatch):
        multiply(A, A)


@pytest.mark.parametrize("op", [add, subtract, hadamard_multiply, hadamard_divide])
def test_elementwise_ops_reject_shape_mismatch(op):
    with pytest.raises(DimensionMismatch):
        op(A, A.T)


def test_scale_and_subtract():
    assert scale(2.0, A) == Tensor([[2.0, 4.0, 6.0], [8.0, 10.0, 12.0]])
    assert subtract(A, A) == zeros(2, 3)
    assert (A - B) == add(A, scale(-1.0, B))
    assert (2 * A) == (A * 2) == scale(2.0, A)


def test_hadamard_divide_follows_ieee_rules():
    out = hadamard_divide(Tensor([[1.0, -1.0, 0.0, 6.0]]), Tensor([[0.0, 0.0, 0.0, 3.0]]))
    assert out[0, 0] == math.inf
    assert out[0, 1] == -math.inf
    assert math.isnan(out[0, 2])
    assert out[0, 3] == 2.0


def test_norm_of_three_four_is_five():
    assert norm(Tensor.column([3.0, 4.0])) == pytest.approx(5.0)


def test_norm_rejects_non_vectors():
    with pytest.raises(ShapeError):
        norm(A)


def test_map_elements_returns_new_tensor():
    squared = map_elements(A, lambda x: x * x)
    assert squared[1, 1] == 25.0
    assert A[1, 1] == 5.0


def test_operations_never_mutate_operands():
    before = A.tolist()
    add(A, B)
    hadamard_multiply(A, B)
    scale(3.0, A)
    transpose(A)
    assert A.tolist() == before


def test_sum_all_requires_items():
    assert sum_all([A, A, A]) == scale(3.0, A)
    with pytest.raises(DimensionMismatch):
        sum_all([])


def test_randomize_is_seeded_and_bounded():
    first = randomize(zeros(3, 2), np.random.default_rng(5))
    second = randomize(zeros(3, 2), np.random.default_rng(5))
    assert first == second
    assert first.shape == (3, 2)
    assert all(0.0 <= v < 1.0 for v in first.flatten())


def test_numpy_interop_roundtrip():
    arr = np.arange(6, dtype=np.float64).reshape(2, 3)
    tensor = Tensor.from_numpy(arr)
    assert tensor.shape == (2, 3)
    np.testing.assert_array_equal(tensor.to_numpy(), arr)
    assert Tensor.from_numpy(np.array([1.0, 2.0])).shape == (2, 1)


def test_allclose_tolerates_rounding():
    assert Tensor([[0.1 + 0.2]]).allclose(Tensor([[0.3]]))
    assert not Tensor([[1.0]]).allclose(Tensor([[1.0, 1.0]]))
