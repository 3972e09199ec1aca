# tests/array_backend/test_array_backend_utils.py
import numpy as np
import pytest

from probdraw.array_backend import utils as U


def test_ensure_vector_scalar_and_1d_and_2d():
    v0 = U._ensure_vector(5)
    assert v0.shape == (1,)
    v1 = U._ensure_vector([1, 2, 3])
    assert v1.shape == (3,)
    assert v1.dtype == np.float64
    # 2D (1,n) and (n,1)
    v2 = U._ensure_vector(np.array([[1, 2, 3]]), length=3)
    assert v2.shape == (3,)
    v3 = U._ensure_vector(np.array([[1], [2]]))
    assert v3.shape == (2,)


def test_ensure_vector_rejects_matrices():
    with pytest.raises(ValueError):
        U._ensure_vector(np.ones((2, 2)))
    with pytest.raises(ValueError):
        U._ensure_vector(np.ones((1, 1, 2)))


def test_ensure_vector_length_check():
    with pytest.raises(ValueError):
        U._ensure_vector([1, 2, 3], length=2)


def test_ensure_matrix_scalar_1d_2d():
    m0 = U._ensure_matrix(2)
    assert m0.shape == (1, 1)
    m1 = U._ensure_matrix([1, 2])
    assert m1.shape == (2, 1)
    m2 = U._ensure_matrix(np.array([[1, 2], [3, 4]]))
    assert m2.shape == (2, 2)


def test_ensure_matrix_rejects_ndim_gt2():
    with pytest.raises(ValueError):
        U._ensure_matrix(np.zeros((2, 2, 2)))


def test_ensure_matrix_dim_checks():
    with pytest.raises(ValueError):
        U._ensure_matrix(2, num_rows=1, num_cols=2)
    with pytest.raises(ValueError):
        U._ensure_matrix([1, 2], num_rows=3)


def test_ensure_square_matrix():
    M = np.eye(3)
    out = U._ensure_square_matrix(M)
    assert out.shape == (3, 3)
    with pytest.raises(ValueError):
        U._ensure_square_matrix(np.array([[1, 2], [3, 4]]), n=3)
    with pytest.raises(ValueError):
        U._ensure_square_matrix(np.array([1, 2, 3]))


def test_as_array_wraps_conversion_errors():
    with pytest.raises(TypeError):
        U._as_array([[1, 2], [3]], dtype=float)


def test_copy_semantics_ensure_vector_matrix():
    arr = np.array([1.0, 2.0, 3.0])
    v_copy = U._ensure_vector(arr, copy=True)
    assert not v_copy is arr
    v_copy[0] = 100.0
    assert arr[0] == 1.0
    v_view = U._ensure_vector(arr, copy=False)
    assert np.allclose(v_view, arr)

    mat = np.array([[1.0, 0.0], [0.0, 1.0]])
    m_copy = U._ensure_matrix(mat, copy=True)
    assert not m_copy is mat
    assert U._ensure_matrix(mat, copy=False) is mat
    assert U._ensure_square_matrix(mat, copy=False) is mat
    assert U._ensure_vector(arr, copy=False) is arr


def test_frozen_is_read_only_copy():
    arr = np.arange(3.0)
    out = U._frozen(arr)
    assert out is not arr
    assert not out.flags.writeable
    arr[0] = 7.0
    assert out[0] == 0.0
    with pytest.raises(ValueError):
        out[0] = 1.0
