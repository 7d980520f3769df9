from __future__ import annotations

import numpy as np
import pytest

from binmlp import kernel
from binmlp.exceptions import ShapeMismatch


def test_transpose_twice_is_identity() -> None:
    W = np.arange(12, dtype=np.float64).reshape(3, 4) / 7.0
    assert kernel.transpose(W).shape == (4, 3)
    np.testing.assert_array_equal(kernel.transpose(kernel.transpose(W)), W)


def test_products_match_numpy() -> None:
    gen = np.random.default_rng(1)
    a = gen.normal(size=(5, 3))
    b = gen.normal(size=(4, 3))
    c = gen.normal(size=(3, 6))
    np.testing.assert_allclose(kernel.mat_tmat(a, b), a @ b.T, atol=1e-12)
    np.testing.assert_allclose(kernel.mat_mat(a, c), a @ c, atol=1e-12)
    d = gen.normal(size=(5, 2))
    np.testing.assert_allclose(kernel.tmat_mat(a, d), a.T @ d, atol=1e-12)
    v = gen.normal(size=3)
    np.testing.assert_allclose(kernel.mat_vec(a, v), a @ v, atol=1e-12)
    w = gen.normal(size=5)
    np.testing.assert_allclose(kernel.tmat_vec(a, w), a.T @ w, atol=1e-12)


def test_products_reject_mismatched_shapes() -> None:
    with pytest.raises(ShapeMismatch):
        kernel.mat_tmat(np.ones((2, 3)), np.ones((2, 4)))
    with pytest.raises(ShapeMismatch):
        kernel.mat_mat(np.ones((2, 3)), np.ones((2, 3)))
    with pytest.raises(ShapeMismatch):
        kernel.tmat_mat(np.ones((2, 3)), np.ones((3, 3)))
    with pytest.raises(ShapeMismatch):
        kernel.mat_vec(np.ones((2, 3)), np.ones(2))


def test_elementwise_shape_checks() -> None:
    with pytest.raises(ShapeMismatch):
        kernel.hadamard(np.ones((2, 2)), np.ones((2, 3)))
    with pytest.raises(ShapeMismatch):
        kernel.add_x(np.ones(3), np.ones(4))
    with pytest.raises(ShapeMismatch):
        kernel.as_matrix(np.ones(3))


def test_in_place_updates() -> None:
    a = np.ones(3)
    kernel.add_factor_x(a, 2.0, np.array([1.0, 2.0, 3.0]))
    np.testing.assert_array_equal(a, [3.0, 5.0, 7.0])
    kernel.mul_x(a, 0.5)
    np.testing.assert_array_equal(a, [1.5, 2.5, 3.5])


def test_kahan_sum_is_at_least_as_accurate_as_naive() -> None:
    values = np.full(10, 0.1)
    naive = 0.0
    for v in values:
        naive += v
    assert abs(kernel.kahan_sum(values) - 1.0) <= abs(naive - 1.0)
    assert kernel.sum_squares(np.array([[3.0, 4.0]])) == 25.0
