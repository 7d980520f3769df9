"""Numeric kernel: vector and matrix primitives.

All reductions go through sequential compensated (Kahan) summation compiled
with numba, so results depend only on operand order and never on thread
scheduling or BLAS blocking. Functions with an ``_x`` suffix mutate their
first argument in place; everything else returns a new array.
"""
from __future__ import annotations
import numpy as np
from numba import njit

from .exceptions import ShapeMismatch


# ============================================================================
# compiled kernels
# ============================================================================

@njit(cache=True)
def _kahan_sum(values):
    total = 0.0
    comp = 0.0
    for i in range(values.shape[0]):
        y = values[i] - comp
        t = total + y
        comp = (t - total) - y
        total = t
    return total


@njit(cache=True)
def _mat_tmat(a, b):
    # out[i, j] = sum_k a[i, k] * b[j, k]
    n, depth = a.shape
    m = b.shape[0]
    out = np.empty((n, m))
    for i in range(n):
        for j in range(m):
            total = 0.0
            comp = 0.0
            for k in range(depth):
                y = a[i, k] * b[j, k] - comp
                t = total + y
                comp = (t - total) - y
                total = t
            out[i, j] = total
    return out


@njit(cache=True)
def _mat_mat(a, b):
    # out[i, j] = sum_k a[i, k] * b[k, j]
    n, depth = a.shape
    m = b.shape[1]
    out = np.empty((n, m))
    for i in range(n):
        for j in range(m):
            total = 0.0
            comp = 0.0
            for k in range(depth):
                y = a[i, k] * b[k, j] - comp
                t = total + y
                comp = (t - total) - y
                total = t
            out[i, j] = total
    return out


@njit(cache=True)
def _tmat_mat(a, b):
    # out[i, j] = sum_k a[k, i] * b[k, j]
    depth, n = a.shape
    m = b.shape[1]
    out = np.empty((n, m))
    for i in range(n):
        for j in range(m):
            total = 0.0
            comp = 0.0
            for k in range(depth):
                y = a[k, i] * b[k, j] - comp
                t = total + y
                comp = (t - total) - y
                total = t
            out[i, j] = total
    return out


# ============================================================================
# helpers
# ============================================================================

def as_vector(x) -> np.ndarray:
    arr = np.ascontiguousarray(x, dtype=np.float64)
    if arr.ndim != 1:
        raise ShapeMismatch(f"Expected a vector, got shape {arr.shape}")
    return arr


def as_matrix(x) -> np.ndarray:
    arr = np.ascontiguousarray(x, dtype=np.float64)
    if arr.ndim != 2:
        raise ShapeMismatch(f"Expected a matrix, got shape {arr.shape}")
    return arr


def _check_same(a: np.ndarray, b: np.ndarray, what: str) -> None:
    if a.shape != b.shape:
        raise ShapeMismatch(f"{what}: shapes differ, {a.shape} vs {b.shape}")


def zero_vec(n: int) -> np.ndarray:
    return np.zeros((n,), dtype=np.float64)


def zero_mat(rows: int, cols: int) -> np.ndarray:
    return np.zeros((rows, cols), dtype=np.float64)


# ============================================================================
# element-wise
# ============================================================================

def add(a, b) -> np.ndarray:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    _check_same(a, b, "add")
    return a + b


def sub(a, b) -> np.ndarray:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    _check_same(a, b, "sub")
    return a - b


def hadamard(a, b) -> np.ndarray:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    _check_same(a, b, "hadamard")
    return a * b


def scale(a, factor: float) -> np.ndarray:
    return np.asarray(a, dtype=np.float64) * factor


def transpose(a) -> np.ndarray:
    return np.ascontiguousarray(as_matrix(a).T)


# ============================================================================
# in-place
# ============================================================================

def add_x(a: np.ndarray, b) -> None:
    """a += b"""
    b = np.asarray(b, dtype=np.float64)
    _check_same(a, b, "add_x")
    a += b


def add_factor_x(a: np.ndarray, factor: float, b) -> None:
    """a += factor * b"""
    b = np.asarray(b, dtype=np.float64)
    _check_same(a, b, "add_factor_x")
    a += factor * b


def mul_x(a: np.ndarray, factor: float) -> None:
    """a *= factor"""
    a *= factor


# ============================================================================
# reductions and products
# ============================================================================

def kahan_sum(values) -> float:
    """Compensated sum of every entry of ``values`` in row-major order."""
    flat = np.ascontiguousarray(values, dtype=np.float64).reshape(-1)
    return float(_kahan_sum(flat))


def sum_squares(values) -> float:
    arr = np.asarray(values, dtype=np.float64)
    return kahan_sum(arr * arr)


def mat_vec(mat, vec) -> np.ndarray:
    """mat @ vec"""
    mat = as_matrix(mat)
    vec = as_vector(vec)
    if mat.shape[1] != vec.shape[0]:
        raise ShapeMismatch(
            f"mat_vec: matrix {mat.shape} does not match vector {vec.shape}"
        )
    return _mat_tmat(vec.reshape(1, -1), mat)[0]


def tmat_vec(mat, vec) -> np.ndarray:
    """mat.T @ vec"""
    mat = as_matrix(mat)
    vec = as_vector(vec)
    if mat.shape[0] != vec.shape[0]:
        raise ShapeMismatch(
            f"tmat_vec: transposed matrix {mat.shape} does not match vector {vec.shape}"
        )
    return _mat_mat(vec.reshape(1, -1), mat)[0]


def mat_mat(a, b) -> np.ndarray:
    """a @ b"""
    a = as_matrix(a)
    b = as_matrix(b)
    if a.shape[1] != b.shape[0]:
        raise ShapeMismatch(f"mat_mat: {a.shape} x {b.shape}")
    return _mat_mat(a, b)


def mat_tmat(a, b) -> np.ndarray:
    """a @ b.T"""
    a = as_matrix(a)
    b = as_matrix(b)
    if a.shape[1] != b.shape[1]:
        raise ShapeMismatch(f"mat_tmat: {a.shape} x {b.shape}^T")
    return _mat_tmat(a, b)


def tmat_mat(a, b) -> np.ndarray:
    """a.T @ b"""
    a = as_matrix(a)
    b = as_matrix(b)
    if a.shape[0] != b.shape[0]:
        raise ShapeMismatch(f"tmat_mat: {a.shape}^T x {b.shape}")
    return _tmat_mat(a, b)
