"""Banded matrix operations for smoothness objectives.

The smoothness metric of a trajectory of ``n`` points is described by a
symmetric Toeplitz band matrix.  It is given by its coefficients
``coeffs = [a_m, ..., a_1, a_0]``: ``a_0`` is the diagonal and ``a_k`` the
``k``-th off-diagonal.  ``[-1, 2]`` penalises velocity and ``[1, -4, 6]``
penalises acceleration.

Band Cholesky factors are stored compactly as an ``(n, m + 1)`` array
``band`` with ``band[i, m - k] == L[i, i - k]``.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def _coeff_array(coeffs: Sequence[float]) -> np.ndarray:
    arr = np.asarray(coeffs, dtype=float).ravel()
    if arr.size == 0:
        raise ValueError("coeffs must not be empty")
    return arr


def band_matrix(n: int, coeffs: Sequence[float]) -> np.ndarray:
    """Dense ``n``-by-``n`` symmetric band matrix described by ``coeffs``."""
    c = _coeff_array(coeffs)
    m = c.size - 1
    a = np.zeros((n, n))
    for k in range(min(m, n - 1) + 1):
        value = c[m - k]
        idx = np.arange(n - k)
        a[idx, idx + k] = value
        a[idx + k, idx] = value
    return a


def skyline_chol(n: int, coeffs: Sequence[float]) -> np.ndarray:
    """Band Cholesky factor of ``band_matrix(n, coeffs)`` in compact storage."""
    c = _coeff_array(coeffs)
    m = c.size - 1
    band = np.zeros((n, m + 1))
    for i in range(n):
        for k in range(min(m, i), -1, -1):
            j = i - k
            lo = max(0, i - m)
            s = c[m - k] - float(
                np.dot(band[i, m - i + lo : m - i + j], band[j, m - j + lo : m])
            )
            if k == 0:
                if s <= 0:
                    raise ValueError("matrix is not positive definite")
                band[i, m] = math.sqrt(s)
            else:
                band[i, m - k] = s / band[j, m]
    return band


def skyline_chol_solve(lower: np.ndarray, x) -> np.ndarray:
    """Solve ``A y = x`` given the compact band factor of ``A``.

    ``x`` may be a vector or a matrix with one row per unknown; a new array
    is returned.
    """
    band = np.asarray(lower, dtype=float)
    n, w = band.shape
    m = w - 1
    y = np.array(x, dtype=float)
    if y.shape[0] != n:
        raise ValueError(f"right-hand side has {y.shape[0]} rows, expected {n}")

    for i in range(n):
        lo = max(0, i - m)
        if i > lo:
            y[i] = y[i] - np.tensordot(band[i, m - i + lo : m], y[lo:i], axes=1)
        y[i] = y[i] / band[i, m]

    for i in range(n - 1, -1, -1):
        hi = min(n, i + m + 1)
        if hi > i + 1:
            rows = np.arange(i + 1, hi)
            coef = band[rows, m - (rows - i)]
            y[i] = y[i] - np.tensordot(coef, y[i + 1 : hi], axes=1)
        y[i] = y[i] / band[i, m]

    return y


def diag_mul(coeffs: Sequence[float], x) -> np.ndarray:
    """Product of the band matrix described by ``coeffs`` with ``x``."""
    c = _coeff_array(coeffs)
    m = c.size - 1
    xa = np.asarray(x, dtype=float)
    n = xa.shape[0]
    result = c[m] * xa
    for k in range(1, min(m, n - 1) + 1):
        result[k:] += c[m - k] * xa[:-k]
        result[:-k] += c[m - k] * xa[k:]
    return result


def _difference_stencil(coeffs: np.ndarray) -> np.ndarray:
    m = coeffs.size - 1
    stencil = np.array([(-1) ** (m - k) * math.comb(m, k) for k in range(m + 1)], float)
    autocorr = [float(np.dot(stencil[: m + 1 - lag], stencil[lag:])) for lag in range(m, -1, -1)]
    if not np.allclose(autocorr, coeffs):
        raise ValueError(f"coeffs {coeffs.tolist()} are not a finite-difference metric")
    return stencil


def get_pos(q, t: float) -> np.ndarray:
    """Position at time ``t`` of an endpoint given as rows of derivatives.

    Row ``i`` of ``q`` is the ``i``-th time derivative; the position is the
    Taylor expansion ``sum(q[i] * t**i / i!)``.  A single row is a fixed point.
    """
    qa = np.atleast_2d(np.asarray(q, dtype=float))
    pos = np.zeros(qa.shape[1])
    for i, row in enumerate(qa):
        pos = pos + row * (t**i / math.factorial(i))
    return pos


def create_b_matrix(n: int, coeffs: Sequence[float], q0, q1, dt: float):
    """Linear and constant terms of the smoothness objective.

    Returns ``(b, c)`` such that for an ``n``-by-``M`` trajectory ``x`` the
    cost of the whole path including the endpoints ``q0`` and ``q1`` is
    ``0.5 * <x, A x> + <x, b> + c`` with ``A = band_matrix(n, coeffs)``.
    """
    c_arr = _coeff_array(coeffs)
    stencil = _difference_stencil(c_arr)
    m = stencil.size - 1
    q0a = np.atleast_2d(np.asarray(q0, dtype=float))
    q1a = np.atleast_2d(np.asarray(q1, dtype=float))
    if q0a.shape[1] != q1a.shape[1]:
        raise ValueError("q0 and q1 have different widths")
    dof = q0a.shape[1]

    def boundary(tick: int) -> np.ndarray:
        if tick < 0:
            return get_pos(q0a, (tick + 1) * dt)
        return get_pos(q1a, (tick - n) * dt)

    b = np.zeros((n, dof))
    c = 0.0
    for j in range(-m, n):
        ticks = range(j, j + m + 1)
        e = np.zeros(dof)
        for s, tick in zip(stencil, ticks):
            if tick < 0 or tick >= n:
                e = e + s * boundary(tick)
        if not e.any():
            continue
        c += 0.5 * float(np.dot(e, e))
        for s, tick in zip(stencil, ticks):
            if 0 <= tick < n:
                b[tick] += s * e
    return b, c


def regular_chol(a) -> np.ndarray:
    """Dense lower-triangular Cholesky factor of ``a``."""
    aa = np.asarray(a, dtype=float)
    n = aa.shape[0]
    lower = np.zeros((n, n))
    for j in range(n):
        for i in range(j, n):
            s = float(np.dot(lower[i, :j], lower[j, :j]))
            if i == j:
                d = aa[j, j] - s
                if d <= 0:
                    raise ValueError("matrix is not positive definite")
                lower[j, j] = math.sqrt(d)
            else:
                lower[i, j] = (aa[i, j] - s) / lower[j, j]
    return lower


def regular_chol_solve(lower, x) -> np.ndarray:
    """Solve ``L L^T y = x`` for a dense lower-triangular ``L``."""
    la = np.asarray(lower, dtype=float)
    if la.ndim != 2 or la.shape[0] != la.shape[1]:
        raise ValueError("factor must be square")
    n = la.shape[0]
    y = np.array(x, dtype=float)
    if y.shape[0] != n:
        raise ValueError(f"right-hand side has {y.shape[0]} rows, expected {n}")
    for i in range(n):
        y[i] = (y[i] - np.tensordot(la[i, :i], y[:i], axes=1)) / la[i, i]
    for i in range(n - 1, -1, -1):
        y[i] = (y[i] - np.tensordot(la[i + 1 :, i], y[i + 1 :], axes=1)) / la[i, i]
    return y


def rel_err(m1, m2) -> float:
    """Relative difference of two arrays in the max-abs norm."""
    a = np.asarray(m1, dtype=float)
    b = np.asarray(m2, dtype=float)
    scale = max(np.abs(a).max(), np.abs(b).max())
    return float(np.abs(b - a).max() / scale)