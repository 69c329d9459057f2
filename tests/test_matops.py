import numpy as np
import pytest

from chomptraj.matops import (
    band_matrix,
    create_b_matrix,
    diag_mul,
    get_pos,
    regular_chol,
    regular_chol_solve,
    rel_err,
    skyline_chol,
    skyline_chol_solve,
)

ACCEL = [1, -4, 6]
VEL = [-1, 2]


def _accel_matrix(n):
    a = np.zeros((n, n))
    for i in range(n):
        if i + 2 < n:
            a[i, i + 2] = 1
        if i + 1 < n:
            a[i, i + 1] = -4
        a[i, i] = 6
        if i > 0:
            a[i, i - 1] = -4
        if i > 1:
            a[i, i - 2] = 1
    return a


@pytest.mark.parametrize("n", [1, 2, 3, 7, 20])
def test_band_matrix_matches_explicit(n):
    assert np.array_equal(band_matrix(n, ACCEL), _accel_matrix(n))


@pytest.mark.parametrize("n", [3, 7, 15])
def test_diag_mul_identity_reproduces_matrix(n):
    a = _accel_matrix(n)
    assert rel_err(a, diag_mul(ACCEL, np.eye(n))) < 1e-5


def test_diag_mul_vector_matches_dense():
    x = np.linspace(-1, 2, 9)
    assert np.allclose(diag_mul(VEL, x), band_matrix(9, VEL) @ x)


@pytest.mark.parametrize("n", [1, 4, 7, 30])
@pytest.mark.parametrize("coeffs", [ACCEL, VEL])
def test_skyline_chol_reconstructs(n, coeffs):
    band = skyline_chol(n, coeffs)
    m = len(coeffs) - 1
    lower = np.zeros((n, n))
    for i in range(n):
        for k in range(min(m, i) + 1):
            lower[i, i - k] = band[i, m - k]
    assert np.allclose(lower @ lower.T, band_matrix(n, coeffs))


@pytest.mark.parametrize("n", [7, 25])
def test_skyline_solve_gives_inverse(n):
    a = _accel_matrix(n)
    m2 = skyline_chol_solve(skyline_chol(n, ACCEL), np.eye(n))
    assert rel_err(np.linalg.inv(a), m2) < 1e-5


def test_skyline_solve_vector():
    n = 10
    rhs = np.arange(1.0, n + 1)
    y = skyline_chol_solve(skyline_chol(n, VEL), rhs)
    assert y.shape == (n,)
    assert np.allclose(band_matrix(n, VEL) @ y, rhs)


def test_skyline_solve_does_not_modify_input():
    rhs = np.ones((5, 2))
    skyline_chol_solve(skyline_chol(5, ACCEL), rhs)
    assert np.array_equal(rhs, np.ones((5, 2)))


def test_skyline_solve_shape_mismatch():
    with pytest.raises(ValueError):
        skyline_chol_solve(skyline_chol(4, ACCEL), np.ones(5))


def test_skyline_chol_not_positive_definite():
    with pytest.raises(ValueError):
        skyline_chol(3, [1, -1])


def test_regular_chol_matches_numpy():
    a = _accel_matrix(7)
    assert np.allclose(regular_chol(a), np.linalg.cholesky(a))


def test_regular_and_skyline_solutions_agree():
    n = 7
    a = _accel_matrix(n)
    m1 = regular_chol_solve(regular_chol(a), np.eye(n))
    m2 = skyline_chol_solve(skyline_chol(n, ACCEL), np.eye(n))
    assert rel_err(m1, m2) < 1e-5


def test_regular_chol_rejects_indefinite():
    with pytest.raises(ValueError):
        regular_chol(np.array([[1.0, 2.0], [2.0, 1.0]]))


def test_rel_err_zero_for_equal():
    a = np.arange(6.0).reshape(2, 3)
    assert rel_err(a, a) == 0.0


def test_get_pos_single_row_is_fixed():
    q = np.array([[1.5, -2.0]])
    assert np.array_equal(get_pos(q, 3.0), q[0])


def test_get_pos_with_velocity():
    q = np.array([[1.0, 2.0], [3.0, -1.0]])
    assert np.allclose(get_pos(q, 2.0), q[0] + 2.0 * q[1])


def test_b_matrix_velocity_straight_line_is_stationary():
    n = 9
    q0 = np.array([[-3.0, 5.0]])
    q1 = np.array([[5.0, -3.0]])
    x = np.array([(i + 1) * (q1[0] - q0[0]) / (n + 1) + q0[0] for i in range(n)])
    b, _ = create_b_matrix(n, VEL, q0, q1, 0.1)
    gradient = diag_mul(VEL, x) + b
    assert np.allclose(gradient, 0.0)


def test_b_matrix_velocity_constant():
    _, c = create_b_matrix(4, VEL, [[1.0]], [[2.0]], 0.1)
    assert c == pytest.approx(2.5)


@pytest.mark.parametrize("coeffs", [ACCEL, VEL])
def test_objective_zero_for_stationary_path(coeffs):
    n = 6
    q = np.array([[3.0, 4.0]])
    x = np.repeat(q, n, axis=0)
    b, c = create_b_matrix(n, coeffs, q, q, 0.2)
    value = 0.5 * np.sum(x * diag_mul(coeffs, x)) + np.sum(x * b) + c
    assert value == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize("coeffs", [ACCEL, VEL])
def test_objective_nonnegative(coeffs):
    rng = np.random.default_rng(0)
    n = 8
    q0 = np.array([[0.0, 1.0]])
    q1 = np.array([[2.0, -1.0]])
    b, c = create_b_matrix(n, coeffs, q0, q1, 0.1)
    for _ in range(20):
        x = rng.normal(size=(n, 2)) * 5
        value = 0.5 * np.sum(x * diag_mul(coeffs, x)) + np.sum(x * b) + c
        assert value >= -1e-9


def test_b_matrix_rejects_unknown_metric():
    with pytest.raises(ValueError):
        create_b_matrix(5, [1, 2, 3], [[0.0]], [[1.0]], 0.1)


def test_b_matrix_rejects_width_mismatch():
    with pytest.raises(ValueError):
        create_b_matrix(5, VEL, [[0.0, 1.0]], [[1.0]], 0.1)