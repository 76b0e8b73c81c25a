import numpy as np
import pytest

from statnotes.lsq import (add_intercept, hat_matrix, iprod, least_squares, project,
                           pseudo_inverse, svd_solve, uvec, vnorm)


@pytest.fixture
def design():
    rng = np.random.RandomState(0)
    X = add_intercept(rng.randn(30, 2))
    y = X @ np.array([1.0, 2.0, -3.0]) + rng.randn(30) * 0.1
    return X, y


def test_vector_helpers():
    assert iprod([1, 2, 3], [4, 5, 6]) == 32
    assert vnorm([3, 4]) == 25
    assert np.allclose(uvec([3, 4]), [0.6, 0.8])


def test_uvec_zero_vector():
    with pytest.raises(ValueError):
        uvec([0, 0])


def test_add_intercept_shape():
    X = add_intercept(np.arange(4))
    assert X.shape == (4, 2)
    assert np.all(X[:, 0] == 1)


def test_least_squares_matches_lstsq(design):
    X, y = design
    expected = np.linalg.lstsq(X, y, rcond=None)[0]
    assert np.allclose(least_squares(X[:, 1:], y), expected)
    assert np.allclose(least_squares(X, y, add_intercept_column=False), expected)
    assert np.allclose(svd_solve(X, y), expected)


def test_residuals_orthogonal_to_design(design):
    X, y = design
    residual = y - project(y, X)
    assert np.allclose(X.T @ residual, 0, atol=1e-8)


def test_hat_matrix_symmetric_idempotent(design):
    X, _ = design
    H = hat_matrix(X)
    assert np.allclose(H, H.T)
    assert np.allclose(H @ H, H)
    assert np.trace(H) == pytest.approx(X.shape[1])


def test_pseudo_inverse_handles_collinear_columns():
    x = np.linspace(-1, 1, 20)
    X = add_intercept(np.column_stack([x, 2 * x]))
    y = 1 + 3 * x
    beta = pseudo_inverse(X) @ y
    assert np.all(np.isfinite(beta))
    assert np.allclose(X @ beta, y)
    # minimum-norm split of the slope across the two copies
    assert np.allclose(beta[1:], [0.6, 1.2])
    assert np.allclose(svd_solve(X, y), beta)


def test_visualize_projection_returns_figure():
    from matplotlib.figure import Figure
    from statnotes.lsq import visualize_projection

    assert isinstance(visualize_projection(), Figure)
