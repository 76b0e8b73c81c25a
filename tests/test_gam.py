import numpy as np
import pytest

from statnotes.datasets import make_nonlinear, train_test_split
from statnotes.gam import GAM, PSpline, bspline_basis, difference_penalty
from statnotes.regression import LinearRegression, rmse


def test_bspline_basis_shape_and_partition_of_unity():
    x = np.linspace(0, 1, 50)
    B = bspline_basis(x, n_knots=10, degree=3)
    assert B.shape == (50, 12)
    assert np.allclose(B.sum(axis=1), 1)


def test_bspline_basis_clamps_outside_bounds():
    B_in = bspline_basis([1.0], n_knots=5, bounds=(0, 1))
    B_out = bspline_basis([3.0], n_knots=5, bounds=(0, 1))
    assert np.allclose(B_in, B_out)


def test_bspline_basis_rejects_constant_x():
    with pytest.raises(ValueError):
        bspline_basis(np.ones(5))
    with pytest.raises(ValueError):
        bspline_basis(np.linspace(0, 1, 5), n_knots=1)


def test_difference_penalty_kills_lines():
    P = difference_penalty(8, order=2)
    line = np.arange(8, dtype=float)
    assert np.allclose(P @ line, 0)
    assert np.allclose(P @ np.ones(8), 0)


def test_heavy_penalty_gives_straight_line():
    x = np.linspace(0, 1, 100)
    y = 2 * x + np.sin(6 * x)
    spline = PSpline(lam=1e8).fit(x, y)
    slope, intercept = np.polyfit(x, y, 1)
    assert np.allclose(spline.predict(x), intercept + slope * x, atol=1e-3)
    assert spline.edf_ == pytest.approx(2, abs=0.01)


def test_gcv_chooses_lambda_from_grid():
    rng = np.random.RandomState(0)
    x = np.sort(rng.uniform(0, 1, 200))
    y = np.sin(2 * np.pi * x) + rng.randn(200) * 0.2
    spline = PSpline().fit(x, y)
    assert spline.lam_ in PSpline.LAMBDA_GRID
    assert 2 < spline.edf_ < 20
    assert rmse(np.sin(2 * np.pi * x), spline.predict(x)) < 0.1


def test_gam_beats_linear_on_curved_signal():
    X, y = make_nonlinear(n_samples=400)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y)
    gam = GAM(smooth=[0], linear=[1]).fit(X_tr, y_tr)
    lin = LinearRegression().fit(X_tr, y_tr)
    assert rmse(y_te, gam.predict(X_te)) < 0.7 * rmse(y_te, lin.predict(X_te))
    assert gam.linear_model_.coef_[0] == pytest.approx(0.5, abs=0.1)


def test_gam_partial_dependence_is_centered():
    X, y = make_nonlinear(n_samples=300)
    gam = GAM(smooth=[0, 1]).fit(X, y)
    curve = gam.partial_dependence(0, X[:, 0])
    assert abs(curve.mean()) < 1e-8
    with pytest.raises(ValueError):
        gam.partial_dependence(5, X[:, 0])


def test_gam_rejects_overlapping_terms():
    X, y = make_nonlinear(n_samples=50)
    with pytest.raises(ValueError):
        GAM(smooth=[0], linear=[0]).fit(X, y)
