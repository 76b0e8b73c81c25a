import numpy as np
import pytest

from statnotes.datasets import make_linear
from statnotes.regression import (LinearRegression, gradient_descent, residual_summary,
                                  rmse, rsq)


def test_rmse_and_rsq_perfect_fit():
    y = np.array([1.0, 2.0, 3.0])
    assert rmse(y, y) == 0
    assert rsq(y, y) == 1


def test_rsq_mean_prediction_is_zero():
    y = np.array([1.0, 2.0, 3.0, 4.0])
    assert rsq(y, np.full(4, y.mean())) == pytest.approx(0.0)


def test_rmse_value():
    assert rmse([0, 0], [3, 4]) == pytest.approx(np.sqrt(12.5))


def test_normal_equation_recovers_line():
    X, y = make_linear(n_samples=500, slope=3, intercept=7, noise=0.1)
    model = LinearRegression().fit(X, y)
    assert model.intercept_ == pytest.approx(7, abs=0.1)
    assert model.coef_[0] == pytest.approx(3, abs=0.1)


def test_gd_solver_matches_normal():
    X, y = make_linear(n_samples=200)
    normal = LinearRegression().fit(X, y)
    gd = LinearRegression(method='gd', lr=0.1, n_iters=5000).fit(X, y)
    assert gd.coef_[0] == pytest.approx(normal.coef_[0], abs=1e-3)
    assert gd.intercept_ == pytest.approx(normal.intercept_, abs=1e-3)


def test_unknown_method():
    with pytest.raises(ValueError):
        LinearRegression(method='magic')


def test_gradient_descent_history():
    X, y = make_linear(n_samples=200)
    a, b, history = gradient_descent(X[:, 0], y, lr=0.1, n_iters=3000)
    assert list(history.columns) == ['iteration', 'intercept', 'slope', 'mse']
    assert len(history) == 3000
    assert history['intercept'].iloc[0] == 0 and history['slope'].iloc[0] == 0
    assert history['mse'].iloc[-1] < history['mse'].iloc[0]
    normal = LinearRegression().fit(X, y)
    assert a == pytest.approx(normal.intercept_, abs=1e-3)
    assert b == pytest.approx(normal.coef_[0], abs=1e-3)


def test_gradient_descent_length_mismatch():
    with pytest.raises(ValueError):
        gradient_descent([1, 2, 3], [1, 2])


def test_residual_summary_index():
    summary = residual_summary([1, 2, 3, 4, 5], [1, 2, 3, 4, 5])
    assert list(summary.index) == ['min', '1Q', 'median', '3Q', 'max']
    assert np.allclose(summary.values, 0)


def test_figures_and_walkthrough(output_dir, capsys):
    from statnotes import config
    from statnotes.regression import ablation_experiments, visualize_residuals

    ablation_experiments()
    assert "OUTLIER SENSITIVITY" in capsys.readouterr().out
    path = config.save_figure(visualize_residuals(), "residuals")
    assert path.exists()
