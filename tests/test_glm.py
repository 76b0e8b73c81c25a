import numpy as np
import pytest

from statnotes.datasets import make_binary_outcome, make_counts, make_linear
from statnotes.glm import GLM
from statnotes.lsq import least_squares


def test_unknown_family():
    with pytest.raises(ValueError):
        GLM(family='gamma')


def test_gaussian_matches_least_squares():
    X, y = make_linear(n_samples=100)
    model = GLM(family='gaussian').fit(X, y)
    assert np.allclose(model.coef_, least_squares(X, y))
    assert model.converged_


def test_poisson_with_offset_recovers_rates():
    X, y, exposure = make_counts(n_samples=3000, coef=(0.4, -0.3), intercept=0.5)
    model = GLM(family='poisson').fit(X, y, offset=np.log(exposure))
    assert model.coef_ == pytest.approx([0.5, 0.4, -0.3], abs=0.05)
    assert model.deviance_ < model.null_deviance_
    assert model.overdispersion() == pytest.approx(1.0, abs=0.15)


def test_poisson_predict_scales_with_exposure():
    X, y, exposure = make_counts(n_samples=500)
    model = GLM(family='poisson').fit(X, y, offset=np.log(exposure))
    base = model.predict(X[:3])
    doubled = model.predict(X[:3], offset=np.full(3, np.log(2)))
    assert np.allclose(doubled, 2 * base)
    assert np.allclose(model.predict(X[:3], type='link'), np.log(base))


def test_binomial_summary_table():
    X, y = make_binary_outcome(n_samples=1500)
    model = GLM(family='binomial').fit(X, y)
    table = model.summary(['a', 'b'])
    assert list(table.index) == ['(Intercept)', 'a', 'b']
    assert list(table.columns) == ['estimate', 'std_error', 'z', 'p_value']
    assert table.loc['a', 'estimate'] > 0 and table.loc['b', 'estimate'] < 0
    assert table.loc['b', 'p_value'] < 0.001


def test_invalid_outcomes():
    X = np.zeros((3, 1))
    with pytest.raises(ValueError):
        GLM(family='binomial').fit(X, [0, 1, 2])
    with pytest.raises(ValueError):
        GLM(family='poisson').fit(X, [0, -1, 2])


def test_bad_prediction_type():
    X, y = make_linear(n_samples=20)
    model = GLM().fit(X, y)
    with pytest.raises(ValueError):
        model.predict(X, type='odds')


def test_visualize_poisson_fit_returns_figure():
    from matplotlib.figure import Figure
    from statnotes.glm import visualize_poisson_fit

    assert isinstance(visualize_poisson_fit(), Figure)


def test_separated_binomial_warns_when_not_converged():
    X = np.array([-3.0, -2.0, -1.0, 1.0, 2.0, 3.0])
    y = np.array([0, 0, 0, 1, 1, 1])
    with pytest.warns(RuntimeWarning):
        model = GLM(family='binomial', max_iter=3).fit(X, y)
    assert model.converged_ is False
    assert model.n_iter_ == 3
