import numpy as np
import pytest

from statnotes.boosting import (GradientBoostingClassifier, GradientBoostingRegressor,
                                RegressionTree, cv_n_rounds, log_loss)
from statnotes.datasets import accuracy, make_moons, make_nonlinear, train_test_split
from statnotes.regression import rmse


def test_regression_tree_step_function():
    X = np.arange(10, dtype=float).reshape(-1, 1)
    y = np.where(X[:, 0] < 5, 1.0, 3.0)
    tree = RegressionTree(max_depth=1).fit(X, y)
    assert tree.root['threshold'] == 4.5
    assert np.allclose(tree.predict(X), y)


def test_regression_tree_depth_zero_is_mean():
    X = np.arange(6, dtype=float).reshape(-1, 1)
    y = np.arange(6, dtype=float)
    assert np.allclose(RegressionTree(max_depth=0).fit(X, y).predict(X), 2.5)


def test_log_loss():
    assert log_loss(np.array([1, 0]), np.array([0.5, 0.5])) == pytest.approx(np.log(2))


def test_classifier_training_loss_decreases():
    X, y = make_moons(n_samples=200)
    gb = GradientBoostingClassifier(n_estimators=30).fit(X, y)
    assert len(gb.train_loss_) == 30
    assert gb.train_loss_[-1] < gb.train_loss_[0]
    assert accuracy(y, gb.predict(X)) > 0.9


def test_staged_predict_proba_ends_at_predict_proba():
    X, y = make_moons(n_samples=150)
    gb = GradientBoostingClassifier(n_estimators=10).fit(X, y)
    stages = list(gb.staged_predict_proba(X))
    assert len(stages) == 10
    assert np.allclose(stages[-1], gb.predict_proba(X))
    assert np.allclose(stages[-1], stages[-1].clip(0, 1))


def test_classifier_validation():
    X, y = make_moons(n_samples=20)
    with pytest.raises(ValueError):
        GradientBoostingClassifier().fit(X, y + 1)
    with pytest.raises(ValueError):
        GradientBoostingClassifier(subsample=0)
    with pytest.raises(ValueError):
        GradientBoostingClassifier(learning_rate=0)


def test_subsampled_boosting_is_reproducible():
    X, y = make_moons(n_samples=150)
    a = GradientBoostingClassifier(n_estimators=10, subsample=0.5, random_state=3).fit(X, y)
    b = GradientBoostingClassifier(n_estimators=10, subsample=0.5, random_state=3).fit(X, y)
    assert np.allclose(a.predict_proba(X), b.predict_proba(X))


def test_regressor_beats_mean():
    X, y = make_nonlinear(n_samples=300)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y)
    gb = GradientBoostingRegressor(n_estimators=100, learning_rate=0.1).fit(X_tr, y_tr)
    assert rmse(y_te, gb.predict(X_te)) < 0.6 * rmse(y_te, np.full(len(y_te), y_tr.mean()))
    stages = list(gb.staged_predict(X_te))
    assert np.allclose(stages[-1], gb.predict(X_te))


def test_cv_n_rounds_table():
    X, y = make_moons(n_samples=150, noise=0.3)
    table, best = cv_n_rounds(X, y, n_rounds=20, k=3)
    assert list(table.columns) == ['round', 'train_logloss_mean', 'test_logloss_mean',
                                   'test_logloss_std']
    assert list(table['round']) == list(range(1, 21))
    assert 1 <= best <= 20
    assert table.loc[best - 1, 'test_logloss_mean'] == table['test_logloss_mean'].min()
    assert table['train_logloss_mean'].iloc[-1] < table['train_logloss_mean'].iloc[0]
