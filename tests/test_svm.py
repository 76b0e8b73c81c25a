import numpy as np
import pytest

from statnotes.datasets import accuracy, make_circles
from statnotes.svm import (SVM, cross_val_accuracy, grid_search, linear_kernel,
                           polynomial_kernel, rbf_kernel)


@pytest.fixture
def separable():
    rng = np.random.RandomState(0)
    X = np.vstack([rng.randn(30, 2) * 0.4 + [-2, -2], rng.randn(30, 2) * 0.4 + [2, 2]])
    y = np.repeat([0, 1], 30)
    return X, y


def test_kernels():
    X = np.array([[1.0, 0.0], [0.0, 2.0]])
    assert np.allclose(linear_kernel(X, X), [[1, 0], [0, 4]])
    K = rbf_kernel(X, X, gamma=0.5)
    assert np.allclose(np.diag(K), 1)
    assert K[0, 1] == pytest.approx(np.exp(-0.5 * 5))
    assert np.allclose(polynomial_kernel(X, X, degree=2, gamma=1, coef0=1), [[4, 1], [1, 25]])


def test_linear_svm_separates(separable):
    X, y = separable
    svm = SVM(C=10.0, kernel='linear').fit(X, y)
    assert accuracy(y, svm.predict(X)) == 1.0
    assert 0 < len(svm.support_vectors) < len(X)
    assert np.all(svm.alpha >= -1e-8) and np.all(svm.alpha <= 10.0 + 1e-8)
    assert np.sum(svm.alpha * svm.y_train) == pytest.approx(0, abs=1e-3)


def test_decision_function_sign_matches_predict(separable):
    X, y = separable
    svm = SVM(kernel='rbf', gamma=0.5).fit(X, y)
    scores = svm.decision_function(X)
    assert np.array_equal(svm.predict(X), (scores >= 0).astype(int))


def test_rbf_beats_linear_on_circles():
    X, y = make_circles(n_samples=120)
    rbf = SVM(C=1.0, kernel='rbf', gamma=1.0).fit(X, y)
    linear = SVM(C=1.0, kernel='linear').fit(X, y)
    assert accuracy(y, rbf.predict(X)) > 0.95
    assert accuracy(y, linear.predict(X)) < 0.8


def test_svm_validation(separable):
    X, y = separable
    with pytest.raises(ValueError):
        SVM(kernel='sigmoid')
    with pytest.raises(ValueError):
        SVM(C=0)
    with pytest.raises(ValueError):
        SVM().fit(X, 2 * y - 1)


def test_cross_val_accuracy(separable):
    X, y = separable
    score = cross_val_accuracy(lambda: SVM(kernel='linear'), X, y, k=3)
    assert score == pytest.approx(1.0)


def test_grid_search_table():
    X, y = make_circles(n_samples=80)
    table = grid_search(X, y, Cs=[0.1, 1.0], gammas=[0.01, 1.0], k=3)
    assert list(table.columns) == ['C', 'gamma', 'cv_accuracy']
    assert len(table) == 4
    assert table['cv_accuracy'].is_monotonic_decreasing
    assert table.iloc[0]['gamma'] == 1.0
