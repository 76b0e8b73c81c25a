import numpy as np
import pytest

from statnotes.pca import PCA, low_rank_approximation, make_correlated_features, make_mixed_units


def test_explained_variance_matches_covariance_eigenvalues():
    X = make_correlated_features(n_samples=200, n_features=6)
    pca = PCA().fit(X)
    eigenvalues = np.sort(np.linalg.eigvalsh(np.cov(X, rowvar=False)))[::-1]
    assert np.allclose(pca.explained_variance_, eigenvalues)
    assert pca.explained_variance_ratio_.sum() == pytest.approx(1)


def test_components_orthonormal_with_positive_largest_loading():
    X = make_correlated_features(n_samples=200, n_features=6)
    pca = PCA(n_components=3).fit(X)
    assert np.allclose(pca.components_ @ pca.components_.T, np.eye(3))
    for row in pca.components_:
        assert row[np.argmax(np.abs(row))] > 0


def test_scores_are_uncorrelated():
    X = make_correlated_features(n_samples=300, n_features=5)
    Z = PCA().fit_transform(X)
    C = np.cov(Z, rowvar=False)
    assert np.allclose(C - np.diag(np.diag(C)), 0, atol=1e-8)


def test_inverse_transform_full_rank_is_exact():
    X = make_correlated_features(n_samples=50, n_features=4)
    pca = PCA(scale=True).fit(X)
    assert np.allclose(pca.inverse_transform(pca.transform(X)), X)


def test_two_latent_factors_need_two_components():
    X = make_correlated_features(n_features=20, n_latent=2)
    pca = PCA().fit(X)
    assert pca.n_components_for(0.9) == 2
    assert pca.n_components_for(1.0) <= 20
    with pytest.raises(ValueError):
        pca.n_components_for(0)


def test_scaling_changes_first_component():
    df = make_mixed_units()
    raw = PCA().fit(df.values).loadings(df.columns)
    scaled = PCA(scale=True).fit(df.values).loadings(df.columns)
    assert raw['PC1'].abs().idxmax() == 'income'
    assert scaled['PC1'].abs().idxmax() != 'income'
    assert list(scaled.columns) == ['PC1', 'PC2', 'PC3']


def test_pca_validation():
    with pytest.raises(ValueError):
        PCA().fit(np.ones((1, 3)))
    with pytest.raises(ValueError):
        PCA(n_components=5).fit(np.random.RandomState(0).randn(10, 3))
    X = np.random.RandomState(0).randn(10, 3)
    X[:, 1] = 4.0
    with pytest.raises(ValueError):
        PCA(scale=True).fit(X)


def test_low_rank_error_is_dropped_singular_values():
    X = make_correlated_features(n_samples=60, n_features=8, n_latent=3)
    S = np.linalg.svd(X, compute_uv=False)
    for rank in [1, 3, 5]:
        err = np.sum((X - low_rank_approximation(X, rank)) ** 2)
        assert err == pytest.approx(np.sum(S[rank:] ** 2))
    with pytest.raises(ValueError):
        low_rank_approximation(X, 0)


def test_visualize_pca_returns_figure():
    from matplotlib.figure import Figure
    from statnotes.pca import visualize_pca

    assert isinstance(visualize_pca(), Figure)
