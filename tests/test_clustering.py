import numpy as np
import pandas as pd
import pytest

from statnotes.clustering import (KMeans, bss, ch_index, cluster_criteria, cluster_summary,
                                  cut_tree, hierarchical, sqr_edist, total_ss, wss_cluster,
                                  wss_total)


@pytest.fixture
def blobs():
    rng = np.random.RandomState(0)
    centers = np.array([[0, 0], [10, 0], [0, 10]])
    X = np.vstack([c + rng.randn(40, 2) * 0.5 for c in centers])
    y = np.repeat([0, 1, 2], 40)
    return X, y


def _same_partition(a, b):
    return len(set(zip(a, b))) == len(np.unique(a)) == len(np.unique(b))


def test_sums_of_squares():
    X = np.array([[0.0, 0.0], [2.0, 0.0], [10.0, 0.0], [12.0, 0.0]])
    labels = np.array([0, 0, 1, 1])
    assert sqr_edist([0, 0], [3, 4]) == 25
    assert wss_cluster(X[:2]) == 2
    assert wss_total(X, labels) == 4
    assert total_ss(X) == pytest.approx(104)
    assert bss(X, labels) == pytest.approx(100)
    # (100 / 1) / (4 / 2)
    assert ch_index(X, labels) == pytest.approx(50)


def test_ch_index_undefined_for_one_cluster():
    X = np.random.RandomState(0).randn(10, 2)
    assert np.isnan(ch_index(X, np.zeros(10)))


def test_kmeans_finds_blobs(blobs):
    X, y = blobs
    model = KMeans(n_clusters=3, random_state=0).fit(X)
    assert _same_partition(model.labels_, y)
    assert model.inertia_ == pytest.approx(wss_total(X, model.labels_))
    assert np.array_equal(model.predict(X), model.labels_)


def test_kmeans_random_init(blobs):
    X, y = blobs
    labels = KMeans(n_clusters=3, init='random', n_init=10, random_state=1).fit_predict(X)
    assert _same_partition(labels, y)


def test_kmeans_validation(blobs):
    X, _ = blobs
    with pytest.raises(ValueError):
        KMeans(init='farthest')
    with pytest.raises(ValueError):
        KMeans(n_clusters=0).fit(X)


def test_hierarchical_ward_cut(blobs):
    X, y = blobs
    Z = hierarchical(X)
    assert Z.shape == (len(X) - 1, 4)
    labels = cut_tree(Z, 3)
    assert set(labels) == {0, 1, 2}
    assert _same_partition(labels, y)


def test_hierarchical_metric_check(blobs):
    X, _ = blobs
    with pytest.raises(ValueError):
        hierarchical(X, method='ward', metric='cityblock')
    Z = hierarchical(X, method='average', metric='cityblock')
    assert Z.shape[0] == len(X) - 1


def test_cut_tree_bounds(blobs):
    Z = hierarchical(blobs[0])
    with pytest.raises(ValueError):
        cut_tree(Z, 0)
    assert len(np.unique(cut_tree(Z, 1))) == 1


def test_cut_tree_exact_k_with_tied_heights():
    Z = hierarchical([[0.0], [0.0], [0.0], [10.0]], method='complete')
    labels = cut_tree(Z, 3)
    assert len(np.unique(labels)) == 3
    assert labels[3] not in labels[:3]


def test_cluster_criteria_uses_k_clusters_with_duplicates():
    X = np.array([[0.0, 0.0], [0.0, 0.0], [0.0, 0.0],
                  [5.0, 5.0], [5.0, 5.0], [9.0, 0.0]])
    Z = hierarchical(X)
    for k in range(1, 6):
        assert len(np.unique(cut_tree(Z, k))) == k
    table = cluster_criteria(X, k_max=5, method='ward')
    assert np.all(np.diff(table['wss']) <= 1e-12)


def test_cluster_criteria_peaks_at_true_k(blobs):
    X, _ = blobs
    for method in ['kmeans', 'ward']:
        table = cluster_criteria(X, k_max=6, method=method)
        assert list(table.columns) == ['k', 'wss', 'ch']
        assert list(table['k']) == [1, 2, 3, 4, 5, 6]
        assert np.isnan(table['ch'].iloc[0])
        assert table.loc[table['ch'].idxmax(), 'k'] == 3
        assert table['wss'].iloc[0] == pytest.approx(total_ss(X))


def test_cluster_summary(blobs):
    X, y = blobs
    df = pd.DataFrame(X, columns=['a', 'b'])
    summary = cluster_summary(df, y)
    assert summary.index.name == 'cluster'
    assert list(summary.columns) == ['size', 'a', 'b']
    assert list(summary['size']) == [40, 40, 40]
    assert summary.loc[1, 'a'] == pytest.approx(10, abs=0.5)
