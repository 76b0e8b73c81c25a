import numpy as np
import pandas as pd
import pytest

from statnotes import config
from statnotes.datasets import (GROCERY_ITEMS, accuracy, kfold_indices, load_table,
                                make_baskets, make_circles, make_clustered, make_counts,
                                make_linear, make_reviews, make_seasonal_series,
                                require_columns, train_test_split)


def test_load_table_reads_tsv_and_drops_empty_rows(tmp_path, monkeypatch):
    monkeypatch.setattr(config, 'DATA_DIR', tmp_path)
    (tmp_path / 'toy.tsv').write_text("x\ty\n1\t2\n\t\n3\t4\n")
    df = load_table('toy.tsv')
    assert list(df.columns) == ['x', 'y']
    assert len(df) == 2


def test_load_table_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config, 'DATA_DIR', tmp_path)
    with pytest.raises(FileNotFoundError):
        load_table('nope.csv')


def test_require_columns():
    df = pd.DataFrame({'a': [1], 'b': [2]})
    assert require_columns(df, ['a']) is df
    with pytest.raises(KeyError):
        require_columns(df, ['a', 'c'])


def test_train_test_split_sizes():
    X, y = make_linear(n_samples=100)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y, test_ratio=0.25)
    assert len(X_te) == 25 and len(y_te) == 25
    assert len(X_tr) == 75 and len(y_tr) == 75


def test_train_test_split_rejects_bad_ratio():
    X, y = make_linear(n_samples=10)
    with pytest.raises(ValueError):
        train_test_split(X, y, test_ratio=1.0)


def test_kfold_indices_partition():
    folds = list(kfold_indices(23, k=5))
    assert len(folds) == 5
    tests = np.concatenate([test for _, test in folds])
    assert sorted(tests) == list(range(23))
    for train, test in folds:
        assert len(np.intersect1d(train, test)) == 0
        assert len(train) + len(test) == 23


def test_kfold_indices_bad_k():
    with pytest.raises(ValueError):
        list(kfold_indices(5, k=1))
    with pytest.raises(ValueError):
        list(kfold_indices(5, k=6))


def test_accuracy():
    assert accuracy([0, 1, 1, 0], [0, 1, 0, 0]) == 0.75


def test_generators_are_reproducible():
    assert np.array_equal(make_circles()[0], make_circles()[0])
    assert np.allclose(make_seasonal_series(), make_seasonal_series())


def test_make_clustered_labels():
    X, y = make_clustered(n_samples=200, n_clusters=4)
    assert X.shape == (200, 2)
    assert set(np.unique(y)) == {0, 1, 2, 3}


def test_make_counts_nonnegative():
    X, y, exposure = make_counts(n_samples=50)
    assert X.shape == (50, 2)
    assert np.all(y >= 0)
    assert np.all(exposure > 0)


def test_make_baskets_items():
    baskets = make_baskets(n_baskets=200)
    assert len(baskets) == 200
    assert all(len(b) > 0 for b in baskets)
    assert set().union(*baskets) <= set(GROCERY_ITEMS)


def test_make_reviews():
    texts, labels = make_reviews(n_docs=50)
    assert len(texts) == 50
    assert set(np.unique(labels)) <= {0, 1}
    assert all(isinstance(t, str) for t in texts)
