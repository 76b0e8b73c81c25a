import numpy as np
import pytest

from statnotes.datasets import accuracy, make_moons, train_test_split
from statnotes.trees import (BaggedTrees, DecisionTreeClassifier, RandomForestClassifier,
                             accuracy_measures, loglikelihood, make_noisy_moons, predict_bag)


def test_loglikelihood_clamps_certain_mistakes():
    ll = loglikelihood([1, 0], [0.0, 1.0])
    assert np.isfinite(ll)
    assert ll == pytest.approx(2 * np.log(1e-12))
    assert loglikelihood([1, 0], [1.0, 0.0]) == pytest.approx(0, abs=1e-10)


def test_accuracy_measures_row():
    table = accuracy_measures([0.9, 0.2, 0.6, 0.4], [1, 0, 0, 1], name='toy')
    assert list(table.columns) == ['model', 'accuracy', 'f1', 'deviance']
    row = table.iloc[0]
    assert row['model'] == 'toy'
    assert row['accuracy'] == 0.5
    assert row['f1'] == pytest.approx(0.5)
    expected = -2 * np.sum(np.log([0.9, 0.8, 0.4, 0.4])) / 4
    assert row['deviance'] == pytest.approx(expected)


def test_accuracy_measures_threshold_is_strict():
    row = accuracy_measures([0.5, 0.5], [1, 0]).iloc[0]
    assert row['accuracy'] == 0.5
    assert np.isnan(row['f1'])


def test_accuracy_measures_length_mismatch():
    with pytest.raises(ValueError):
        accuracy_measures([0.1, 0.2], [1])


def test_tree_single_split():
    X = np.array([[0.0], [1.0], [2.0], [3.0]])
    y = np.array([0, 0, 1, 1])
    tree = DecisionTreeClassifier().fit(X, y)
    assert tree.get_depth() == 1
    assert tree.get_n_leaves() == 2
    assert tree.root.threshold == 1.5
    assert np.allclose(tree.predict_proba([[0.5], [2.5]]), [[1, 0], [0, 1]])
    assert np.allclose(tree.feature_importances_, [1.0])


def test_tree_respects_max_depth_and_leaf_size():
    X, y = make_moons(n_samples=200)
    deep = DecisionTreeClassifier().fit(X, y)
    stump = DecisionTreeClassifier(max_depth=1).fit(X, y)
    assert accuracy(y, deep.predict(X)) == 1.0
    assert stump.get_depth() == 1
    leafy = DecisionTreeClassifier(min_samples_leaf=20).fit(X, y)

    def leaf_sizes(node):
        if node.is_leaf():
            return [node.n_samples]
        return leaf_sizes(node.left) + leaf_sizes(node.right)
    assert min(leaf_sizes(leafy.root)) >= 20


def test_tree_entropy_and_multiclass():
    X = np.array([[0.0], [1.0], [5.0], [6.0], [10.0], [11.0]])
    y = np.array([0, 0, 1, 1, 2, 2])
    tree = DecisionTreeClassifier(criterion='entropy').fit(X, y)
    assert tree.predict_proba(X).shape == (6, 3)
    assert np.array_equal(tree.predict(X), y)
    with pytest.raises(ValueError):
        DecisionTreeClassifier(criterion='mse')


def test_predict_bag_averages_class_one():
    X = np.array([[0.0], [1.0], [2.0], [3.0]])
    y = np.array([0, 0, 1, 1])
    trees = [DecisionTreeClassifier().fit(X, y), DecisionTreeClassifier(max_depth=0).fit(X, y)]
    assert np.allclose(predict_bag(trees, [[3.0]]), [(1.0 + 0.5) / 2])
    with pytest.raises(ValueError):
        predict_bag([], X)


def test_bagging_beats_single_deep_tree():
    X, y = make_noisy_moons(n_samples=400)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y)
    tree = DecisionTreeClassifier().fit(X_tr, y_tr)
    bag = BaggedTrees(n_estimators=30, random_state=0).fit(X_tr, y_tr)
    assert accuracy(y_te, bag.predict(X_te)) >= accuracy(y_te, tree.predict(X_te))
    assert 0.6 < bag.oob_score_ <= 1.0
    assert len(bag.trees) == 30
    probs = bag.predict_proba(X_te)
    assert np.all((probs >= 0) & (probs <= 1))


def test_random_forest_importances_favor_signal_columns():
    X, y = make_noisy_moons(n_samples=400, n_noise=6)
    forest = RandomForestClassifier(n_estimators=40, max_depth=5, random_state=0).fit(X, y)
    importances = forest.feature_importances_
    assert importances.sum() == pytest.approx(1)
    assert importances[:2].sum() > importances[2:].sum()
    assert forest._max_features(8) == 2


def test_random_forest_bad_max_features():
    X, y = make_moons(n_samples=50)
    with pytest.raises(ValueError):
        RandomForestClassifier(max_features='half', n_estimators=2).fit(X, y)
