"""
DECISION TREES, BAGGING, RANDOM FORESTS — Paradigm: PARTITIONING + AVERAGING

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

A DECISION TREE doesn't fit a function. It CHOPS THE SPACE INTO BOXES.

Recursively:
    1. Find the best feature and threshold to split on
    2. Split the data into two groups
    3. Repeat for each group until a stopping rule fires

Each leaf predicts the class proportions of its training points.

    GINI:     1 - Σᵢ pᵢ²          (0 = pure, 0.5 = 50/50)
    ENTROPY:  -Σᵢ pᵢ log₂ pᵢ      (0 = pure, 1 = 50/50)

The best split maximizes the drop in impurity.

===============================================================
THE PROBLEM: VARIANCE
===============================================================

Deep trees fit the training set almost perfectly and change a lot
when the data changes a little. Low bias, HIGH VARIANCE.

BAGGING (bootstrap aggregating):
    Fit one tree per bootstrap sample and average their class-1
    probabilities. Averaging n noisy estimates cuts the variance.

RANDOM FOREST = bagging + at each split, only look at a random
subset of features (√d by default). Trees become less alike, so
their average improves further.

OUT-OF-BAG (OOB): every bootstrap leaves out ~37% of the rows.
Scoring each row with only the trees that did not see it gives a
free held-out estimate.

===============================================================
MEASURING CLASSIFIERS THAT OUTPUT PROBABILITIES
===============================================================

    accuracy   fraction correct at threshold 0.5
    f1         harmonic mean of precision and recall
    deviance   -2 · log likelihood / n   (normalized so train and
               test sets of different sizes compare)

Probabilities of exactly 0 or 1 are clamped to 1e-12 away from the
edge so one confident mistake does not make the deviance infinite.

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from statnotes import config
from statnotes.datasets import make_moons, train_test_split, plot_decision_boundary


# ============================================================
# METRICS
# ============================================================

def loglikelihood(y, py):
    """Summed Bernoulli log likelihood with probabilities clamped to [1e-12, 1-1e-12]."""
    y = np.asarray(y, dtype=float)
    py = np.asarray(py, dtype=float)
    pysmooth = np.where(py == 0, 1e-12, np.where(py == 1, 1 - 1e-12, py))
    return np.sum(y * np.log(pysmooth) + (1 - y) * np.log(1 - pysmooth))


def accuracy_measures(pred, truth, name='model'):
    """
    One-row table: model, accuracy, f1, deviance.

    pred are class-1 probabilities; a score above 0.5 is a positive call.
    """
    pred = np.asarray(pred, dtype=float)
    truth = np.asarray(truth).astype(int)
    if len(pred) != len(truth):
        raise ValueError(f"pred and truth differ in length: {len(pred)} vs {len(truth)}")

    dev_norm = -2 * loglikelihood(truth, pred) / len(pred)
    called = pred > 0.5

    tp = np.sum(called & (truth == 1))
    fp = np.sum(called & (truth == 0))
    fn = np.sum(~called & (truth == 1))

    precision = tp / (tp + fp) if tp + fp else np.nan
    recall = tp / (tp + fn) if tp + fn else np.nan
    f1 = 2 * precision * recall / (precision + recall) if precision + recall else np.nan

    return pd.DataFrame([{
        'model': name,
        'accuracy': np.mean(called == (truth == 1)),
        'f1': f1,
        'deviance': dev_norm,
    }])


# ============================================================
# DECISION TREE
# ============================================================

class Node:
    """A node in the decision tree; leaves carry class probabilities."""
    def __init__(self, feature=None, threshold=None, left=None, right=None,
                 value=None, n_samples=None):
        self.feature = feature      # feature index to split on
        self.threshold = threshold  # go left when x[feature] < threshold
        self.left = left
        self.right = right
        self.value = value          # class probabilities at a leaf
        self.n_samples = n_samples

    def is_leaf(self):
        return self.left is None


def _impurity(counts, criterion):
    """Row-wise impurity of a (m, n_classes) count matrix."""
    totals = counts.sum(axis=1, keepdims=True)
    probs = counts / np.maximum(totals, 1)
    if criterion == 'gini':
        return 1 - np.sum(probs ** 2, axis=1)
    with np.errstate(divide='ignore', invalid='ignore'):
        logs = np.where(probs > 0, np.log2(probs), 0.0)
    return -np.sum(probs * logs, axis=1)


class DecisionTreeClassifier:
    """
    Decision Tree Classifier, greedy top-down.

    For each node:
        1. If a stopping rule fires → leaf with class proportions
        2. Else split on the (feature, threshold) with the largest
           impurity decrease and recurse
    """

    def __init__(self, max_depth=None, min_samples_split=2, min_samples_leaf=1,
                 criterion='gini', max_features=None):
        """
        Parameters:
        -----------
        max_depth : Maximum tree depth (None = unlimited)
        min_samples_split : Minimum samples required to split a node
        min_samples_leaf : Minimum samples required in a leaf
        criterion : 'gini' or 'entropy'
        max_features : Number of features to consider per split (for Random Forest)
        """
        if criterion not in ('gini', 'entropy'):
            raise ValueError(f"Unknown criterion: {criterion}")
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.criterion = criterion
        self.max_features = max_features
        self.root = None
        self.n_classes = None
        self.n_features = None
        self.feature_importances_ = None

    def _best_split(self, X, y):
        """
        Best (feature, threshold, gain) over candidate features.

        Sorting each feature once lets every split position be scored
        from running class counts.
        """
        n_samples, n_features = X.shape
        if self.max_features is not None:
            features = np.random.choice(n_features, min(self.max_features, n_features),
                                        replace=False)
        else:
            features = range(n_features)

        onehot = np.eye(self.n_classes)[y]
        total = onehot.sum(axis=0)
        parent = _impurity(total[None, :], self.criterion)[0]
        n_left = np.arange(1, n_samples)
        n_right = n_samples - n_left

        best = (None, None, 0.0)
        for feature in features:
            order = np.argsort(X[:, feature], kind='stable')
            xs = X[order, feature]
            left_counts = np.cumsum(onehot[order], axis=0)[:-1]
            right_counts = total - left_counts

            valid = ((xs[1:] != xs[:-1]) &
                     (n_left >= self.min_samples_leaf) &
                     (n_right >= self.min_samples_leaf))
            if not np.any(valid):
                continue

            child = (n_left * _impurity(left_counts, self.criterion) +
                     n_right * _impurity(right_counts, self.criterion)) / n_samples
            gain = np.where(valid, parent - child, -np.inf)
            i = np.argmax(gain)
            if gain[i] > best[2]:
                best = (feature, (xs[i] + xs[i + 1]) / 2, gain[i])

        return best

    def _build_tree(self, X, y, depth=0):
        n_samples = len(y)
        counts = np.bincount(y, minlength=self.n_classes)
        leaf = Node(value=counts / n_samples, n_samples=n_samples)

        if np.count_nonzero(counts) == 1:
            return leaf
        if self.max_depth is not None and depth >= self.max_depth:
            return leaf
        if n_samples < self.min_samples_split:
            return leaf

        feature, threshold, gain = self._best_split(X, y)
        if feature is None or gain <= 0:
            return leaf

        self.feature_importances_[feature] += n_samples * gain

        left_mask = X[:, feature] < threshold
        return Node(
            feature=feature,
            threshold=threshold,
            left=self._build_tree(X[left_mask], y[left_mask], depth + 1),
            right=self._build_tree(X[~left_mask], y[~left_mask], depth + 1),
            n_samples=n_samples,
        )

    def fit(self, X, y, n_classes=None):
        """Build the tree; labels must be 0..K-1."""
        X = np.asarray(X, dtype=float)
        y = np.asarray(y).astype(int)
        if np.any(y < 0):
            raise ValueError("Class labels must be non-negative integers")
        self.n_classes = n_classes or max(2, int(y.max()) + 1)
        self.n_features = X.shape[1]
        self.feature_importances_ = np.zeros(self.n_features)
        self.root = self._build_tree(X, y)

        total = self.feature_importances_.sum()
        if total > 0:
            self.feature_importances_ /= total
        return self

    def _leaf(self, x):
        node = self.root
        while not node.is_leaf():
            node = node.left if x[node.feature] < node.threshold else node.right
        return node

    def predict_proba(self, X):
        """(n_samples, n_classes) class probabilities."""
        X = np.asarray(X, dtype=float)
        return np.array([self._leaf(x).value for x in X])

    def predict(self, X):
        return np.argmax(self.predict_proba(X), axis=1)

    def get_depth(self, node=None):
        node = node or self.root
        if node.is_leaf():
            return 0
        return 1 + max(self.get_depth(node.left), self.get_depth(node.right))

    def get_n_leaves(self, node=None):
        node = node or self.root
        if node.is_leaf():
            return 1
        return self.get_n_leaves(node.left) + self.get_n_leaves(node.right)


# ============================================================
# BAGGING AND RANDOM FORESTS
# ============================================================

def predict_bag(trees, X):
    """Mean over trees of each tree's class-1 probability."""
    if not trees:
        raise ValueError("Need at least one tree")
    preds = np.column_stack([tree.predict_proba(X)[:, 1] for tree in trees])
    return preds.sum(axis=1) / len(trees)


class BaggedTrees:
    """
    Bootstrap aggregation of decision trees.
    """

    def __init__(self, n_estimators=100, max_depth=None, min_samples_split=2,
                 min_samples_leaf=1, random_state=None):
        self.n_estimators = n_estimators
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.random_state = random_state

        self.trees = []
        self.oob_indices = []
        self.oob_score_ = None

    def _max_features(self, n_features):
        return None

    def fit(self, X, y):
        """
        For each tree: draw a bootstrap sample, fit, remember who was left out.
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y).astype(int)
        if self.random_state is not None:
            np.random.seed(self.random_state)

        n_samples, n_features = X.shape
        max_features = self._max_features(n_features)
        n_classes = max(2, int(y.max()) + 1)

        self.trees = []
        self.oob_indices = []
        for _ in range(self.n_estimators):
            indices = np.random.choice(n_samples, n_samples, replace=True)
            oob_mask = np.ones(n_samples, dtype=bool)
            oob_mask[indices] = False
            self.oob_indices.append(np.flatnonzero(oob_mask))

            tree = DecisionTreeClassifier(
                max_depth=self.max_depth,
                min_samples_split=self.min_samples_split,
                min_samples_leaf=self.min_samples_leaf,
                max_features=max_features,
            )
            self.trees.append(tree.fit(X[indices], y[indices], n_classes=n_classes))

        self.oob_score_ = self._oob_score(X, y)
        return self

    def _oob_score(self, X, y):
        """Accuracy using, for each row, only the trees that never saw it."""
        n_samples = len(y)
        votes = np.zeros(n_samples)
        counts = np.zeros(n_samples)
        for tree, oob_idx in zip(self.trees, self.oob_indices):
            if len(oob_idx) > 0:
                votes[oob_idx] += tree.predict_proba(X[oob_idx])[:, 1]
                counts[oob_idx] += 1

        valid = counts > 0
        if not np.any(valid):
            return np.nan
        oob_class = (votes[valid] / counts[valid] > 0.5).astype(int)
        return np.mean(oob_class == y[valid])

    def predict_proba(self, X):
        """Class-1 probability averaged over the trees."""
        return predict_bag(self.trees, X)

    def predict(self, X):
        return (self.predict_proba(X) > 0.5).astype(int)

    @property
    def feature_importances_(self):
        return np.mean([tree.feature_importances_ for tree in self.trees], axis=0)


class RandomForestClassifier(BaggedTrees):
    """
    Random Forest: bagged trees with feature subsampling at each split.
    """

    def __init__(self, n_estimators=100, max_depth=None, min_samples_split=2,
                 min_samples_leaf=1, max_features='sqrt', random_state=None):
        """
        Parameters:
        -----------
        n_estimators : Number of trees
        max_depth : Maximum tree depth (None = unlimited)
        min_samples_split : Minimum samples to split a node
        max_features : Features per split ('sqrt', 'log2', int, or None for all)
        random_state : Random seed
        """
        super().__init__(n_estimators, max_depth, min_samples_split,
                         min_samples_leaf, random_state)
        self.max_features = max_features

    def _max_features(self, n_features):
        if self.max_features == 'sqrt':
            return max(1, int(np.sqrt(n_features)))
        if self.max_features == 'log2':
            return max(1, int(np.log2(n_features)))
        if isinstance(self.max_features, int):
            return min(self.max_features, n_features)
        if self.max_features is None:
            return None
        raise ValueError(f"Unknown max_features: {self.max_features}")


# ============================================================
# DATA
# ============================================================

def make_noisy_moons(n_samples=400, n_noise=6, random_state=42):
    """Two moons plus pure-noise columns that a good model should ignore."""
    X, y = make_moons(n_samples=n_samples, noise=0.25, random_state=random_state)
    rng = np.random.RandomState(random_state)
    return np.c_[X, rng.randn(n_samples, n_noise)], y


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_tree_vs_ensembles():
    """Train/test accuracy, f1 and deviance for tree, bagging and forest."""
    print("\n" + "="*60)
    print("SINGLE TREE vs BAGGING vs RANDOM FOREST")
    print("="*60)

    X, y = make_noisy_moons()
    X_tr, X_te, y_tr, y_te = train_test_split(X, y, test_ratio=0.3)

    tree = DecisionTreeClassifier().fit(X_tr, y_tr)
    bag = BaggedTrees(n_estimators=50, random_state=config.RANDOM_STATE).fit(X_tr, y_tr)
    forest = RandomForestClassifier(n_estimators=50, random_state=config.RANDOM_STATE).fit(X_tr, y_tr)

    rows = []
    for name, model, proba in [('tree', tree, lambda X: tree.predict_proba(X)[:, 1]),
                               ('bagging', bag, bag.predict_proba),
                               ('forest', forest, forest.predict_proba)]:
        rows.append(accuracy_measures(proba(X_tr), y_tr, f'{name}, train'))
        rows.append(accuracy_measures(proba(X_te), y_te, f'{name}, test'))
    table = pd.concat(rows, ignore_index=True)
    print(table.round(3).to_string(index=False))

    print(f"\nOOB accuracy: bagging {bag.oob_score_:.3f}, forest {forest.oob_score_:.3f}")
    print("→ The single tree is perfect on train and pays for it on test.")
    print("→ Its test deviance explodes: confident 0/1 leaves that are wrong.")
    return table


def ablation_experiments():
    print("\n" + "="*60)
    print("ABLATION EXPERIMENTS")
    print("="*60)

    X, y = make_noisy_moons()
    X_tr, X_te, y_tr, y_te = train_test_split(X, y, test_ratio=0.3)

    print("\n1. TREE DEPTH")
    print("-" * 40)
    for depth in [1, 2, 4, 8, None]:
        tree = DecisionTreeClassifier(max_depth=depth).fit(X_tr, y_tr)
        train_acc = np.mean(tree.predict(X_tr) == y_tr)
        test_acc = np.mean(tree.predict(X_te) == y_te)
        print(f"max_depth={str(depth):<5} leaves={tree.get_n_leaves():<4} "
              f"train={train_acc:.3f}  test={test_acc:.3f}")

    print("\n2. NUMBER OF TREES")
    print("-" * 40)
    for n in [1, 5, 20, 50]:
        forest = RandomForestClassifier(n_estimators=n, random_state=0).fit(X_tr, y_tr)
        test_acc = np.mean(forest.predict(X_te) == y_te)
        print(f"n_estimators={n:<3} test={test_acc:.3f}  oob={forest.oob_score_:.3f}")

    print("\n3. FEATURE IMPORTANCE (2 signal + 6 noise columns)")
    print("-" * 40)
    forest = RandomForestClassifier(n_estimators=50, random_state=0).fit(X_tr, y_tr)
    for j, imp in enumerate(forest.feature_importances_):
        print(f"x{j}: {imp:.3f} {'█' * int(imp * 50)}")
    print("→ The two moon coordinates carry nearly all the impurity decrease.")


def visualize_decision_boundaries():
    """Boundaries of a tree, a bag and a forest on 2-D moons."""
    X, y = make_moons(n_samples=300, noise=0.25)
    models = [
        ('decision tree', DecisionTreeClassifier().fit(X, y)),
        ('bagged trees', BaggedTrees(n_estimators=30, random_state=0).fit(X, y)),
        ('random forest', RandomForestClassifier(n_estimators=30, max_features=1,
                                                 random_state=0).fit(X, y)),
    ]
    fig, axes = plt.subplots(1, 3, figsize=(15, 4.5))
    for ax, (name, model) in zip(axes, models):
        plot_decision_boundary(model.predict, X, y, ax=ax, title=name)
    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("DECISION TREES, BAGGING, RANDOM FORESTS")
    print("="*60)

    demo_tree_vs_ensembles()
    ablation_experiments()

    config.save_figure(visualize_decision_boundaries(), 'trees_boundaries')
