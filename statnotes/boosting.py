"""
GRADIENT BOOSTING — Paradigm: COMMITTEE (Boosting Residuals)

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Instead of averaging trees (Random Forest), train each tree to
CORRECT THE ERRORS of the ensemble so far.

F₀(x) = initial prediction
F₁(x) = F₀(x) + η × h₁(x)    where h₁ fits residuals of F₀
F₂(x) = F₁(x) + η × h₂(x)    where h₂ fits residuals of F₁
...

===============================================================
GRADIENT DESCENT IN FUNCTION SPACE
===============================================================

The "residual" each tree fits is the NEGATIVE GRADIENT of the loss
with respect to the current prediction F:

    squared loss  ½(y - F)²       →  r = y - F
    log loss      (F on log-odds) →  r = y - sigmoid(F)

Small trees (depth 2-5) and a small learning rate η make each step
cautious. SUBSAMPLE < 1 fits each tree on a random fraction of the
rows (stochastic gradient boosting), which adds regularization.

===============================================================
HOW MANY ROUNDS?
===============================================================

Training loss only goes down. Held-out loss goes down, flattens,
then climbs again. Run k-fold cross-validation, record the held-out
log loss after every round, and stop where its mean is lowest.

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from statnotes import config
from statnotes.datasets import (make_moons, make_nonlinear, train_test_split,
                                accuracy, kfold_indices)
from statnotes.regression import rmse
from statnotes.trees import loglikelihood


class RegressionTree:
    """Least-squares regression tree used as the weak learner."""

    def __init__(self, max_depth=3, min_samples_split=2):
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.root = None

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        self.root = self._build_tree(X, y, depth=0)
        return self

    def _best_split(self, X, y):
        """Split that most reduces the summed squared error."""
        n_samples, n_features = X.shape
        best_gain = 0.0
        best_feature = None
        best_threshold = None
        parent_sse = np.sum((y - y.mean()) ** 2)
        n_left = np.arange(1, n_samples)
        n_right = n_samples - n_left

        for feature in range(n_features):
            order = np.argsort(X[:, feature], kind='stable')
            xs, ys = X[order, feature], y[order]

            # SSE = Σy² - (Σy)²/n on each side
            s = np.cumsum(ys)[:-1]
            s2 = np.cumsum(ys ** 2)[:-1]
            left_sse = s2 - s ** 2 / n_left
            right_sse = (s2[-1] + ys[-1] ** 2 - s2) - (s[-1] + ys[-1] - s) ** 2 / n_right

            gain = np.where(xs[1:] != xs[:-1], parent_sse - left_sse - right_sse, -np.inf)
            i = np.argmax(gain)
            if gain[i] > best_gain:
                best_gain = gain[i]
                best_feature = feature
                best_threshold = (xs[i] + xs[i + 1]) / 2

        return best_feature, best_threshold

    def _build_tree(self, X, y, depth):
        n_samples = len(y)

        if (depth >= self.max_depth or
                n_samples < self.min_samples_split or
                np.all(y == y[0])):
            return {'leaf': True, 'value': np.mean(y)}

        feature, threshold = self._best_split(X, y)
        if feature is None:
            return {'leaf': True, 'value': np.mean(y)}

        left_mask = X[:, feature] < threshold
        return {
            'leaf': False,
            'feature': feature,
            'threshold': threshold,
            'left': self._build_tree(X[left_mask], y[left_mask], depth + 1),
            'right': self._build_tree(X[~left_mask], y[~left_mask], depth + 1),
        }

    def _predict_sample(self, x, node):
        while not node['leaf']:
            node = node['left'] if x[node['feature']] < node['threshold'] else node['right']
        return node['value']

    def predict(self, X):
        X = np.asarray(X, dtype=float)
        return np.array([self._predict_sample(x, self.root) for x in X])


class _GradientBoosting:
    """Shared stage-wise fitting; subclasses supply the loss pieces."""

    def __init__(self, n_estimators=100, learning_rate=0.1, max_depth=3,
                 min_samples_split=2, subsample=1.0, random_state=None):
        """
        Parameters:
        -----------
        n_estimators : Number of boosting stages (trees)
        learning_rate : Shrinkage parameter (η)
        max_depth : Max depth of each tree (usually small, 3-5)
        min_samples_split : Min samples to split node
        subsample : Fraction of rows each tree is fit on
        random_state : Seed for the row subsampling
        """
        if not 0 < subsample <= 1:
            raise ValueError(f"subsample must be in (0, 1], got {subsample}")
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        self.n_estimators = n_estimators
        self.learning_rate = learning_rate
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.subsample = subsample
        self.random_state = random_state

        self.trees = []
        self.init_pred = None
        self.train_loss_ = []

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if self.random_state is not None:
            np.random.seed(self.random_state)

        n_samples = len(y)
        self.init_pred = self._init(y)
        F = np.full(n_samples, self.init_pred)
        n_sub = max(2, int(round(self.subsample * n_samples)))

        self.trees = []
        self.train_loss_ = []
        for _ in range(self.n_estimators):
            residuals = self._negative_gradient(y, F)
            if self.subsample < 1:
                rows = np.random.choice(n_samples, n_sub, replace=False)
            else:
                rows = slice(None)

            tree = RegressionTree(max_depth=self.max_depth,
                                  min_samples_split=self.min_samples_split)
            tree.fit(X[rows], residuals[rows])
            self.trees.append(tree)

            F += self.learning_rate * tree.predict(X)
            self.train_loss_.append(self._loss(y, F))

        return self

    def _staged_raw(self, X):
        X = np.asarray(X, dtype=float)
        F = np.full(X.shape[0], self.init_pred)
        for tree in self.trees:
            F = F + self.learning_rate * tree.predict(X)
            yield F

    def _raw(self, X):
        F = np.full(np.asarray(X).shape[0], self.init_pred)
        for F in self._staged_raw(X):
            pass
        return F


class GradientBoostingClassifier(_GradientBoosting):
    """
    Gradient Boosting for binary classification on the log-odds scale.
    """

    def _init(self, y):
        # log-odds of the base rate
        p_init = np.clip(np.mean(y), 0.01, 0.99)
        return np.log(p_init / (1 - p_init))

    def _negative_gradient(self, y, F):
        return y - _sigmoid(F)

    def _loss(self, y, F):
        return log_loss(y, _sigmoid(F))

    def fit(self, X, y):
        if set(np.unique(y)) - {0, 1}:
            raise ValueError("GradientBoostingClassifier needs 0/1 labels")
        return super().fit(X, y)

    def staged_predict_proba(self, X):
        """Class-1 probability after each boosting round."""
        for F in self._staged_raw(X):
            yield _sigmoid(F)

    def predict_proba(self, X):
        return _sigmoid(self._raw(X))

    def predict(self, X):
        return (self.predict_proba(X) >= 0.5).astype(int)


class GradientBoostingRegressor(_GradientBoosting):
    """
    Gradient Boosting with squared loss: each tree fits plain residuals.
    """

    def _init(self, y):
        return np.mean(y)

    def _negative_gradient(self, y, F):
        return y - F

    def _loss(self, y, F):
        return np.mean((y - F) ** 2)

    def staged_predict(self, X):
        for F in self._staged_raw(X):
            yield F

    def predict(self, X):
        return self._raw(X)


def _sigmoid(x):
    return 1 / (1 + np.exp(-np.clip(x, -500, 500)))


def log_loss(y, p):
    """Mean negative log likelihood, probabilities clamped away from 0 and 1."""
    return -loglikelihood(y, p) / len(y)


def cv_n_rounds(X, y, n_rounds=100, k=5, learning_rate=0.1, max_depth=3,
                subsample=1.0, random_state=42):
    """
    k-fold CV log loss after every boosting round.

    Returns (table, best_round) where table has one row per round with
    train/test mean log loss and the test standard deviation.
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    train_loss = np.zeros((k, n_rounds))
    test_loss = np.zeros((k, n_rounds))

    for fold, (train, test) in enumerate(kfold_indices(len(y), k, random_state)):
        model = GradientBoostingClassifier(n_estimators=n_rounds, learning_rate=learning_rate,
                                           max_depth=max_depth, subsample=subsample,
                                           random_state=random_state)
        model.fit(X[train], y[train])
        train_loss[fold] = model.train_loss_
        for r, p in enumerate(model.staged_predict_proba(X[test])):
            test_loss[fold, r] = log_loss(y[test], p)

    table = pd.DataFrame({
        'round': np.arange(1, n_rounds + 1),
        'train_logloss_mean': train_loss.mean(axis=0),
        'test_logloss_mean': test_loss.mean(axis=0),
        'test_logloss_std': test_loss.std(axis=0),
    })
    best_round = int(table.loc[table['test_logloss_mean'].idxmin(), 'round'])
    return table, best_round


# ============================================================
# ABLATION EXPERIMENTS
# ============================================================

def ablation_experiments():
    print("\n" + "="*60)
    print("ABLATION EXPERIMENTS")
    print("="*60)

    X, y = make_moons(n_samples=400, noise=0.25)
    X_train, X_test, y_train, y_test = train_test_split(X, y)

    print("\n1. EFFECT OF NUMBER OF TREES (n_estimators)")
    print("-" * 40)
    for n_trees in [1, 5, 10, 25, 50, 100]:
        gb = GradientBoostingClassifier(n_estimators=n_trees, learning_rate=0.1,
                                        max_depth=3).fit(X_train, y_train)
        print(f"n_trees={n_trees:<4} accuracy={accuracy(y_test, gb.predict(X_test)):.3f}")

    print("\n2. EFFECT OF LEARNING RATE (η)")
    print("-" * 40)
    for lr in [0.01, 0.1, 0.5, 1.0]:
        gb = GradientBoostingClassifier(n_estimators=50, learning_rate=lr,
                                        max_depth=3).fit(X_train, y_train)
        print(f"lr={lr:<5} accuracy={accuracy(y_test, gb.predict(X_test)):.3f}  "
              f"test log loss={log_loss(y_test, gb.predict_proba(X_test)):.3f}")
    print("→ Lower lr = slower learning, often better generalization")

    print("\n3. EFFECT OF SUBSAMPLE")
    print("-" * 40)
    for subsample in [0.3, 0.5, 0.8, 1.0]:
        gb = GradientBoostingClassifier(n_estimators=100, learning_rate=0.1, max_depth=3,
                                        subsample=subsample, random_state=0).fit(X_train, y_train)
        print(f"subsample={subsample:<4} test log loss="
              f"{log_loss(y_test, gb.predict_proba(X_test)):.3f}")


def demo_cv_rounds():
    """Pick the number of rounds by cross-validated log loss."""
    print("\n" + "="*60)
    print("CHOOSING THE NUMBER OF ROUNDS BY CROSS-VALIDATION")
    print("="*60)
    X, y = make_moons(n_samples=300, noise=0.3)
    table, best = cv_n_rounds(X, y, n_rounds=150, k=5, learning_rate=0.1, max_depth=3)
    print(table.iloc[[0, 9, 24, 49, 99, 149]].round(4).to_string(index=False))
    print(f"\nbest round: {best}  (test log loss {table['test_logloss_mean'].min():.4f})")
    print("→ Train loss keeps falling; held-out loss bottoms out and turns up.")
    return table, best


def demo_regression():
    """Squared-loss boosting on a curved surface."""
    print("\n" + "="*60)
    print("GRADIENT BOOSTING REGRESSION")
    print("="*60)
    X, y = make_nonlinear(n_samples=400)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y)
    model = GradientBoostingRegressor(n_estimators=200, learning_rate=0.05,
                                      max_depth=3).fit(X_tr, y_tr)
    for r, pred in enumerate(model.staged_predict(X_te), start=1):
        if r in (1, 10, 50, 200):
            print(f"round {r:<4} test RMSE = {rmse(y_te, pred):.3f}")


def visualize_cv_curve():
    """Train and held-out log loss by round."""
    X, y = make_moons(n_samples=300, noise=0.3)
    table, best = cv_n_rounds(X, y, n_rounds=150, k=5)

    fig, ax = plt.subplots(1, 1, figsize=(9, 5))
    ax.plot(table['round'], table['train_logloss_mean'], label='train')
    ax.plot(table['round'], table['test_logloss_mean'], label='held-out')
    ax.fill_between(table['round'],
                    table['test_logloss_mean'] - table['test_logloss_std'],
                    table['test_logloss_mean'] + table['test_logloss_std'], alpha=0.2)
    ax.axvline(best, color='red', linestyle='--', label=f'best round = {best}')
    ax.set_xlabel('boosting round')
    ax.set_ylabel('log loss')
    ax.set_title('5-fold cross-validated log loss')
    ax.legend()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("GRADIENT BOOSTING — COMMITTEE (Boosting Residuals)")
    print("="*60)

    ablation_experiments()
    demo_cv_rounds()
    demo_regression()

    config.save_figure(visualize_cv_curve(), 'boosting_cv')
