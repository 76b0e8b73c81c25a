"""
SHARED DATASETS — Small tables for every lesson

Each lesson loads one small table, fits one model to it and narrates
the result. The tables here are synthetic stand-ins with the same
shape as the classic teaching datasets (a noisy line, a binary
outcome, counts with exposure, a seasonal airline-like series,
grocery baskets, short movie reviews), so every lesson runs without
any files on disk.

Real files can be read with load_table(), which looks them up in
config.DATA_DIR.

USAGE:
    from statnotes.datasets import make_linear, train_test_split

    X, y = make_linear(n_samples=200)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y)
"""

from pathlib import Path
from typing import List, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from statnotes import config


# ============================================================
# FILE LOADING
# ============================================================

def load_table(name, sep=None) -> pd.DataFrame:
    """
    Read a CSV/TSV table and drop fully empty rows.

    Relative names are resolved against config.DATA_DIR. The separator
    is a tab for .tsv/.txt files and a comma otherwise, unless given.
    """
    path = Path(name)
    if not path.is_absolute():
        path = config.DATA_DIR / path
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    if sep is None:
        sep = '\t' if path.suffix.lower() in ('.tsv', '.txt') else ','

    return pd.read_csv(path, sep=sep).dropna(how='all').reset_index(drop=True)


def require_columns(df, columns):
    """Raise KeyError unless every column is present."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"Missing columns: {missing}. Available: {list(df.columns)}")
    return df


# ============================================================
# TRAIN/TEST SPLIT UTILITY
# ============================================================

def train_test_split(X, y, test_ratio=0.2, random_state=42):
    """Simple train/test split."""
    if not 0 < test_ratio < 1:
        raise ValueError(f"test_ratio must be in (0, 1), got {test_ratio}")

    np.random.seed(random_state)
    n = len(y)
    idx = np.random.permutation(n)
    n_test = int(n * test_ratio)

    test_idx = idx[:n_test]
    train_idx = idx[n_test:]

    return X[train_idx], X[test_idx], y[train_idx], y[test_idx]


def kfold_indices(n, k=5, random_state=42):
    """Shuffled (train_idx, test_idx) pairs for k folds."""
    if not 2 <= k <= n:
        raise ValueError(f"k must be between 2 and {n}, got {k}")
    rng = np.random.RandomState(random_state)
    folds = np.array_split(rng.permutation(n), k)
    for i in range(k):
        train = np.concatenate([folds[j] for j in range(k) if j != i])
        yield train, folds[i]


def accuracy(y_true, y_pred):
    """Classification accuracy."""
    return np.mean(np.asarray(y_true) == np.asarray(y_pred))


# ============================================================
# REGRESSION DATA
# ============================================================

def make_linear(n_samples=200, slope=3.0, intercept=7.0, noise=0.5, random_state=42):
    """
    y = intercept + slope * x + noise, x uniform on [0, 2].

    Returns X with shape (n, 1) and y with shape (n,).
    """
    np.random.seed(random_state)
    X = 2 * np.random.rand(n_samples, 1)
    y = intercept + slope * X[:, 0] + np.random.randn(n_samples) * noise
    return X, y


def make_nonlinear(n_samples=300, noise=0.3, random_state=42):
    """
    Two inputs with a curved and a straight effect:

        y = sin(2 x1) + 0.5 x2 + noise

    x1 carries the nonlinearity a GAM should find; x2 is linear.
    """
    np.random.seed(random_state)
    x1 = np.random.uniform(-3, 3, n_samples)
    x2 = np.random.uniform(-2, 2, n_samples)
    y = np.sin(2 * x1) + 0.5 * x2 + np.random.randn(n_samples) * noise
    return np.column_stack([x1, x2]), y


# ============================================================
# CLASSIFICATION DATA
# ============================================================

def make_binary_outcome(n_samples=500, coef=(1.5, -2.0), intercept=-0.5, random_state=42):
    """
    Binary outcome from a true logistic model.

        P(y=1 | x) = inv_logit(intercept + x @ coef)
    """
    np.random.seed(random_state)
    coef = np.asarray(coef, dtype=float)
    X = np.random.randn(n_samples, len(coef))
    eta = intercept + X @ coef
    p = 1 / (1 + np.exp(-eta))
    y = (np.random.rand(n_samples) < p).astype(int)
    return X, y


def make_circles(n_samples=400, noise=0.1, random_state=42):
    """Concentric circles: inner ring is class 0, outer ring class 1."""
    np.random.seed(random_state)
    n = n_samples // 2

    theta0 = np.random.rand(n) * 2 * np.pi
    r0 = 1 + np.random.randn(n) * noise
    X0 = np.column_stack([r0 * np.cos(theta0), r0 * np.sin(theta0)])

    theta1 = np.random.rand(n) * 2 * np.pi
    r1 = 3 + np.random.randn(n) * noise
    X1 = np.column_stack([r1 * np.cos(theta1), r1 * np.sin(theta1)])

    X = np.vstack([X0, X1])
    y = np.array([0]*n + [1]*n)

    idx = np.random.permutation(len(y))
    return X[idx], y[idx]


def make_moons(n_samples=400, noise=0.15, random_state=42):
    """Two interleaved half-moons."""
    np.random.seed(random_state)
    n = n_samples // 2

    theta0 = np.linspace(0, np.pi, n)
    X0 = np.column_stack([np.cos(theta0), np.sin(theta0)])
    X0 += np.random.randn(n, 2) * noise

    theta1 = np.linspace(0, np.pi, n)
    X1 = np.column_stack([1 - np.cos(theta1), 0.5 - np.sin(theta1)])
    X1 += np.random.randn(n, 2) * noise

    X = np.vstack([X0, X1])
    y = np.array([0]*n + [1]*n)

    idx = np.random.permutation(len(y))
    return X[idx], y[idx]


# ============================================================
# COUNT DATA
# ============================================================

def make_counts(n_samples=400, coef=(0.4, -0.3), intercept=0.5, random_state=42):
    """
    Poisson counts with varying exposure.

        log E[y] = log(exposure) + intercept + x @ coef

    Returns X, y and exposure (e.g. claims per policy-year).
    """
    np.random.seed(random_state)
    coef = np.asarray(coef, dtype=float)
    X = np.random.randn(n_samples, len(coef))
    exposure = np.random.uniform(0.5, 3.0, n_samples)
    mu = exposure * np.exp(intercept + X @ coef)
    y = np.random.poisson(mu)
    return X, y, exposure


# ============================================================
# CLUSTER DATA
# ============================================================

def make_clustered(n_samples=300, n_clusters=4, spread=0.6, random_state=42):
    """
    Blobs with known cluster labels (used only to check the result).
    """
    np.random.seed(random_state)

    n_per_cluster = n_samples // n_clusters
    centers = np.random.randn(n_clusters, 2) * 5
    X = []
    y = []

    for i in range(n_clusters):
        X.append(np.random.randn(n_per_cluster, 2) * spread + centers[i])
        y.extend([i] * n_per_cluster)

    X = np.vstack(X)
    y = np.array(y)

    idx = np.random.permutation(len(y))
    return X[idx], y[idx]


# ============================================================
# TIME SERIES
# ============================================================

def make_seasonal_series(n=144, level=100.0, slope=1.5, amplitude=20.0,
                         period=12, noise=5.0, random_state=42):
    """
    Monthly series with linear trend and yearly seasonality.

    Same shape as the classic airline passengers data: 12 years of
    months, a steady climb, a summer peak.
    """
    np.random.seed(random_state)
    t = np.arange(n)
    trend = level + slope * t
    season = amplitude * np.sin(2 * np.pi * t / period)
    return trend + season + np.random.randn(n) * noise


# ============================================================
# TRANSACTIONS
# ============================================================

GROCERY_ITEMS = [
    'whole milk', 'other vegetables', 'rolls/buns', 'soda', 'yogurt',
    'bottled water', 'root vegetables', 'tropical fruit', 'shopping bags',
    'sausage', 'pastry', 'citrus fruit', 'bottled beer', 'newspapers',
    'canned beer', 'pip fruit', 'butter', 'domestic eggs', 'coffee', 'beef',
]


def make_baskets(n_baskets=1000, random_state=42) -> List[frozenset]:
    """
    Grocery baskets with planted associations.

    Items are drawn with popularity decaying down GROCERY_ITEMS. On top of
    that, yogurt pulls in whole milk, root vegetables pull in other
    vegetables, and beer goes with sausage, so there are real rules to
    find.
    """
    np.random.seed(random_state)
    popularity = 0.25 * 0.9 ** np.arange(len(GROCERY_ITEMS))
    baskets = []

    for _ in range(n_baskets):
        chosen = np.random.rand(len(GROCERY_ITEMS)) < popularity
        basket = {item for item, keep in zip(GROCERY_ITEMS, chosen) if keep}

        if 'yogurt' in basket and np.random.rand() < 0.7:
            basket.add('whole milk')
        if 'root vegetables' in basket and np.random.rand() < 0.8:
            basket.add('other vegetables')
        if 'bottled beer' in basket and np.random.rand() < 0.6:
            basket.add('sausage')

        if not basket:
            basket.add(GROCERY_ITEMS[np.random.randint(len(GROCERY_ITEMS))])
        baskets.append(frozenset(basket))

    return baskets


# ============================================================
# TEXT
# ============================================================

_POSITIVE = ['great', 'wonderful', 'moving', 'brilliant', 'funny', 'superb', 'loved']
_NEGATIVE = ['boring', 'awful', 'dull', 'terrible', 'waste', 'predictable', 'hated']
_NEUTRAL = ['movie', 'film', 'plot', 'acting', 'story', 'ending', 'characters',
            'scene', 'director', 'script', 'cast', 'music']


def make_reviews(n_docs=400, words_per_doc=20, random_state=42) -> Tuple[List[str], np.ndarray]:
    """
    Tiny labeled review corpus: label 1 reviews lean on positive words,
    label 0 on negative ones, and everything shares neutral filler.
    """
    np.random.seed(random_state)
    texts = []
    labels = np.random.randint(0, 2, n_docs)

    for label in labels:
        tone = _POSITIVE if label == 1 else _NEGATIVE
        other = _NEGATIVE if label == 1 else _POSITIVE
        words = ['the', 'this']
        for _ in range(words_per_doc):
            r = np.random.rand()
            if r < 0.25:
                words.append(tone[np.random.randint(len(tone))])
            elif r < 0.30:
                words.append(other[np.random.randint(len(other))])
            else:
                words.append(_NEUTRAL[np.random.randint(len(_NEUTRAL))])
        texts.append(' '.join(words).capitalize() + '.')

    return texts, labels


# ============================================================
# VISUALIZATION UTILITIES
# ============================================================

def plot_dataset(X, y, ax=None, title='', alpha=0.6, s=20):
    """Scatter a 2D dataset colored by label."""
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(5, 5))

    classes = np.unique(y)
    colors = plt.cm.tab10(np.linspace(0, 1, max(len(classes), 2)))

    for i, c in enumerate(classes):
        mask = y == c
        ax.scatter(X[mask, 0], X[mask, 1], c=[colors[i]], label=f'{c}',
                   alpha=alpha, s=s, edgecolors='none')

    ax.set_title(title)
    ax.legend(loc='upper right', fontsize=8)
    return ax


def plot_decision_boundary(model_predict, X, y, ax=None, title='',
                           resolution=100, alpha=0.3):
    """
    Shade the regions a classifier assigns to each class.

    model_predict: function that takes X and returns predictions
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(5, 5))

    x_min, x_max = X[:, 0].min() - 0.5, X[:, 0].max() + 0.5
    y_min, y_max = X[:, 1].min() - 0.5, X[:, 1].max() + 0.5

    xx, yy = np.meshgrid(np.linspace(x_min, x_max, resolution),
                         np.linspace(y_min, y_max, resolution))

    Z = model_predict(np.c_[xx.ravel(), yy.ravel()])
    Z = np.asarray(Z).reshape(xx.shape)

    ax.contourf(xx, yy, Z, alpha=alpha, cmap=plt.cm.RdYlBu)
    ax.contour(xx, yy, Z, colors='k', linewidths=0.5, alpha=0.5)

    plot_dataset(X, y, ax=ax, title=title, alpha=0.8, s=15)
    return ax


if __name__ == '__main__':
    print("=" * 60)
    print("SHARED DATASETS")
    print("=" * 60)

    X, y = make_linear()
    print(f"linear        X: {X.shape}  y: {y.shape}")
    X, y = make_binary_outcome()
    print(f"binary        X: {X.shape}  positives: {y.mean():.2f}")
    X, y, exposure = make_counts()
    print(f"counts        X: {X.shape}  mean count: {y.mean():.2f}")
    X, y = make_clustered()
    print(f"clustered     X: {X.shape}  clusters: {len(np.unique(y))}")
    series = make_seasonal_series()
    print(f"seasonal      n: {len(series)}")
    baskets = make_baskets()
    print(f"baskets       n: {len(baskets)}  mean size: {np.mean([len(b) for b in baskets]):.2f}")
    texts, labels = make_reviews()
    print(f"reviews       n: {len(texts)}  e.g. {texts[0][:50]!r}")

    fig, axes = plt.subplots(1, 3, figsize=(15, 5))
    plot_dataset(*make_clustered(), ax=axes[0], title='clustered')
    plot_dataset(*make_circles(), ax=axes[1], title='circles')
    plot_dataset(*make_moons(), ax=axes[2], title='moons')
    plt.tight_layout()
    config.save_figure(fig, 'datasets')
