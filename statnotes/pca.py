"""
PRINCIPAL COMPONENT ANALYSIS — Paradigm: LINEAR PROJECTION

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Find the directions where data VARIES MOST. Project onto them.

    1. Center the data (and optionally scale each column to unit
       variance, so that units do not decide the answer)
    2. Take the SVD of the centered matrix:  X = U Σ V'
    3. Rows of V' are the principal directions
    4. σ_i² / (n - 1) is the variance along direction i

The SVD route never forms X'X, so it stays stable and works even
when there are more columns than rows.

===============================================================
THE SVD AS BEST LOW-RANK APPROXIMATION
===============================================================

Keep only the top r singular triples:

    X_r = U_r Σ_r V_r'

Among all rank-r matrices, X_r is the CLOSEST to X (Eckart-Young):

    ||X - X_r||²_F = Σ_{i>r} σ_i²

So "how many components" is "how much of Σσ² do I need to keep".

===============================================================
READING THE RESULT
===============================================================

    LOADINGS:   the weight each original variable gets in a PC
    SCORES:     the coordinates of each row in PC space
    SCREE PLOT: variance per component; look for the elbow

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from statnotes import config
from statnotes.datasets import make_clustered


class PCA:
    """
    PCA via Singular Value Decomposition.

    Parameters:
    -----------
    n_components : int or None
        Number of components to keep (None keeps all).
    scale : bool
        Divide each column by its standard deviation after centering.
    """

    def __init__(self, n_components=None, scale=False):
        self.n_components = n_components
        self.scale = scale

        self.components_ = None
        self.explained_variance_ = None
        self.explained_variance_ratio_ = None
        self.all_explained_variance_ratio_ = None
        self.singular_values_ = None
        self.mean_ = None
        self.scale_ = None

    def _prepare(self, X):
        return (np.asarray(X, dtype=float) - self.mean_) / self.scale_

    def fit(self, X):
        X = np.asarray(X, dtype=float)
        n, d = X.shape
        if n < 2:
            raise ValueError("PCA requires at least 2 samples")
        k = min(n, d) if self.n_components is None else self.n_components
        if not 1 <= k <= min(n, d):
            raise ValueError(f"n_components must be between 1 and {min(n, d)}, got {k}")

        self.mean_ = X.mean(axis=0)
        if self.scale:
            sd = X.std(axis=0, ddof=1)
            if np.any(sd == 0):
                raise ValueError("Cannot scale a constant column")
            self.scale_ = sd
        else:
            self.scale_ = np.ones(d)

        U, S, Vt = np.linalg.svd(self._prepare(X), full_matrices=False)

        # largest loading of each component positive
        signs = np.sign(Vt[np.arange(len(Vt)), np.argmax(np.abs(Vt), axis=1)])
        Vt = Vt * signs[:, None]

        variance = S ** 2 / (n - 1)
        total = variance.sum()
        ratio = variance / total if total > 0 else np.zeros_like(variance)

        self.components_ = Vt[:k]
        self.singular_values_ = S[:k]
        self.explained_variance_ = variance[:k]
        self.explained_variance_ratio_ = ratio[:k]
        self.all_explained_variance_ratio_ = ratio
        return self

    def transform(self, X):
        return self._prepare(X) @ self.components_.T

    def fit_transform(self, X):
        return self.fit(X).transform(X)

    def inverse_transform(self, Z):
        """Back to the original units. Lossy when components were dropped."""
        return (np.asarray(Z) @ self.components_) * self.scale_ + self.mean_

    def loadings(self, names=None):
        """Variables × components table of weights."""
        if names is None:
            names = [f'x{j}' for j in range(self.components_.shape[1])]
        columns = [f'PC{i + 1}' for i in range(self.components_.shape[0])]
        return pd.DataFrame(self.components_.T, index=list(names), columns=columns)

    def n_components_for(self, ratio):
        """Smallest number of components whose cumulative ratio reaches `ratio`."""
        if not 0 < ratio <= 1:
            raise ValueError(f"ratio must be in (0, 1], got {ratio}")
        cumulative = np.cumsum(self.all_explained_variance_ratio_)
        return int(np.searchsorted(cumulative, ratio - 1e-12) + 1)


def low_rank_approximation(X, rank):
    """Best rank-r approximation of X (no centering) by truncated SVD."""
    X = np.asarray(X, dtype=float)
    if not 1 <= rank <= min(X.shape):
        raise ValueError(f"rank must be between 1 and {min(X.shape)}, got {rank}")
    U, S, Vt = np.linalg.svd(X, full_matrices=False)
    return (U[:, :rank] * S[:rank]) @ Vt[:rank]


# ============================================================
# DATA
# ============================================================

def make_correlated_features(n_samples=500, n_features=10, n_latent=2, random_state=42):
    """Features driven by a few latent factors plus noise."""
    np.random.seed(random_state)
    Z = np.random.randn(n_samples, n_latent)
    W = np.random.randn(n_latent, n_features)
    return Z @ W + 0.3 * np.random.randn(n_samples, n_features)


def make_mixed_units(n_samples=300, random_state=42):
    """Three related measurements, one of them in much larger units."""
    np.random.seed(random_state)
    size = np.random.randn(n_samples)
    df = pd.DataFrame({
        'height_cm': 170 + 10 * size + 3 * np.random.randn(n_samples),
        'weight_kg': 70 + 8 * size + 4 * np.random.randn(n_samples),
        'income': 50000 + 15000 * np.random.randn(n_samples),
    })
    return df


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_scaling():
    """Why scale=True matters when units differ."""
    print("\n" + "="*60)
    print("CENTERING ONLY vs CENTERING AND SCALING")
    print("="*60)
    df = make_mixed_units()
    for scale in [False, True]:
        pca = PCA(scale=scale).fit(df.values)
        print(f"\nscale={scale}")
        print("-" * 40)
        print(pca.loadings(df.columns).round(3).to_string())
        print(f"variance ratio: {np.round(pca.explained_variance_ratio_, 3)}")
    print("\n→ Unscaled, the column with the biggest units IS the first PC.")


def demo_how_many():
    """Components needed for 80/90/99% on two latent factors."""
    print("\n" + "="*60)
    print("HOW MANY COMPONENTS?")
    print("="*60)
    X = make_correlated_features(n_features=20, n_latent=2)
    pca = PCA().fit(X)
    print(f"first five ratios: {np.round(pca.explained_variance_ratio_[:5], 3)}")
    for ratio in [0.8, 0.9, 0.99]:
        print(f"  {ratio:.0%} of variance → {pca.n_components_for(ratio)} components")


def demo_low_rank():
    """Reconstruction error equals the dropped singular values."""
    print("\n" + "="*60)
    print("LOW-RANK APPROXIMATION (Eckart-Young)")
    print("="*60)
    X = make_correlated_features(n_samples=100, n_features=10, n_latent=3)
    S = np.linalg.svd(X, compute_uv=False)
    for rank in [1, 2, 3, 5]:
        err = np.sum((X - low_rank_approximation(X, rank)) ** 2)
        print(f"rank {rank}: ||X - X_r||² = {err:9.3f}   Σ dropped σ² = {np.sum(S[rank:]**2):9.3f}")


def visualize_pca():
    """Scree plot and projection of clustered data."""
    X = make_correlated_features(n_features=20, n_latent=2)
    pca = PCA().fit(X)

    fig, axes = plt.subplots(1, 2, figsize=(13, 4.5))
    ax = axes[0]
    n_show = 10
    x = np.arange(1, n_show + 1)
    ratios = pca.all_explained_variance_ratio_[:n_show]
    ax.bar(x, ratios, alpha=0.6, color='steelblue', label='individual')
    ax.plot(x, np.cumsum(ratios), 'ro-', label='cumulative')
    ax.set_xlabel('component')
    ax.set_ylabel('explained variance ratio')
    ax.set_title('Scree plot (2 latent factors)')
    ax.legend()

    Xc, yc = make_clustered(n_samples=300, n_clusters=3)
    X_high = np.c_[Xc, Xc @ np.random.RandomState(0).randn(2, 6) + 0.2 * np.random.RandomState(1).randn(300, 6)]
    Z = PCA(n_components=2).fit_transform(X_high)
    axes[1].scatter(Z[:, 0], Z[:, 1], c=yc, cmap='viridis', s=15, alpha=0.8)
    axes[1].set_xlabel('PC1')
    axes[1].set_ylabel('PC2')
    axes[1].set_title('8-D clusters projected onto 2 PCs')

    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("PRINCIPAL COMPONENT ANALYSIS — LINEAR PROJECTION")
    print("="*60)

    demo_scaling()
    demo_how_many()
    demo_low_rank()

    config.save_figure(visualize_pca(), 'pca')
