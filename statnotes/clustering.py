"""
CLUSTERING — Paradigm: GROUPS THAT ARE TIGHT INSIDE, FAR APART

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

No labels. Find groups such that points in a group are close to
each other and far from the other groups.

Two classic ways:

K-MEANS (centroid partitioning, Lloyd's algorithm):
    1. Initialize K centroids (k-means++ spreads them out)
    2. ASSIGN: each point → nearest centroid
    3. UPDATE: each centroid → mean of its points
    4. Repeat until the centroids stop moving

    Minimizes   Σₖ Σ_{x∈Cₖ} ||x - μₖ||²

HIERARCHICAL (agglomerative):
    Start with every point in its own cluster and repeatedly merge
    the two closest clusters. The merge history is a DENDROGRAM;
    cutting it at height h (or at k branches) gives a clustering.

    "Closest" is the LINKAGE:
        single    min pairwise distance    (chains, finds odd shapes)
        complete  max pairwise distance    (compact groups)
        average   mean pairwise distance
        ward      smallest increase in WSS (spherical, like k-means)

===============================================================
HOW MANY CLUSTERS?
===============================================================

Total sum of squares splits into WITHIN and BETWEEN parts:

    TSS = WSS + BSS

WSS always drops as k grows (the "elbow" plot). The
CALINSKI-HARABASZ index trades it against the number of clusters:

    CH(k) = [BSS / (k - 1)] / [WSS / (n - k)]

Pick the k where CH peaks. It is undefined for k = 1.

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from scipy.cluster.hierarchy import linkage, dendrogram
from scipy.cluster.hierarchy import cut_tree as _cut_tree

from statnotes import config
from statnotes.datasets import make_clustered, make_moons


class KMeans:
    """
    K-Means Clustering — Classic Lloyd's Algorithm.

    Hard assignment, Euclidean distance, best of n_init restarts.
    """

    def __init__(self, n_clusters=3, init='kmeans++', max_iter=300,
                 tol=1e-4, n_init=10, random_state=None):
        """
        Parameters:
        -----------
        n_clusters : int
            Number of clusters K
        init : str
            'random': K data points chosen at random
            'kmeans++': spread out, sampled ∝ squared distance
        max_iter : int
            Maximum iterations per run
        tol : float
            Convergence tolerance (squared centroid movement)
        n_init : int
            Number of runs with different initializations
        random_state : int or None
            Random seed for reproducibility
        """
        if init not in ('random', 'kmeans++'):
            raise ValueError(f"Unknown init: {init}")
        self.n_clusters = n_clusters
        self.init = init
        self.max_iter = max_iter
        self.tol = tol
        self.n_init = n_init
        self.random_state = random_state

        self.cluster_centers_ = None
        self.labels_ = None
        self.inertia_ = None
        self.n_iter_ = None

    def _init_centroids(self, X):
        n_samples = X.shape[0]
        if self.init == 'random':
            return X[np.random.choice(n_samples, self.n_clusters, replace=False)].copy()

        centroids = [X[np.random.randint(n_samples)]]
        for _ in range(1, self.n_clusters):
            d2 = np.min(_sq_distances(X, np.array(centroids)), axis=1)
            total = d2.sum()
            if total == 0:
                centroids.append(X[np.random.randint(n_samples)])
            else:
                centroids.append(X[np.random.choice(n_samples, p=d2 / total)])
        return np.array(centroids)

    def _single_run(self, X):
        centroids = self._init_centroids(X)

        for iteration in range(self.max_iter):
            d2 = _sq_distances(X, centroids)
            labels = np.argmin(d2, axis=1)

            new_centroids = np.array([
                X[labels == k].mean(axis=0) if np.any(labels == k)
                else X[np.random.randint(X.shape[0])]
                for k in range(self.n_clusters)
            ])
            shift = np.sum((new_centroids - centroids) ** 2)
            centroids = new_centroids
            if shift < self.tol:
                break

        d2 = _sq_distances(X, centroids)
        labels = np.argmin(d2, axis=1)
        inertia = np.sum(np.min(d2, axis=1))
        return centroids, labels, inertia, iteration + 1

    def fit(self, X):
        """Run n_init times and keep the lowest inertia."""
        X = np.asarray(X, dtype=float)
        if not 1 <= self.n_clusters <= X.shape[0]:
            raise ValueError(f"n_clusters must be between 1 and {X.shape[0]}")
        if self.random_state is not None:
            np.random.seed(self.random_state)

        best_inertia = np.inf
        for _ in range(self.n_init):
            centroids, labels, inertia, n_iter = self._single_run(X)
            if inertia < best_inertia:
                best_inertia = inertia
                self.cluster_centers_ = centroids
                self.labels_ = labels
                self.inertia_ = inertia
                self.n_iter_ = n_iter

        return self

    def predict(self, X):
        """Assign new points to nearest centroid."""
        X = np.asarray(X, dtype=float)
        return np.argmin(_sq_distances(X, self.cluster_centers_), axis=1)

    def fit_predict(self, X):
        return self.fit(X).labels_


def _sq_distances(X, C):
    # ||x - c||² = ||x||² + ||c||² - 2x·c
    X_sq = np.sum(X**2, axis=1, keepdims=True)
    C_sq = np.sum(C**2, axis=1)
    return np.maximum(X_sq + C_sq - 2 * X @ C.T, 0)


# ============================================================
# HIERARCHICAL CLUSTERING
# ============================================================

def hierarchical(X, method='ward', metric='euclidean'):
    """
    Agglomerative clustering; returns the SciPy linkage matrix Z.

    Each row of Z is one merge: (cluster a, cluster b, height, size).
    """
    X = np.asarray(X, dtype=float)
    if method in ('ward', 'centroid', 'median') and metric != 'euclidean':
        raise ValueError(f"{method} linkage requires the euclidean metric")
    return linkage(X, method=method, metric=metric)


def cut_tree(Z, k):
    """Cut a dendrogram into k clusters; labels are 0..k-1."""
    n = Z.shape[0] + 1
    if not 1 <= k <= n:
        raise ValueError(f"k must be between 1 and {n}, got {k}")
    # exactly k groups even when merge heights are tied
    return _cut_tree(Z, n_clusters=k).ravel()


# ============================================================
# SUMS OF SQUARES AND THE CH INDEX
# ============================================================

def sqr_edist(a, b):
    """Squared Euclidean distance between two points."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    return float(np.sum((a - b) ** 2))


def wss_cluster(X):
    """Sum of squared distances from each row of X to the row mean."""
    X = np.asarray(X, dtype=float)
    return float(np.sum((X - X.mean(axis=0)) ** 2))


def wss_total(X, labels):
    """Within-cluster sum of squares, summed over clusters."""
    X = np.asarray(X, dtype=float)
    labels = np.asarray(labels)
    return sum(wss_cluster(X[labels == c]) for c in np.unique(labels))


def total_ss(X):
    return wss_cluster(X)


def bss(X, labels):
    """Between-cluster sum of squares: TSS - WSS."""
    return total_ss(X) - wss_total(X, labels)


def ch_index(X, labels):
    """
    Calinski-Harabasz index.

        CH = [BSS / (k - 1)] / [WSS / (n - k)]

    NaN when there is a single cluster or WSS is zero.
    """
    X = np.asarray(X, dtype=float)
    n = X.shape[0]
    k = len(np.unique(labels))
    wss = wss_total(X, labels)
    if k == 1 or k >= n or wss == 0:
        return np.nan
    return (bss(X, labels) / (k - 1)) / (wss / (n - k))


def cluster_criteria(X, k_max=10, method='kmeans', random_state=42):
    """
    WSS and CH for k = 1..k_max.

    method is 'kmeans' or any linkage method accepted by hierarchical();
    hierarchical cuts all come from one tree.
    """
    X = np.asarray(X, dtype=float)
    Z = None if method == 'kmeans' else hierarchical(X, method=method)

    rows = []
    for k in range(1, k_max + 1):
        if Z is None:
            labels = KMeans(n_clusters=k, random_state=random_state).fit(X).labels_
        else:
            labels = cut_tree(Z, k)
        rows.append({'k': k, 'wss': wss_total(X, labels), 'ch': ch_index(X, labels)})
    return pd.DataFrame(rows)


def cluster_summary(df, labels):
    """Column means and sizes per cluster."""
    summary = df.groupby(np.asarray(labels)).mean(numeric_only=True)
    summary.insert(0, 'size', pd.Series(labels).value_counts().sort_index().values)
    summary.index.name = 'cluster'
    return summary


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_choose_k():
    """Elbow and CH index on blobs with four true clusters."""
    print("\n" + "="*60)
    print("HOW MANY CLUSTERS?")
    print("="*60)

    X, _ = make_clustered(n_samples=400, n_clusters=4)
    for method in ['kmeans', 'ward']:
        table = cluster_criteria(X, k_max=8, method=method)
        print(f"\n{method}")
        print("-" * 40)
        print(table.round(2).to_string(index=False))
        print(f"CH peaks at k = {int(table.loc[table['ch'].idxmax(), 'k'])}")
    print("\n→ WSS only falls; CH has a maximum at the natural grouping.")


def ablation_linkage():
    """Single vs complete vs average vs ward on moons."""
    print("\n" + "="*60)
    print("ABLATION: linkage on non-convex shapes")
    print("="*60)

    X, y = make_moons(n_samples=300, noise=0.06)
    for method in ['single', 'complete', 'average', 'ward']:
        labels = cut_tree(hierarchical(X, method=method), 2)
        agreement = max(np.mean(labels == y), np.mean(labels != y))
        print(f"  {method:<9} agreement with the true moons: {agreement:.3f}")
    print("→ Single linkage follows the chains; ward wants round blobs.")


def demo_profile():
    """Per-cluster means as a DataFrame."""
    print("\n" + "="*60)
    print("CLUSTER PROFILES")
    print("="*60)
    X, _ = make_clustered(n_samples=300, n_clusters=3)
    df = pd.DataFrame(X, columns=['x', 'y'])
    labels = KMeans(n_clusters=3, random_state=config.RANDOM_STATE).fit_predict(X)
    print(cluster_summary(df, labels).round(3).to_string())


def visualize_clustering():
    """Dendrogram, ward clusters and the CH curve."""
    X, _ = make_clustered(n_samples=200, n_clusters=4)
    Z = hierarchical(X)

    fig, axes = plt.subplots(1, 3, figsize=(17, 5))

    dendrogram(Z, ax=axes[0], no_labels=True, color_threshold=Z[-4, 2])
    axes[0].set_title('Ward dendrogram')
    axes[0].set_ylabel('merge height')

    labels = cut_tree(Z, 4)
    axes[1].scatter(X[:, 0], X[:, 1], c=labels, cmap='viridis', s=20, alpha=0.8)
    axes[1].set_title('Cut into 4 clusters')
    axes[1].set_aspect('equal')

    table = cluster_criteria(X, k_max=10, method='ward')
    ax = axes[2]
    ax.plot(table['k'], table['ch'], 'o-', label='CH index')
    ax.set_xlabel('k')
    ax.set_ylabel('CH')
    ax2 = ax.twinx()
    ax2.plot(table['k'], table['wss'], 's--', color='gray', label='WSS')
    ax2.set_ylabel('WSS')
    ax.set_title('Choosing k')
    ax.legend(loc='upper right')

    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("CLUSTERING — GROUPS THAT ARE TIGHT INSIDE, FAR APART")
    print("="*60)

    demo_choose_k()
    ablation_linkage()
    demo_profile()

    config.save_figure(visualize_clustering(), 'clustering')
