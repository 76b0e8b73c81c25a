"""
SPECTRAL GRAPH PARTITIONING — Paradigm: GRAPH LAPLACIAN

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Cut a graph into pieces so that few edges cross the cut.

The GRAPH LAPLACIAN turns that combinatorial problem into linear
algebra:

    A = adjacency matrix      (A_ij = 1 if i and j are connected)
    D = degree matrix         (D_ii = number of neighbors of i)
    L = D - A

For any labeling vector f:

    f'Lf = Σ_{edges (i,j)} (f_i - f_j)²

so a vector that is nearly constant on well-connected groups has a
SMALL f'Lf. The eigenvectors of L with the smallest eigenvalues are
exactly such vectors.

===============================================================
THE FIEDLER VECTOR
===============================================================

    eigenvalue 0        → the constant vector (tells us nothing)
    second smallest     → the FIEDLER VECTOR

Split the nodes by the SIGN of the Fiedler vector: that is the
spectral bisection. The second eigenvalue itself (the algebraic
connectivity) is 0 exactly when the graph is disconnected.

For k groups, embed each node with the first k eigenvectors and run
k-means on those coordinates.

Normalized Laplacian: L_sym = I - D^(-1/2) A D^(-1/2)
(balances the cut against the size of each side).

===============================================================
"""

import numpy as np
import matplotlib.pyplot as plt

from statnotes import config
from statnotes.clustering import KMeans


def adjacency_matrix(edges, n_nodes):
    """Symmetric 0/1 adjacency matrix from (i, j) node pairs."""
    A = np.zeros((n_nodes, n_nodes))
    for i, j in edges:
        if not (0 <= i < n_nodes and 0 <= j < n_nodes):
            raise ValueError(f"Edge ({i}, {j}) refers to a node outside 0..{n_nodes - 1}")
        if i != j:
            A[i, j] = 1
            A[j, i] = 1
    return A


def degree_matrix(A):
    return np.diag(np.sum(A, axis=1))


def laplacian(A, normalized=False):
    """
    Graph Laplacian.

    Unnormalized: L = D - A
    Normalized (symmetric): L_sym = I - D^(-1/2) A D^(-1/2)
    """
    A = np.asarray(A, dtype=float)
    if A.shape[0] != A.shape[1] or not np.allclose(A, A.T):
        raise ValueError("Adjacency matrix must be square and symmetric")
    d = np.sum(A, axis=1)

    if not normalized:
        return np.diag(d) - A

    # isolated nodes keep a zero row
    d_inv_sqrt = np.zeros_like(d)
    nonzero = d > 0
    d_inv_sqrt[nonzero] = 1.0 / np.sqrt(d[nonzero])
    D_inv_sqrt = np.diag(d_inv_sqrt)
    return np.eye(len(d)) - D_inv_sqrt @ A @ D_inv_sqrt


def _spectrum(A, normalized=False):
    eigenvalues, eigenvectors = np.linalg.eigh(laplacian(A, normalized))
    idx = np.argsort(eigenvalues)
    return eigenvalues[idx], eigenvectors[:, idx]


def _fix_sign(v):
    nonzero = np.flatnonzero(np.abs(v) > 1e-10)
    if len(nonzero) and v[nonzero[0]] < 0:
        return -v
    return v


def fiedler_vector(A, normalized=False):
    """
    Eigenvector of the second-smallest Laplacian eigenvalue.

    Eigenvectors are only defined up to sign, so the sign is fixed to
    make the first nonzero entry positive.
    """
    if len(A) < 2:
        raise ValueError("Need at least 2 nodes")
    _, eigenvectors = _spectrum(A, normalized)
    return _fix_sign(eigenvectors[:, 1])


def algebraic_connectivity(A):
    """Second-smallest eigenvalue of L; zero iff the graph is disconnected."""
    eigenvalues, _ = _spectrum(A)
    return max(eigenvalues[1], 0.0)


def spectral_bisect(A, normalized=False):
    """Two-way split: label 1 where the Fiedler vector is positive."""
    return (fiedler_vector(A, normalized) > 0).astype(int)


def spectral_clusters(A, k, normalized=False, random_state=42):
    """
    k-way partition by k-means on the first k Laplacian eigenvectors.

    With the normalized Laplacian the embedding rows are scaled to unit
    length first.
    """
    n = len(A)
    if not 1 <= k <= n:
        raise ValueError(f"k must be between 1 and {n}, got {k}")
    _, eigenvectors = _spectrum(A, normalized)
    U = eigenvectors[:, :k]

    if normalized:
        row_norms = np.maximum(np.sqrt(np.sum(U**2, axis=1, keepdims=True)), 1e-10)
        U = U / row_norms

    return KMeans(n_clusters=k, random_state=random_state).fit_predict(U)


def cut_size(A, labels):
    """Number of edges whose endpoints got different labels."""
    labels = np.asarray(labels)
    different = labels[:, None] != labels[None, :]
    return int(np.sum(A * different) / 2)


def toy_graph():
    """
    Two triangles {0, 1, 2} and {3, 4, 5} joined by the edge 2-3.

    Returns (A, edges).
    """
    edges = [(0, 1), (0, 2), (1, 2), (3, 4), (3, 5), (4, 5), (2, 3)]
    return adjacency_matrix(edges, 6), edges


def ring_of_cliques(n_cliques=3, clique_size=5):
    """Cliques joined in a ring by single edges."""
    edges = []
    for c in range(n_cliques):
        base = c * clique_size
        for i in range(clique_size):
            for j in range(i + 1, clique_size):
                edges.append((base + i, base + j))
        nxt = ((c + 1) % n_cliques) * clique_size
        edges.append((base + clique_size - 1, nxt))
    return adjacency_matrix(edges, n_cliques * clique_size), edges


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_toy_graph():
    """Laplacian, spectrum and bisection of the two-triangle graph."""
    print("\n" + "="*60)
    print("TWO TRIANGLES JOINED BY ONE EDGE")
    print("="*60)

    A, edges = toy_graph()
    L = laplacian(A)
    print("L = D - A:")
    print(L.astype(int))

    eigenvalues, _ = _spectrum(A)
    print(f"\neigenvalues: {np.round(eigenvalues, 3)}")
    v = fiedler_vector(A)
    print(f"Fiedler vector: {np.round(v, 3)}")
    labels = spectral_bisect(A)
    print(f"bisection: {labels}   edges cut: {cut_size(A, labels)}")
    print("→ The sign of the Fiedler vector separates the triangles.")


def demo_connectivity():
    """Algebraic connectivity as the bridge is removed."""
    print("\n" + "="*60)
    print("ALGEBRAIC CONNECTIVITY")
    print("="*60)
    A, edges = toy_graph()
    print(f"connected:    λ₂ = {algebraic_connectivity(A):.4f}")
    A_cut = adjacency_matrix([e for e in edges if e != (2, 3)], 6)
    print(f"bridge cut:   λ₂ = {algebraic_connectivity(A_cut):.4f}")
    print("→ λ₂ = 0 exactly when the graph falls apart.")


def demo_k_way():
    """Three cliques in a ring, recovered by k-means on eigenvectors."""
    print("\n" + "="*60)
    print("K-WAY SPECTRAL CLUSTERING")
    print("="*60)
    A, _ = ring_of_cliques(3, 5)
    for normalized in [False, True]:
        labels = spectral_clusters(A, 3, normalized=normalized)
        kind = 'normalized' if normalized else 'unnormalized'
        print(f"{kind:<13} labels {labels}  edges cut: {cut_size(A, labels)}")


def visualize_spectral():
    """Toy graph colored by the bisection, and its Fiedler vector."""
    A, edges = toy_graph()
    labels = spectral_bisect(A)
    v = fiedler_vector(A)
    pos = np.array([[0, 1], [0, -1], [1, 0], [2.5, 0], [3.5, 1], [3.5, -1]], dtype=float)

    fig, axes = plt.subplots(1, 2, figsize=(12, 4.5))

    ax = axes[0]
    for i, j in edges:
        ax.plot(pos[[i, j], 0], pos[[i, j], 1], 'k-', linewidth=1, zorder=1)
    ax.scatter(pos[:, 0], pos[:, 1], c=labels, cmap='coolwarm', s=400,
               edgecolors='black', zorder=2)
    for node, (x, y) in enumerate(pos):
        ax.text(x, y, str(node), ha='center', va='center', fontsize=11, zorder=3)
    ax.set_title('Spectral bisection')
    ax.axis('off')

    ax = axes[1]
    ax.bar(np.arange(len(v)), v, color=['tab:red' if x > 0 else 'tab:blue' for x in v])
    ax.axhline(0, color='black', linewidth=0.8)
    ax.set_xlabel('node')
    ax.set_title('Fiedler vector')

    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("SPECTRAL GRAPH PARTITIONING — GRAPH LAPLACIAN")
    print("="*60)

    demo_toy_graph()
    demo_connectivity()
    demo_k_way()

    config.save_figure(visualize_spectral(), 'spectral')
