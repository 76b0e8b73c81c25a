"""
LEAST SQUARES BY HAND — Paradigm: LINEAR ALGEBRA

===============================================================
THE IDEA
===============================================================

lm() hides a single line of linear algebra:

    β = (X'X)⁻¹ X'y

The matrix (X'X)⁻¹ X' is the PSEUDO-INVERSE of X. When X'X is
singular (collinear columns) the ordinary inverse does not exist,
but the Moore-Penrose generalized inverse still does, and it picks
the minimum-norm solution.

Multiplying y by the HAT MATRIX  H = X (X'X)⁻¹ X'  gives the fitted
values: it projects y onto the column space of X. What is left,
y - Hy, is orthogonal to every column of X.

===============================================================
VECTOR ONE-LINERS
===============================================================

    iprod(x, y) = x · y
    vnorm(x)    = x · x          (the SQUARED length)
    uvec(x)     = x / sqrt(x · x)

===============================================================
"""

import numpy as np
import matplotlib.pyplot as plt

from statnotes import config


def pseudo_inverse(X):
    """(X'X)⁺ X' — the left pseudo-inverse of X."""
    X = np.asarray(X, dtype=float)
    return np.linalg.pinv(X.T @ X) @ X.T


def iprod(x, y):
    """Inner product of two vectors."""
    return float(np.dot(np.asarray(x, dtype=float), np.asarray(y, dtype=float)))


def vnorm(x):
    """Squared Euclidean length x · x."""
    return iprod(x, x)


def uvec(x):
    """Unit vector in the direction of x."""
    x = np.asarray(x, dtype=float)
    length = np.sqrt(vnorm(x))
    if length == 0:
        raise ValueError("Cannot normalize the zero vector")
    return x / length


def add_intercept(X):
    """Prepend a column of ones."""
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    return np.c_[np.ones(X.shape[0]), X]


def least_squares(X, y, add_intercept_column=True):
    """
    Regression coefficients via the pseudo-inverse.

    With add_intercept_column=True the first coefficient is the intercept.
    """
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if add_intercept_column:
        X = add_intercept(X)
    return pseudo_inverse(X) @ np.asarray(y, dtype=float)


def hat_matrix(X):
    """H = X (X'X)⁺ X'. Symmetric and idempotent."""
    X = np.asarray(X, dtype=float)
    return X @ pseudo_inverse(X)


def project(y, X):
    """Orthogonal projection of y onto the column space of X."""
    return hat_matrix(X) @ np.asarray(y, dtype=float)


def svd_solve(X, y):
    """
    Least squares through the SVD.

    X = U Σ V'   ⇒   β = V Σ⁺ U' y

    Singular values below a relative tolerance are treated as zero, which
    is what makes this the minimum-norm solution.
    """
    X = np.asarray(X, dtype=float)
    U, s, Vt = np.linalg.svd(X, full_matrices=False)
    tol = s.max() * max(X.shape) * np.finfo(float).eps
    s_inv = np.where(s > tol, 1 / s, 0.0)
    return Vt.T @ (s_inv * (U.T @ np.asarray(y, dtype=float)))


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_projection():
    """Residuals are orthogonal to the design."""
    print("\n" + "="*60)
    print("PROJECTION: fitted values live in the column space of X")
    print("="*60)

    np.random.seed(config.RANDOM_STATE)
    X = add_intercept(np.random.randn(50, 2))
    y = X @ np.array([1.0, 2.0, -3.0]) + np.random.randn(50) * 0.5

    beta = pseudo_inverse(X) @ y
    fitted = X @ beta
    residual = y - fitted

    print(f"β (pseudo-inverse): {np.round(beta, 4)}")
    print(f"β (lstsq):          {np.round(np.linalg.lstsq(X, y, rcond=None)[0], 4)}")
    print(f"β (svd):            {np.round(svd_solve(X, y), 4)}")
    for j in range(X.shape[1]):
        print(f"  residual · column {j} = {iprod(residual, X[:, j]):+.2e}")
    H = hat_matrix(X)
    print(f"H symmetric: {np.allclose(H, H.T)}   H idempotent: {np.allclose(H @ H, H)}")
    print(f"trace(H) = {np.trace(H):.2f} = number of parameters")


def demo_collinear():
    """The pseudo-inverse still answers when X'X is singular."""
    print("\n" + "="*60)
    print("COLLINEAR COLUMNS: inverse fails, pseudo-inverse does not")
    print("="*60)

    np.random.seed(config.RANDOM_STATE)
    x = np.random.randn(40)
    X = add_intercept(np.column_stack([x, 2 * x]))
    y = 1 + 3 * x + np.random.randn(40) * 0.1

    try:
        np.linalg.inv(X.T @ X)
        print("inv(X'X) happened to succeed numerically (near-singular)")
    except np.linalg.LinAlgError as e:
        print(f"inv(X'X) failed: {e}")

    beta = least_squares(X[:, 1:], y)
    print(f"minimum-norm β = {np.round(beta, 4)}")
    print(f"implied slope on x: {beta[1] + 2 * beta[2]:.4f}  (true 3)")
    print("→ The split between the two copies is arbitrary; their combination is not.")


def demo_vectors():
    """Vector one-liners on a small example."""
    print("\n" + "="*60)
    print("VECTOR ONE-LINERS")
    print("="*60)
    a = np.array([3.0, 4.0])
    b = np.array([1.0, 0.0])
    print(f"a = {a}, b = {b}")
    print(f"iprod(a, b) = {iprod(a, b)}")
    print(f"vnorm(a)    = {vnorm(a)}   (squared length)")
    print(f"uvec(a)     = {uvec(a)}")
    print(f"projection of a on b = {iprod(a, uvec(b)) * uvec(b)}")


def visualize_projection():
    """A 2-parameter fit drawn as a projection."""
    np.random.seed(config.RANDOM_STATE)
    x = np.random.rand(30) * 4
    y = 1.5 + 0.8 * x + np.random.randn(30) * 0.4
    beta = least_squares(x, y)
    fitted = add_intercept(x) @ beta

    fig, ax = plt.subplots(1, 1, figsize=(6, 5))
    ax.scatter(x, y, s=20, label='data')
    grid = np.linspace(0, 4, 50)
    ax.plot(grid, beta[0] + beta[1] * grid, 'k-', label='fit')
    for xi, yi, fi in zip(x, y, fitted):
        ax.plot([xi, xi], [yi, fi], 'r-', alpha=0.4, linewidth=0.8)
    ax.set_title(f'Pseudo-inverse fit: y = {beta[0]:.2f} + {beta[1]:.2f} x\n'
                 f'(red: residuals, orthogonal to span(1, x))')
    ax.legend()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("LEAST SQUARES BY HAND")
    print("="*60)

    demo_vectors()
    demo_projection()
    demo_collinear()

    config.save_figure(visualize_projection(), 'lsq_projection')
