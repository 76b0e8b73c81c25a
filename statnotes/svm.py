"""
SUPPORT VECTOR MACHINES — Paradigm: MAXIMUM MARGIN

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Among all hyperplanes that separate two classes, pick the one with
the widest MARGIN (distance to the nearest points on either side).

    f(x) = w'x + b,    predict sign(f(x))

    maximize margin 2/||w||   ⟺   minimize ½||w||²
    subject to  yᵢ(w'xᵢ + b) ≥ 1 - ξᵢ,   ξᵢ ≥ 0

C prices the slack ξ: small C tolerates violations (wide, soft
margin); large C punishes them (narrow, hard margin).

===============================================================
THE DUAL AND THE KERNEL TRICK
===============================================================

    max Σᵢ αᵢ - ½ Σᵢⱼ αᵢαⱼyᵢyⱼ K(xᵢ, xⱼ)
    s.t. 0 ≤ αᵢ ≤ C,  Σᵢ αᵢyᵢ = 0

    f(x) = Σᵢ αᵢyᵢ K(xᵢ, x) + b

Only inner products appear, so any kernel K can stand in for x'x:

    linear      K(x, x') = x'x'
    rbf         K(x, x') = exp(-γ ||x - x'||²)
    polynomial  K(x, x') = (γ x'x' + r)^d

Points with αᵢ > 0 are the SUPPORT VECTORS; the rest could be
deleted without changing the boundary.

===============================================================
TUNING
===============================================================

C and γ interact, so they are tuned together by k-fold
cross-validation over a grid.

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from scipy.optimize import minimize

from statnotes import config
from statnotes.datasets import (make_circles, make_moons, train_test_split,
                                accuracy, kfold_indices, plot_decision_boundary)


# ============================================================
# KERNEL FUNCTIONS
# ============================================================

def linear_kernel(X1, X2):
    """Linear kernel: K(x, x') = x'x'"""
    return X1 @ X2.T


def rbf_kernel(X1, X2, gamma=1.0):
    """
    RBF (Gaussian) Kernel: K(x, x') = exp(-γ ||x - x'||²)

    Large γ: narrow kernel, only very close points are similar.
    Small γ: wide kernel, distant points still count.
    """
    sq1 = np.sum(X1 ** 2, axis=1, keepdims=True)
    sq2 = np.sum(X2 ** 2, axis=1)
    sq_dist = np.maximum(sq1 + sq2 - 2 * (X1 @ X2.T), 0)
    return np.exp(-gamma * sq_dist)


def polynomial_kernel(X1, X2, degree=3, gamma=1.0, coef0=1.0):
    """Polynomial kernel: K(x, x') = (γ x'x' + r)^d"""
    return (gamma * (X1 @ X2.T) + coef0) ** degree


KERNELS = ('linear', 'rbf', 'poly')


# ============================================================
# SVM CLASSIFIER
# ============================================================

class SVM:
    """
    Soft-margin Support Vector Machine, dual solved with SLSQP.

    Labels are 0/1 on the outside and ±1 inside.
    """

    def __init__(self, C=1.0, kernel='rbf', gamma=1.0, degree=3, tol=1e-3, max_iter=1000):
        """
        Parameters:
        -----------
        C : Regularization parameter (larger = less regularization)
        kernel : 'linear', 'rbf', or 'poly'
        gamma : Kernel coefficient for RBF/poly
        degree : Degree for polynomial kernel
        tol : Tolerance for stopping criterion
        max_iter : Maximum iterations
        """
        if kernel not in KERNELS:
            raise ValueError(f"Unknown kernel: {kernel}. Choose from {KERNELS}")
        if C <= 0:
            raise ValueError(f"C must be positive, got {C}")
        self.C = C
        self.kernel = kernel
        self.gamma = gamma
        self.degree = degree
        self.tol = tol
        self.max_iter = max_iter

        self.alpha = None
        self.b = None
        self.X_train = None
        self.y_train = None
        self.support_vectors = None
        self.support_vector_labels = None
        self.support_vector_alphas = None

    def _compute_kernel(self, X1, X2):
        if self.kernel == 'linear':
            return linear_kernel(X1, X2)
        if self.kernel == 'rbf':
            return rbf_kernel(X1, X2, self.gamma)
        return polynomial_kernel(X1, X2, self.degree, self.gamma)

    def fit(self, X, y):
        """Solve the dual for α, then recover b from the margin points."""
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        if set(np.unique(y)) - {0, 1}:
            raise ValueError("SVM labels must be 0/1")

        self.X_train = X.copy()
        self.y_train = (2 * y - 1).astype(float)
        n_samples = len(y)

        K = self._compute_kernel(X, X)
        Q = np.outer(self.y_train, self.y_train) * K

        # minimize the negated dual
        def objective(alpha):
            return -np.sum(alpha) + 0.5 * alpha @ Q @ alpha

        def gradient(alpha):
            return -np.ones(n_samples) + Q @ alpha

        constraints = {'type': 'eq', 'fun': lambda a: np.dot(a, self.y_train),
                       'jac': lambda a: self.y_train}
        bounds = [(0, self.C) for _ in range(n_samples)]

        result = minimize(objective, np.zeros(n_samples), method='SLSQP', jac=gradient,
                          bounds=bounds, constraints=constraints,
                          options={'maxiter': self.max_iter, 'ftol': self.tol})
        self.alpha = result.x

        sv_mask = self.alpha > 1e-5
        self.support_vectors = X[sv_mask]
        self.support_vector_labels = self.y_train[sv_mask]
        self.support_vector_alphas = self.alpha[sv_mask]

        # margin points (0 < α < C) satisfy yᵢ f(xᵢ) = 1
        on_margin = sv_mask & (self.alpha < self.C - 1e-5)
        use = on_margin if np.any(on_margin) else sv_mask
        if np.any(use):
            self.b = np.mean(self.y_train[use] - (K[use] @ (self.alpha * self.y_train)))
        else:
            self.b = 0.0

        return self

    def decision_function(self, X):
        """
        Signed score f(x) = Σᵢ αᵢyᵢK(xᵢ, x) + b
        """
        X = np.asarray(X, dtype=float)
        K = self._compute_kernel(X, self.X_train)
        return K @ (self.alpha * self.y_train) + self.b

    def predict(self, X):
        return (self.decision_function(X) >= 0).astype(int)


# ============================================================
# MODEL SELECTION
# ============================================================

def cross_val_accuracy(model_factory, X, y, k=5, random_state=42):
    """
    Mean held-out accuracy over k folds.

    model_factory() must return a fresh unfitted model.
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y)
    scores = []
    for train, test in kfold_indices(len(y), k, random_state):
        model = model_factory().fit(X[train], y[train])
        scores.append(accuracy(y[test], model.predict(X[test])))
    return float(np.mean(scores))


def grid_search(X, y, Cs=(0.1, 1.0, 10.0), gammas=(0.1, 1.0, 10.0), k=5, kernel='rbf'):
    """Cross-validated accuracy for every (C, γ), best first."""
    rows = []
    for C in Cs:
        for gamma in gammas:
            score = cross_val_accuracy(lambda: SVM(C=C, kernel=kernel, gamma=gamma), X, y, k)
            rows.append({'C': C, 'gamma': gamma, 'cv_accuracy': score})
    table = pd.DataFrame(rows)
    return table.sort_values('cv_accuracy', ascending=False, kind='stable').reset_index(drop=True)


# ============================================================
# ABLATION EXPERIMENTS
# ============================================================

def ablation_experiments():
    print("\n" + "="*60)
    print("ABLATION EXPERIMENTS")
    print("="*60)

    datasets = {
        'circles': train_test_split(*make_circles(n_samples=300)),
        'moons': train_test_split(*make_moons(n_samples=300)),
    }

    # -------- Experiment 1: Kernels --------
    print("\n1. KERNEL COMPARISON")
    print("-" * 40)
    for name, (X_train, X_test, y_train, y_test) in datasets.items():
        results = {}
        for kernel in KERNELS:
            svm = SVM(C=1.0, kernel=kernel, gamma=1.0, degree=2).fit(X_train, y_train)
            results[kernel] = accuracy(y_test, svm.predict(X_test))
        print(f"{name:<10} linear={results['linear']:.2f}  rbf={results['rbf']:.2f}  "
              f"poly={results['poly']:.2f}")
    print("→ Linear kernel fails on nonlinear data")

    # -------- Experiment 2: C --------
    print("\n2. EFFECT OF C (Soft Margin)")
    print("-" * 40)
    X_train, X_test, y_train, y_test = datasets['moons']
    for C in [0.01, 0.1, 1.0, 10.0, 100.0]:
        svm = SVM(C=C, kernel='rbf', gamma=1.0).fit(X_train, y_train)
        acc = accuracy(y_test, svm.predict(X_test))
        print(f"C={C:<6} n_support_vectors={len(svm.support_vectors):<4} accuracy={acc:.3f}")
    print("→ Small C: more support vectors, smoother boundary")

    # -------- Experiment 3: gamma --------
    print("\n3. EFFECT OF GAMMA (RBF Kernel Width)")
    print("-" * 40)
    for gamma in [0.01, 0.1, 1.0, 10.0, 100.0]:
        svm = SVM(C=1.0, kernel='rbf', gamma=gamma).fit(X_train, y_train)
        train_acc = accuracy(y_train, svm.predict(X_train))
        acc = accuracy(y_test, svm.predict(X_test))
        print(f"gamma={gamma:<6} train={train_acc:.3f}  test={acc:.3f}")
    print("→ Large γ: every point becomes its own island (overfit)")


def demo_grid_search():
    """Tune C and γ jointly by 5-fold CV."""
    print("\n" + "="*60)
    print("GRID SEARCH OVER (C, γ)")
    print("="*60)
    X, y = make_moons(n_samples=200)
    table = grid_search(X, y, Cs=[0.1, 1, 10], gammas=[0.1, 1, 10], k=5)
    print(table.round(3).to_string(index=False))
    best = table.iloc[0]
    print(f"\nbest: C={best['C']}, γ={best['gamma']}  (CV accuracy {best['cv_accuracy']:.3f})")
    return table


def visualize_kernels():
    """Decision boundaries on circles with support vectors marked."""
    X, y = make_circles(n_samples=300)
    X_train, X_test, y_train, y_test = train_test_split(X, y)

    fig, axes = plt.subplots(1, 3, figsize=(15, 4.5))
    for ax, kernel in zip(axes, KERNELS):
        svm = SVM(C=1.0, kernel=kernel, gamma=1.0, degree=2).fit(X_train, y_train)
        acc = accuracy(y_test, svm.predict(X_test))
        plot_decision_boundary(svm.predict, X, y, ax=ax,
                               title=f'{kernel} kernel (acc={acc:.2f})')
        if len(svm.support_vectors) > 0:
            ax.scatter(svm.support_vectors[:, 0], svm.support_vectors[:, 1],
                       s=100, facecolors='none', edgecolors='k', linewidths=1.5)

    plt.suptitle('SVM: kernel comparison on circles (black rings = support vectors)')
    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("SUPPORT VECTOR MACHINES — MAXIMUM MARGIN")
    print("="*60)

    ablation_experiments()
    demo_grid_search()

    config.save_figure(visualize_kernels(), 'svm_kernels')
