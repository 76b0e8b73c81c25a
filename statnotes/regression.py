"""
LINEAR REGRESSION — Paradigm: PROJECTION

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

You believe: y ≈ b + Xw + noise

Least squares finds the b and w that minimize squared error:
    w* = argmin_w ||y - Xw||²

GEOMETRICALLY: the fitted values are the projection of y onto the
column space of X. The residual is orthogonal to every column.

===============================================================
HOW GOOD IS THE FIT?
===============================================================

RMSE = sqrt(mean((y - ŷ)²))
    Typical size of an error, in the units of y.

R²   = 1 - SS_res / SS_tot
    Fraction of the variance of y the model accounts for.
    SS_res = Σ(y - ŷ)²,   SS_tot = Σ(y - ȳ)²
    R² = 0: no better than predicting the mean.
    R² = 1: perfect fit.

===============================================================
TWO WAYS TO GET THERE
===============================================================

CLOSED FORM:  w = (X'X)⁻¹ X'y
GRADIENT DESCENT: start anywhere, walk downhill on the MSE bowl.

The gradient descent here is deliberately naive: a fixed learning
rate, a fixed number of steps, no stopping rule. It is there to show
HOW the parameters move, not to be a general optimizer.

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from statnotes import config
from statnotes.datasets import make_linear


# ============================================================
# FIT METRICS
# ============================================================

def rmse(actual, fitted):
    """Root mean squared error."""
    actual = np.asarray(actual, dtype=float)
    fitted = np.asarray(fitted, dtype=float)
    return np.sqrt(np.mean((actual - fitted) ** 2))


def rsq(actual, fitted):
    """
    Coefficient of determination.

    R² = 1 - Σ(y - ŷ)² / Σ(y - ȳ)²
    """
    actual = np.asarray(actual, dtype=float)
    fitted = np.asarray(fitted, dtype=float)
    ss_res = np.sum((actual - fitted) ** 2)
    ss_tot = np.sum((actual - np.mean(actual)) ** 2)
    return 1 - ss_res / ss_tot


def residual_summary(actual, fitted):
    """Five-number summary of the residuals, like a regression printout."""
    residuals = np.asarray(actual, dtype=float) - np.asarray(fitted, dtype=float)
    q = np.percentile(residuals, [0, 25, 50, 75, 100])
    return pd.Series(q, index=['min', '1Q', 'median', '3Q', 'max'])


# ============================================================
# MODEL
# ============================================================

class LinearRegression:
    """
    Linear Regression with two solvers.

    'normal': closed form, w = (X'X + λI)⁻¹ X'y
    'gd':     batch gradient descent on the mean squared error
    """

    def __init__(self, method='normal', lr=0.01, n_iters=1000, regularization=0.0):
        """
        Parameters:
        -----------
        method : 'normal' or 'gd'
        lr : learning rate for gradient descent
        n_iters : iterations for gradient descent
        regularization : L2 penalty (Ridge). Set > 0 if X'X is near-singular.
        """
        if method not in ('normal', 'gd'):
            raise ValueError(f"Unknown method: {method}")
        self.method = method
        self.lr = lr
        self.n_iters = n_iters
        self.regularization = regularization
        self.coef_ = None
        self.intercept_ = None
        self.loss_history = []

    def fit(self, X, y):
        """Fit the model to training data."""
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        y = np.asarray(y, dtype=float)

        if self.method == 'normal':
            self._fit_normal(X, y)
        else:
            self._fit_gd(X, y)
        return self

    def _fit_normal(self, X, y):
        """
        CLOSED FORM SOLUTION

        w = (X'X + λI)⁻¹ X'y, with the intercept left unpenalized.
        """
        n_samples, n_features = X.shape
        X_b = np.c_[np.ones(n_samples), X]

        reg_matrix = self.regularization * np.eye(n_features + 1)
        reg_matrix[0, 0] = 0

        w = np.linalg.solve(X_b.T @ X_b + reg_matrix, X_b.T @ y)

        self.intercept_ = w[0]
        self.coef_ = w[1:]

    def _fit_gd(self, X, y):
        """
        GRADIENT DESCENT

            dL/dw = -(2/n) X'(y - Xw) + 2λw
            dL/db = -(2/n) Σ(y - Xw)
        """
        n_samples, n_features = X.shape
        self.coef_ = np.zeros(n_features)
        self.intercept_ = 0.0
        self.loss_history = []

        for _ in range(self.n_iters):
            residuals = y - (X @ self.coef_ + self.intercept_)

            dw = -(2 / n_samples) * (X.T @ residuals) + 2 * self.regularization * self.coef_
            db = -(2 / n_samples) * np.sum(residuals)

            self.coef_ -= self.lr * dw
            self.intercept_ -= self.lr * db

            mse = np.mean(residuals ** 2)
            self.loss_history.append(mse + self.regularization * np.sum(self.coef_ ** 2))

    def predict(self, X):
        """Predict y for new X."""
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        return X @ self.coef_ + self.intercept_


def gradient_descent(x, y, lr=0.01, n_iters=1000):
    """
    Simple linear regression y = a + b x by plain gradient descent.

    Fixed learning rate, fixed number of iterations, no convergence
    check. Starts from a = b = 0.

    Returns (intercept, slope, history) where history is a DataFrame
    with one row per iteration: iteration, intercept, slope, mse.
    """
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    if len(x) != len(y):
        raise ValueError(f"x and y differ in length: {len(x)} vs {len(y)}")

    n = len(y)
    a, b = 0.0, 0.0
    rows = []

    for i in range(n_iters):
        error = y - (a + b * x)
        rows.append((i, a, b, np.mean(error ** 2)))

        # partial derivatives of the MSE
        a -= lr * (-2 / n) * np.sum(error)
        b -= lr * (-2 / n) * np.sum(x * error)

    history = pd.DataFrame(rows, columns=['iteration', 'intercept', 'slope', 'mse'])
    return a, b, history


# ============================================================
# ABLATION EXPERIMENTS
# ============================================================

def ablation_experiments():
    """
    ABLATION: What happens when you change each component?
    """
    print("\n" + "="*60)
    print("ABLATION EXPERIMENTS")
    print("="*60)

    X, y = make_linear(n_samples=200, slope=3, intercept=7)

    # -------- Experiment 1: Normal vs GD --------
    print("\n1. NORMAL EQUATION vs GRADIENT DESCENT")
    print("-" * 40)
    model_normal = LinearRegression(method='normal').fit(X, y)
    print(f"Normal:  b={model_normal.intercept_:.4f}, w={model_normal.coef_[0]:.4f}")

    a, b, history = gradient_descent(X[:, 0], y, lr=0.1, n_iters=2000)
    print(f"GD loop: b={a:.4f}, w={b:.4f}  (after {len(history)} fixed steps)")
    print("→ Both land on the same line.")

    # -------- Experiment 2: Learning Rate --------
    print("\n2. LEARNING RATE SWEEP")
    print("-" * 40)
    for lr in [0.001, 0.01, 0.1, 0.5, 1.2]:
        _, _, history = gradient_descent(X[:, 0], y, lr=lr, n_iters=200)
        final_loss = history['mse'].iloc[-1]
        if not np.isfinite(final_loss) or final_loss > 1e6:
            status = "✗ DIVERGED"
        elif final_loss < 1.0:
            status = "✓ converged"
        else:
            status = "✗ not converged"
        print(f"lr={lr:<6} final_mse={final_loss:>12.4f}  {status}")
    print("→ Too low: slow. Too high: the steps overshoot and blow up.")

    # -------- Experiment 3: Outlier Sensitivity --------
    print("\n3. OUTLIER SENSITIVITY")
    print("-" * 40)
    y_outliers = y.copy()
    y_outliers[:5] = 50
    clean = LinearRegression().fit(X, y)
    dirty = LinearRegression().fit(X, y_outliers)
    print(f"Clean:         w={clean.coef_[0]:.4f}  RMSE={rmse(y, clean.predict(X)):.3f}")
    print(f"With outliers: w={dirty.coef_[0]:.4f}  RMSE={rmse(y_outliers, dirty.predict(X)):.3f}")
    print("→ Five bad points drag the whole line.")

    # -------- Experiment 4: Regularization --------
    print("\n4. REGULARIZATION (Ridge) on collinear features")
    print("-" * 40)
    np.random.seed(config.RANDOM_STATE)
    X_collinear = np.column_stack([X, X + np.random.randn(200, 1) * 0.01])
    for reg in [0, 0.01, 0.1, 1.0, 10.0]:
        model = LinearRegression(regularization=reg).fit(X_collinear, y)
        print(f"λ={reg:<5} ||w||={np.linalg.norm(model.coef_):8.4f}  "
              f"R²={rsq(y, model.predict(X_collinear)):.4f}")
    print("→ Shrinkage tames wild collinear weights at little cost in R².")

    # -------- Experiment 5: Beyond Linear --------
    print("\n5. FAILURE ON NONLINEAR DATA")
    print("-" * 40)
    x_quad = np.linspace(-3, 3, 200)
    y_quad = x_quad ** 2 + np.random.randn(200) * 0.5
    model = LinearRegression().fit(x_quad, y_quad)
    print(f"Line through a parabola: R²={rsq(y_quad, model.predict(x_quad)):.4f}")
    print(residual_summary(y_quad, model.predict(x_quad)).round(3).to_string())
    print("→ The residuals are not centered noise: the structure was missed.")


# ============================================================
# VISUALIZATION
# ============================================================

def visualize_gradient_descent():
    """The fitted line plus the path gradient descent took to find it."""
    X, y = make_linear(n_samples=200, slope=3, intercept=7)
    a, b, history = gradient_descent(X[:, 0], y, lr=0.1, n_iters=500)

    fig, axes = plt.subplots(1, 3, figsize=(15, 4.5))

    ax = axes[0]
    ax.scatter(X[:, 0], y, s=12, alpha=0.6)
    grid = np.linspace(0, 2, 50)
    for i in [0, 5, 20, 60]:
        row = history.iloc[i]
        ax.plot(grid, row['intercept'] + row['slope'] * grid, alpha=0.4,
                label=f'iter {i}')
    ax.plot(grid, a + b * grid, 'k-', linewidth=2, label='final')
    ax.set_title(f'Fit: y = {a:.2f} + {b:.2f} x')
    ax.legend(fontsize=8)

    ax = axes[1]
    ax.plot(history['iteration'], history['mse'])
    ax.set_yscale('log')
    ax.set_xlabel('iteration')
    ax.set_ylabel('MSE')
    ax.set_title('Loss curve')

    ax = axes[2]
    ax.plot(history['intercept'], history['slope'], '.-', markersize=2)
    ax.plot(a, b, 'r*', markersize=12)
    ax.set_xlabel('intercept')
    ax.set_ylabel('slope')
    ax.set_title('Parameter path')

    plt.suptitle('LINEAR REGRESSION: gradient descent walks down the MSE bowl',
                 fontsize=12, y=1.02)
    plt.tight_layout()
    return fig


def visualize_residuals():
    """Residuals vs fitted: flat noise for a line, a smile for a parabola."""
    np.random.seed(config.RANDOM_STATE)
    x = np.linspace(-3, 3, 200)
    y_line = 2 * x + np.random.randn(200)
    y_quad = x ** 2 + np.random.randn(200)

    fig, axes = plt.subplots(1, 2, figsize=(11, 4.5))
    for ax, target, name in [(axes[0], y_line, 'linear truth'),
                             (axes[1], y_quad, 'quadratic truth')]:
        model = LinearRegression().fit(x, target)
        fitted = model.predict(x)
        ax.scatter(fitted, target - fitted, s=10, alpha=0.6)
        ax.axhline(0, color='k', linewidth=0.8)
        ax.set_xlabel('fitted')
        ax.set_ylabel('residual')
        ax.set_title(f'{name}: R²={rsq(target, fitted):.2f}, RMSE={rmse(target, fitted):.2f}')

    plt.tight_layout()
    return fig


# ============================================================
# MAIN
# ============================================================

if __name__ == '__main__':
    print("="*60)
    print("LINEAR REGRESSION — Paradigm: PROJECTION")
    print("="*60)

    ablation_experiments()

    config.save_figure(visualize_gradient_descent(), 'regression_gradient_descent')
    config.save_figure(visualize_residuals(), 'regression_residuals')

    print("\n" + "="*60)
    print("SUMMARY")
    print("="*60)
    print("""
1. RMSE is the typical error size; R² is the share of variance explained
2. Closed form and gradient descent agree on well-conditioned problems
3. The learning rate decides between crawling and diverging
4. Squared loss lets a few outliers move the whole line
5. Curved residual patterns mean the model form is wrong
    """)
