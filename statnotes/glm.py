"""
GENERALIZED LINEAR MODELS — Paradigm: LINEAR PREDICTOR + LINK

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Linear regression says E[y] = Xβ. That breaks when y is a 0/1 outcome
(the mean must stay in [0, 1]) or a count (the mean must stay positive).

A GLM keeps the linear predictor and bends it with a LINK function:

    η = Xβ + offset          (linear predictor)
    E[y] = μ = g⁻¹(η)         (inverse link)
    Var[y] = φ V(μ)           (variance depends on the mean)

    family      link      V(μ)         use for
    ---------   -------   ----------   ------------------
    gaussian    identity  1            continuous
    binomial    logit     μ(1 - μ)     yes/no
    poisson     log       μ            counts

===============================================================
HOW IT IS FIT: ITERATIVELY REWEIGHTED LEAST SQUARES
===============================================================

Maximum likelihood has no closed form, but each Newton step IS a
weighted least squares problem:

    z = η + (y - μ) / (dμ/dη)          working response
    W = (dμ/dη)² / V(μ)                working weights
    β ← (X'WX)⁻¹ X'Wz

Repeat until the deviance stops changing.

===============================================================
POISSON WITH EXPOSURE
===============================================================

Counts observed over different amounts of time (or policy-years, or
population) are modeled as RATES with log(exposure) as an OFFSET —
a term in η with its coefficient fixed at 1:

    log μ = log(exposure) + Xβ

exp(β_j) is then a RATE RATIO.

===============================================================
"""

import warnings

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from scipy.stats import norm, poisson

from statnotes import config
from statnotes.datasets import make_counts, make_binary_outcome
from statnotes.logistic import log_likelihoods


FAMILIES = ('gaussian', 'binomial', 'poisson')


class GLM:
    """
    Generalized linear model fitted by IRLS.

    Coefficients are stored intercept first.
    """

    def __init__(self, family='gaussian', max_iter=50, tol=1e-8):
        """
        Parameters:
        -----------
        family : 'gaussian', 'binomial' or 'poisson'
        max_iter : maximum IRLS iterations
        tol : relative change in deviance that counts as converged
        """
        if family not in FAMILIES:
            raise ValueError(f"Unknown family: {family}. Choose from {FAMILIES}")
        self.family = family
        self.max_iter = max_iter
        self.tol = tol

        self.coef_ = None
        self.std_err_ = None
        self.deviance_ = None
        self.null_deviance_ = None
        self.aic_ = None
        self.dispersion_ = None
        self.n_iter_ = None
        self.converged_ = None

    # ---- family pieces ----

    def _link(self, mu):
        if self.family == 'binomial':
            return np.log(mu / (1 - mu))
        if self.family == 'poisson':
            return np.log(mu)
        return mu

    def _inverse_link(self, eta):
        if self.family == 'binomial':
            return 1 / (1 + np.exp(-np.clip(eta, -30, 30)))
        if self.family == 'poisson':
            return np.exp(np.clip(eta, -30, 30))
        return eta

    def _mu_eta(self, mu):
        """dμ/dη expressed in terms of μ."""
        if self.family == 'binomial':
            return np.maximum(mu * (1 - mu), 1e-10)
        if self.family == 'poisson':
            return np.maximum(mu, 1e-10)
        return np.ones_like(mu)

    def _variance(self, mu):
        if self.family == 'binomial':
            return np.maximum(mu * (1 - mu), 1e-10)
        if self.family == 'poisson':
            return np.maximum(mu, 1e-10)
        return np.ones_like(mu)

    def _deviance(self, y, mu):
        if self.family == 'binomial':
            return -2 * np.sum(log_likelihoods(y, mu))
        if self.family == 'poisson':
            with np.errstate(divide='ignore', invalid='ignore'):
                term = np.where(y > 0, y * np.log(y / mu), 0.0)
            return 2 * np.sum(term - (y - mu))
        return np.sum((y - mu) ** 2)

    def _start(self, y):
        if self.family == 'binomial':
            return (y + 0.5) / 2
        if self.family == 'poisson':
            return y + 0.1
        return y.astype(float)

    # ---- fitting ----

    def _irls(self, X, y, offset):
        """Run IRLS on a design that already carries its intercept column."""
        mu = self._start(y)
        eta = self._link(mu)
        dev_old = self._deviance(y, mu)
        beta = np.zeros(X.shape[1])
        converged = False

        for iteration in range(1, self.max_iter + 1):
            d = self._mu_eta(mu)
            z = (eta - offset) + (y - mu) / d
            w = d ** 2 / self._variance(mu)

            XtW = X.T * w
            beta = np.linalg.solve(XtW @ X, XtW @ z)

            eta = X @ beta + offset
            mu = self._inverse_link(eta)
            dev = self._deviance(y, mu)

            if abs(dev - dev_old) / (abs(dev) + 0.1) < self.tol:
                converged = True
                break
            dev_old = dev

        d = self._mu_eta(mu)
        w = d ** 2 / self._variance(mu)
        return beta, mu, dev, w, iteration, converged

    def fit(self, X, y, offset=None):
        """
        Fit the model.

        X : (n, p) predictors without an intercept column
        y : outcomes (0/1 for binomial, counts for poisson)
        offset : optional (n,) term added to η, e.g. log(exposure)
        """
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        y = np.asarray(y, dtype=float)
        n = len(y)
        offset = np.zeros(n) if offset is None else np.asarray(offset, dtype=float)

        if self.family == 'binomial' and np.any((y < 0) | (y > 1)):
            raise ValueError("binomial outcomes must lie in [0, 1]")
        if self.family == 'poisson' and np.any(y < 0):
            raise ValueError("poisson outcomes must be non-negative counts")

        X_b = np.c_[np.ones(n), X]
        beta, mu, dev, w, n_iter, converged = self._irls(X_b, y, offset)

        if not converged:
            warnings.warn(f"IRLS did not converge in {self.max_iter} iterations",
                          RuntimeWarning)

        p = X_b.shape[1]
        if self.family == 'gaussian':
            self.dispersion_ = dev / (n - p)
        else:
            self.dispersion_ = 1.0

        cov = np.linalg.inv((X_b.T * w) @ X_b) * self.dispersion_

        self.coef_ = beta
        self.std_err_ = np.sqrt(np.diag(cov))
        self.deviance_ = dev
        self.null_deviance_ = self._irls(np.ones((n, 1)), y, offset)[2]
        self.n_iter_ = n_iter
        self.converged_ = converged
        self.aic_ = self._aic(y, mu, dev, n, p)
        self.pearson_chi2_ = np.sum((y - mu) ** 2 / self._variance(mu))
        self.df_residual_ = n - p
        self.fitted_values_ = mu
        return self

    def _aic(self, y, mu, dev, n, p):
        if self.family == 'binomial':
            return dev + 2 * p
        if self.family == 'poisson':
            return -2 * np.sum(poisson.logpmf(y, mu)) + 2 * p
        return n * np.log(2 * np.pi * dev / n) + n + 2 * (p + 1)

    def predict(self, X, type='response', offset=None):
        """Linear predictor ('link') or mean ('response') for new X."""
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        eta = self.coef_[0] + X @ self.coef_[1:]
        if offset is not None:
            eta = eta + np.asarray(offset, dtype=float)
        if type == 'link':
            return eta
        if type == 'response':
            return self._inverse_link(eta)
        raise ValueError(f"Unknown prediction type: {type}")

    def summary(self, names=None):
        """Coefficient table with Wald z tests."""
        if names is None:
            names = [f'x{j}' for j in range(len(self.coef_) - 1)]
        z = self.coef_ / self.std_err_
        return pd.DataFrame({
            'estimate': self.coef_,
            'std_error': self.std_err_,
            'z': z,
            'p_value': 2 * norm.sf(np.abs(z)),
        }, index=['(Intercept)'] + list(names))

    def overdispersion(self):
        """Pearson chi-square over residual df. Near 1 for a good Poisson fit."""
        return self.pearson_chi2_ / self.df_residual_


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_poisson():
    """Count model with exposure; coefficients read as rate ratios."""
    print("\n" + "="*60)
    print("POISSON REGRESSION WITH EXPOSURE")
    print("="*60)

    X, y, exposure = make_counts(n_samples=500, coef=(0.4, -0.3), intercept=0.5)
    model = GLM(family='poisson').fit(X, y, offset=np.log(exposure))

    table = model.summary(['age_z', 'safety_z'])
    table['rate_ratio'] = np.exp(table['estimate'])
    print(table.round(4).to_string())
    print(f"\nresidual deviance {model.deviance_:.1f} on {model.df_residual_} df "
          f"(null {model.null_deviance_:.1f})")
    print(f"AIC {model.aic_:.1f}   IRLS iterations {model.n_iter_}")
    print(f"overdispersion ratio {model.overdispersion():.3f}  (≈1 means Poisson is plausible)")

    no_offset = GLM(family='poisson').fit(X, y)
    print(f"\nwithout the offset: intercept {no_offset.coef_[0]:+.3f}, "
          f"deviance {no_offset.deviance_:.1f}")
    print("→ Ignoring exposure makes long-observed units look risky.")
    return model


def demo_logistic_glm():
    """Same IRLS machinery, binomial family."""
    print("\n" + "="*60)
    print("LOGISTIC REGRESSION AS A GLM")
    print("="*60)

    X, y = make_binary_outcome(n_samples=800, coef=(1.5, -2.0), intercept=-0.5)
    model = GLM(family='binomial').fit(X, y)
    print(model.summary().round(4).to_string())
    print(f"\ndeviance {model.deviance_:.1f}, null {model.null_deviance_:.1f}, "
          f"pseudo-R² {1 - model.deviance_ / model.null_deviance_:.3f}")
    return model


def visualize_poisson_fit():
    """Observed vs fitted rates, binned along the first predictor."""
    X, y, exposure = make_counts(n_samples=500)
    model = GLM(family='poisson').fit(X, y, offset=np.log(exposure))

    bins = np.quantile(X[:, 0], np.linspace(0, 1, 11))
    idx = np.clip(np.digitize(X[:, 0], bins[1:-1]), 0, 9)
    centers = [X[idx == b, 0].mean() for b in range(10)]
    observed = [y[idx == b].sum() / exposure[idx == b].sum() for b in range(10)]
    fitted = [model.fitted_values_[idx == b].sum() / exposure[idx == b].sum() for b in range(10)]

    fig, axes = plt.subplots(1, 2, figsize=(12, 4.5))
    ax = axes[0]
    ax.plot(centers, observed, 'o', label='observed rate')
    ax.plot(centers, fitted, 's-', label='fitted rate')
    ax.set_xlabel('x0 (binned)')
    ax.set_ylabel('events per unit exposure')
    ax.set_title('Poisson GLM: rate by predictor decile')
    ax.legend()

    ax = axes[1]
    pearson = (y - model.fitted_values_) / np.sqrt(model.fitted_values_)
    ax.scatter(np.log(model.fitted_values_), pearson, s=8, alpha=0.5)
    ax.axhline(0, color='k', linewidth=0.8)
    ax.set_xlabel('log fitted mean')
    ax.set_ylabel('Pearson residual')
    ax.set_title(f'Residuals (dispersion {model.overdispersion():.2f})')

    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("GENERALIZED LINEAR MODELS — LINEAR PREDICTOR + LINK")
    print("="*60)

    demo_poisson()
    demo_logistic_glm()

    config.save_figure(visualize_poisson_fit(), 'glm_poisson')
