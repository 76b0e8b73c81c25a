"""
LOGISTIC REGRESSION — Paradigm: LOG-ODDS ARE LINEAR

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

Model the probability of a yes/no outcome through its log-odds:

    log(p / (1 - p)) = b + Xw
    p = inv_logit(b + Xw) = 1 / (1 + exp(-(b + Xw)))

A coefficient w_j is the change in LOG-ODDS per unit of x_j;
exp(w_j) is the multiplicative change in the ODDS.

===============================================================
PROBABILITY, ODDS, LOG-ODDS
===============================================================

    p       ∈ (0, 1)       odds = p / (1 - p)     ∈ (0, ∞)
    log-odds = logit(p)    ∈ (-∞, ∞)

    p = 0.5  ⟺  odds = 1  ⟺  log-odds = 0

===============================================================
HOW WELL DOES IT FIT?  DEVIANCE
===============================================================

Log-likelihood of the data under predicted probabilities py:

    ℓ = Σ [ y log(py) + (1 - y) log(1 - py) ]

DEVIANCE = -2ℓ. Smaller is better. Comparing the model's deviance to
the NULL deviance (predict the base rate for everyone) gives a
pseudo-R²:   1 - D_model / D_null

===============================================================
FROM PROBABILITIES TO DECISIONS
===============================================================

A classifier needs a THRESHOLD: predict "yes" when p > t.
Moving t trades precision against recall:

    precision = TP / (TP + FP)    how many flagged are real
    recall    = TP / (TP + FN)    how many real are flagged

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from statnotes import config
from statnotes.datasets import make_binary_outcome, train_test_split


# ============================================================
# PROBABILITY / ODDS CONVERSIONS
# ============================================================

def logit(p):
    """Log-odds of a probability; 0 and 1 map to -inf and inf."""
    p = np.asarray(p, dtype=float)
    if np.any((p < 0) | (p > 1)) or np.any(np.isnan(p)):
        raise ValueError("probabilities must lie in [0, 1]")
    with np.errstate(divide='ignore'):
        return np.log(p / (1 - p))


def inv_logit(x):
    """Probability from log-odds (the sigmoid)."""
    x = np.asarray(x, dtype=float)
    return 1 / (1 + np.exp(-x))


def odds2p(odds):
    """Probability from odds."""
    odds = np.asarray(odds, dtype=float)
    return odds / (1 + odds)


def p2odds(p):
    """Odds from a probability."""
    p = np.asarray(p, dtype=float)
    return p / (1 - p)


# ============================================================
# LIKELIHOOD AND DEVIANCE
# ============================================================

def log_likelihoods(y, py):
    """
    Log likelihood of each data point.

    y is the true 0/1 outcome, py the predicted probability. The closer
    py is to the true label, the closer the value is to 0. Terms of the
    form 0 * log(0) come out as NaN and are counted as 0.
    """
    y = np.asarray(y, dtype=float)
    py = np.asarray(py, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        values = y * np.log(py) + (1 - y) * np.log(1 - py)
    values = np.where(np.isnan(values), 0.0, values)
    return values


def deviance(likelihoods):
    """-2 times the summed log likelihoods."""
    return -2 * np.sum(likelihoods)


def pseudo_r2(y, py):
    """1 - deviance(model) / deviance(null model that predicts mean(y))."""
    y = np.asarray(y, dtype=float)
    null = np.full(len(y), y.mean())
    return 1 - deviance(log_likelihoods(y, py)) / deviance(log_likelihoods(y, null))


# ============================================================
# CONFUSION MATRIX
# ============================================================

def _ratio(num, den):
    return num / den if den else np.nan


def confusion_matrix(actual, predicted, threshold, true_label, false_label):
    """
    Cross-tabulate actual labels against thresholded predictions.

    predicted are scores; a score above threshold is called true_label,
    anything else false_label. Rows are actual labels and columns are
    predictions, both ordered [false_label, true_label], and both
    prediction columns are present even when one of them is empty.
    """
    actual = np.asarray(actual)
    predicted = np.asarray(predicted, dtype=float)
    levels = [false_label, true_label]

    unknown = set(np.unique(actual)) - set(levels)
    if unknown:
        raise ValueError(f"Actual labels {sorted(unknown)} are not in {levels}")

    called = np.where(predicted > threshold, true_label, false_label)
    counts = [[int(np.sum((actual == a) & (called == p))) for p in levels] for a in levels]

    cm = pd.DataFrame(counts, index=pd.Index(levels, name='actual'),
                      columns=pd.Index(levels, name='prediction'))
    return cm


def cm_summary(threshold, cm):
    """
    One-row table of counts and rates from a 2x2 confusion matrix.

    The matrix is read positionally: row/column 0 is the negative class,
    row/column 1 the positive class.
    """
    TP = int(cm.iloc[1, 1])
    FP = int(cm.iloc[0, 1])
    TN = int(cm.iloc[0, 0])
    FN = int(cm.iloc[1, 0])

    return pd.DataFrame([{
        'threshold': threshold,
        'TP': TP,
        'FP': FP,
        'TN': TN,
        'FN': FN,
        'precision': _ratio(TP, TP + FP),
        'recall': _ratio(TP, TP + FN),
        'accuracy': _ratio(TP + TN, TP + FP + TN + FN),
    }])


def threshold_sweep(actual, predicted, thresholds, true_label=1, false_label=0):
    """cm_summary rows for a range of thresholds, stacked."""
    rows = [
        cm_summary(t, confusion_matrix(actual, predicted, t, true_label, false_label))
        for t in thresholds
    ]
    return pd.concat(rows, ignore_index=True)


# ============================================================
# MODEL
# ============================================================

class LogisticRegression:
    """
    Logistic Regression via Gradient Descent on the mean log loss.

        dL/dw = (1/n) X'(p - y) + λw
        dL/db = (1/n) Σ(p - y)
    """

    def __init__(self, lr=0.1, n_iters=1000, regularization=0.0):
        """
        Parameters:
        -----------
        lr : learning rate
        n_iters : gradient descent iterations
        regularization : L2 penalty
        """
        self.lr = lr
        self.n_iters = n_iters
        self.regularization = regularization
        self.coef_ = None
        self.intercept_ = None
        self.loss_history = []

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        n_samples, n_features = X.shape
        self.coef_ = np.zeros(n_features)
        self.intercept_ = 0.0
        self.loss_history = []

        for _ in range(self.n_iters):
            p = inv_logit(np.clip(X @ self.coef_ + self.intercept_, -500, 500))
            error = p - y

            dw = (X.T @ error) / n_samples + self.regularization * self.coef_
            db = np.sum(error) / n_samples

            self.coef_ -= self.lr * dw
            self.intercept_ -= self.lr * db

            self.loss_history.append(deviance(log_likelihoods(y, p)) / (2 * n_samples))

        return self

    def predict_proba(self, X):
        """Probability of class 1."""
        X = np.asarray(X, dtype=float)
        return inv_logit(np.clip(X @ self.coef_ + self.intercept_, -500, 500))

    def predict(self, X, threshold=0.5):
        return (self.predict_proba(X) > threshold).astype(int)


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_odds():
    """Probability, odds and log-odds side by side."""
    print("\n" + "="*60)
    print("PROBABILITY ↔ ODDS ↔ LOG-ODDS")
    print("="*60)
    p = np.array([0.05, 0.2, 0.5, 0.8, 0.95])
    table = pd.DataFrame({'p': p, 'odds': p2odds(p), 'log_odds': logit(p),
                          'back': inv_logit(logit(p))})
    print(table.round(4).to_string(index=False))
    print("→ log-odds are symmetric around p = 0.5; odds are not.")


def demo_fit_and_deviance():
    """Fit, read the coefficients, compare deviance with the null model."""
    print("\n" + "="*60)
    print("FIT AND DEVIANCE")
    print("="*60)

    X, y = make_binary_outcome(n_samples=600, coef=(1.5, -2.0), intercept=-0.5)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y)

    model = LogisticRegression(lr=0.5, n_iters=2000).fit(X_tr, y_tr)
    print(f"intercept = {model.intercept_:+.3f}   (true -0.5)")
    for j, w in enumerate(model.coef_):
        print(f"x{j}: log-odds {w:+.3f}   odds ratio {np.exp(w):.3f}")

    py = model.predict_proba(X_te)
    ll = log_likelihoods(y_te, py)
    null = log_likelihoods(y_te, np.full(len(y_te), y_tr.mean()))
    print(f"\ntest deviance (model): {deviance(ll):.2f}")
    print(f"test deviance (null):  {deviance(null):.2f}")
    print(f"pseudo-R²:             {pseudo_r2(y_te, py):.3f}")
    return y_te, py


def demo_thresholds(y_true, py):
    """Precision and recall as the threshold moves."""
    print("\n" + "="*60)
    print("THRESHOLD TRADE-OFF")
    print("="*60)
    cm = confusion_matrix(y_true, py, 0.5, true_label=1, false_label=0)
    print(cm.to_string())
    sweep = threshold_sweep(y_true, py, [0.1, 0.3, 0.5, 0.7, 0.9])
    print()
    print(sweep.round(3).to_string(index=False))
    print("→ Raising the threshold buys precision with recall.")
    return sweep


def visualize_thresholds():
    """Score distributions per class and the precision/recall curves."""
    X, y = make_binary_outcome(n_samples=600)
    X_tr, X_te, y_tr, y_te = train_test_split(X, y)
    py = LogisticRegression(lr=0.5, n_iters=2000).fit(X_tr, y_tr).predict_proba(X_te)
    sweep = threshold_sweep(y_te, py, np.linspace(0.02, 0.98, 49))

    fig, axes = plt.subplots(1, 2, figsize=(12, 4.5))

    ax = axes[0]
    ax.hist(py[y_te == 0], bins=20, alpha=0.6, density=True, label='actual 0')
    ax.hist(py[y_te == 1], bins=20, alpha=0.6, density=True, label='actual 1')
    ax.set_xlabel('predicted probability')
    ax.set_title('Score distribution by class')
    ax.legend()

    ax = axes[1]
    ax.plot(sweep['threshold'], sweep['precision'], label='precision')
    ax.plot(sweep['threshold'], sweep['recall'], label='recall')
    ax.plot(sweep['threshold'], sweep['accuracy'], '--', label='accuracy')
    ax.set_xlabel('threshold')
    ax.set_title('Moving the threshold')
    ax.legend()

    plt.tight_layout()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("LOGISTIC REGRESSION — Paradigm: LOG-ODDS ARE LINEAR")
    print("="*60)

    demo_odds()
    y_te, py = demo_fit_and_deviance()
    demo_thresholds(y_te, py)

    config.save_figure(visualize_thresholds(), 'logistic_thresholds')
