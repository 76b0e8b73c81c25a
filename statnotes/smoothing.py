"""
TIME-SERIES SMOOTHING — Paradigm: WEIGHTED MEMORY OF THE PAST

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

A noisy series hides a slowly moving signal. Smoothing recovers it by
averaging nearby observations.

MOVING AVERAGE: equal weights over a window centered on t.
    Good for DESCRIBING the trend after the fact; useless at the ends.

EXPONENTIAL SMOOTHING: weights that decay geometrically into the past.
    level_t = α y_t + (1 - α) level_{t-1}

    weight on y_{t-k} = α (1 - α)^k

    α near 1: short memory, follows every wiggle.
    α near 0: long memory, very smooth, slow to react.

===============================================================
THE FAMILY
===============================================================

SES           level only                  flat forecast
Holt          level + trend               straight-line forecast
Holt-Winters  level + trend + season      repeating seasonal forecast

Each adds one smoothing parameter (α, β, γ) and one recursion.

===============================================================
CLASSICAL DECOMPOSITION
===============================================================

y_t = Trend_t + Seasonal_t + Remainder_t

    Trend:     centered moving average over one full period
    Seasonal:  average detrended value at each position in the cycle
    Remainder: whatever is left

===============================================================
"""

import numpy as np
import matplotlib.pyplot as plt
from scipy.optimize import minimize_scalar

from statnotes import config
from statnotes.datasets import make_seasonal_series


# ============================================================
# MOVING AVERAGE AND DECOMPOSITION
# ============================================================

def moving_average(y, window):
    """
    Centered moving average; NaN where the window does not fit.

    Even windows use the 2×m average (half weight on the two end
    points) so the result stays centered on an observation.
    """
    y = np.asarray(y, dtype=float)
    if window < 1 or window > len(y):
        raise ValueError(f"window must be between 1 and {len(y)}, got {window}")

    if window % 2 == 1:
        weights = np.full(window, 1.0 / window)
    else:
        weights = np.full(window + 1, 1.0 / window)
        weights[0] = weights[-1] = 0.5 / window

    half = len(weights) // 2
    out = np.full(len(y), np.nan)
    if len(weights) <= len(y):
        out[half:len(y) - half] = np.convolve(y, weights, mode='valid')
    return out


def decompose_additive(y, period):
    """
    Classical additive decomposition.

    Returns (trend, seasonal, remainder). Trend and remainder are NaN
    at the ends where the moving average is undefined. The seasonal
    component sums to zero over one period.
    """
    y = np.asarray(y, dtype=float)
    n = len(y)
    if n < 2 * period:
        raise ValueError(f"Need at least 2 full periods ({2*period} observations)")

    trend = moving_average(y, period)
    detrended = y - trend

    figure = np.array([np.nanmean(detrended[i::period]) for i in range(period)])
    figure -= figure.mean()
    seasonal = np.tile(figure, n // period + 1)[:n]

    remainder = y - trend - seasonal
    return trend, seasonal, remainder


# ============================================================
# EXPONENTIAL SMOOTHING
# ============================================================

class SimpleExponentialSmoothing:
    """
    Simple Exponential Smoothing (SES).

    For series with NO trend and NO seasonality.

    fitted_values[t] is the one-step forecast of y[t] made at t-1.
    """

    def __init__(self, alpha=0.3):
        if not 0 < alpha <= 1:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self.fitted_values = None
        self.level = None
        self.sse_ = None

    def fit(self, y):
        y = np.asarray(y, dtype=float)
        n = len(y)
        self.fitted_values = np.zeros(n)

        self.level = y[0]
        self.fitted_values[0] = self.level

        for t in range(1, n):
            self.level = self.alpha * y[t-1] + (1 - self.alpha) * self.level
            self.fitted_values[t] = self.level

        self.level = self.alpha * y[-1] + (1 - self.alpha) * self.level
        self.sse_ = np.sum((y[1:] - self.fitted_values[1:]) ** 2)
        return self

    def forecast(self, h=1):
        """SES forecasts are flat at the last level."""
        return np.full(h, self.level)

    def get_weights(self, n_weights=20):
        """weight(k) = α (1-α)^k on the observation k steps back."""
        k = np.arange(n_weights)
        return self.alpha * (1 - self.alpha) ** k


class HoltLinear:
    """
    Holt's Linear Method (Double Exponential Smoothing).

    For series WITH trend but NO seasonality.
    """

    def __init__(self, alpha=0.3, beta=0.1):
        self.alpha = alpha
        self.beta = beta
        self.level = None
        self.trend = None
        self.fitted_values = None
        self.sse_ = None

    def fit(self, y):
        y = np.asarray(y, dtype=float)
        n = len(y)
        if n < 2:
            raise ValueError("Holt's method needs at least 2 observations")
        self.fitted_values = np.zeros(n)

        self.level = y[0]
        self.trend = y[1] - y[0]
        self.fitted_values[0] = y[0]

        for t in range(1, n):
            self.fitted_values[t] = self.level + self.trend
            level_prev = self.level
            self.level = self.alpha * y[t] + (1 - self.alpha) * (self.level + self.trend)
            self.trend = self.beta * (self.level - level_prev) + (1 - self.beta) * self.trend

        self.sse_ = np.sum((y[1:] - self.fitted_values[1:]) ** 2)
        return self

    def forecast(self, h=1):
        return self.level + np.arange(1, h + 1) * self.trend


class HoltWinters:
    """
    Holt-Winters Method (Triple Exponential Smoothing).

    For series WITH trend AND seasonality.
    """

    def __init__(self, alpha=0.3, beta=0.1, gamma=0.1, period=12, seasonal='additive'):
        """
        Parameters:
        -----------
        alpha, beta, gamma : level, trend and seasonal smoothing
        period : season length (12 for monthly data with a yearly cycle)
        seasonal : 'additive' or 'multiplicative'
        """
        if seasonal not in ('additive', 'multiplicative'):
            raise ValueError(f"Unknown seasonal type: {seasonal}")
        self.alpha = alpha
        self.beta = beta
        self.gamma = gamma
        self.period = period
        self.seasonal = seasonal

        self.level = None
        self.trend = None
        self.seasonals = None
        self.fitted_values = None
        self.sse_ = None

    def fit(self, y):
        y = np.asarray(y, dtype=float)
        n = len(y)
        m = self.period

        if n < 2 * m:
            raise ValueError(f"Need at least 2 full periods ({2*m} observations)")

        self.fitted_values = np.full(n, np.nan)

        # initial level: first-period mean; trend: mean slope between periods 1 and 2
        self.level = np.mean(y[:m])
        self.trend = np.mean((y[m:2*m] - y[:m]) / m)
        if self.seasonal == 'additive':
            self.seasonals = y[:m] - self.level
        else:
            self.seasonals = y[:m] / self.level

        for t in range(m, n):
            s = t % m
            prev_level = self.level

            if self.seasonal == 'additive':
                self.fitted_values[t] = self.level + self.trend + self.seasonals[s]
                self.level = (self.alpha * (y[t] - self.seasonals[s]) +
                              (1 - self.alpha) * (self.level + self.trend))
                self.trend = (self.beta * (self.level - prev_level) +
                              (1 - self.beta) * self.trend)
                self.seasonals[s] = (self.gamma * (y[t] - self.level) +
                                     (1 - self.gamma) * self.seasonals[s])
            else:
                self.fitted_values[t] = (self.level + self.trend) * self.seasonals[s]
                self.level = (self.alpha * (y[t] / self.seasonals[s]) +
                              (1 - self.alpha) * (self.level + self.trend))
                self.trend = (self.beta * (self.level - prev_level) +
                              (1 - self.beta) * self.trend)
                self.seasonals[s] = (self.gamma * (y[t] / self.level) +
                                     (1 - self.gamma) * self.seasonals[s])

        self._n = n
        self.sse_ = np.nansum((y - self.fitted_values) ** 2)
        return self

    def forecast(self, h=1):
        m = self.period
        steps = np.arange(1, h + 1)
        season = self.seasonals[(self._n + steps - 1) % m]
        if self.seasonal == 'additive':
            return self.level + steps * self.trend + season
        return (self.level + steps * self.trend) * season


def fit_alpha(y):
    """SES alpha that minimizes the one-step-ahead sum of squared errors."""
    y = np.asarray(y, dtype=float)
    result = minimize_scalar(lambda a: SimpleExponentialSmoothing(a).fit(y).sse_,
                             bounds=(0.01, 0.99), method='bounded')
    return result.x


# ============================================================
# DEMONSTRATIONS
# ============================================================

def ablation_alpha():
    """Short vs long memory on a noisy level series."""
    print("\n" + "="*60)
    print("ABLATION: smoothing parameter α")
    print("="*60)

    np.random.seed(config.RANDOM_STATE)
    y = 10 + np.random.randn(150) * 2
    y[100:] += 5

    for alpha in [0.05, 0.2, 0.5, 0.9]:
        ses = SimpleExponentialSmoothing(alpha).fit(y)
        lag = np.argmax(ses.fitted_values[100:] > 14) if np.any(ses.fitted_values[100:] > 14) else None
        print(f"α={alpha:<5} one-step SSE={ses.sse_:8.1f}  "
              f"steps to react to the level shift: {lag}")
    best = fit_alpha(y)
    print(f"\nSSE-optimal α = {best:.3f}")
    print("→ Small α averages away noise but reacts slowly to real change.")


def demo_model_comparison():
    """SES vs Holt vs Holt-Winters on a seasonal trending series."""
    print("\n" + "="*60)
    print("SES vs HOLT vs HOLT-WINTERS")
    print("="*60)

    y = make_seasonal_series()
    train, test = y[:-24], y[-24:]

    models = {
        'SES': SimpleExponentialSmoothing(alpha=fit_alpha(train)),
        'Holt': HoltLinear(alpha=0.3, beta=0.1),
        'Holt-Winters': HoltWinters(alpha=0.3, beta=0.05, gamma=0.2, period=12),
    }
    for name, model in models.items():
        model.fit(train)
        forecast = model.forecast(len(test))
        err = np.sqrt(np.mean((test - forecast) ** 2))
        print(f"{name:<14} 24-month forecast RMSE = {err:7.2f}")
    print("→ Only the model that knows about seasons can forecast them.")


def visualize_decomposition():
    """Trend, seasonal and remainder of the seasonal series."""
    y = make_seasonal_series()
    trend, seasonal, remainder = decompose_additive(y, 12)

    fig, axes = plt.subplots(4, 1, figsize=(11, 9), sharex=True)
    for ax, series, name in zip(axes, [y, trend, seasonal, remainder],
                                ['observed', 'trend', 'seasonal', 'remainder']):
        ax.plot(series, linewidth=1)
        ax.set_ylabel(name)
    axes[0].set_title('Classical additive decomposition (period 12)')
    axes[-1].set_xlabel('month')
    plt.tight_layout()
    return fig


def visualize_forecasts():
    """The three smoothers forecasting the last two years."""
    y = make_seasonal_series()
    train, test = y[:-24], y[-24:]
    t_train = np.arange(len(train))
    t_test = np.arange(len(train), len(y))

    fig, ax = plt.subplots(1, 1, figsize=(12, 5))
    ax.plot(t_train, train, 'k-', linewidth=1, label='train')
    ax.plot(t_test, test, 'k--', linewidth=1, label='actual')
    for model, name in [(SimpleExponentialSmoothing(fit_alpha(train)), 'SES'),
                        (HoltLinear(0.3, 0.1), 'Holt'),
                        (HoltWinters(0.3, 0.05, 0.2, period=12), 'Holt-Winters')]:
        ax.plot(t_test, model.fit(train).forecast(len(test)), label=name)
    ax.set_title('Exponential smoothing forecasts')
    ax.legend()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("TIME-SERIES SMOOTHING — WEIGHTED MEMORY OF THE PAST")
    print("="*60)

    ablation_alpha()
    demo_model_comparison()

    config.save_figure(visualize_decomposition(), 'smoothing_decomposition')
    config.save_figure(visualize_forecasts(), 'smoothing_forecasts')
