"""
ARIMA — Paradigm: AUTOREGRESSIVE INTEGRATED MOVING AVERAGE

===============================================================
WHAT IT IS (THE CORE IDEA)
===============================================================

ARIMA combines THREE simple ideas:

    AR (AutoRegressive): Predict from your own past
        y_t = c + φ₁y_{t-1} + ... + φₚy_{t-p} + ε_t

    I (Integrated): Difference to remove trend
        y'_t = y_t - y_{t-1}  (non-stationary → stationary)

    MA (Moving Average): Learn from your past mistakes
        y_t = c + ε_t + θ₁ε_{t-1} + ... + θqε_{t-q}

ARIMA(p, d, q):
    p = AR order (how many past values to use)
    d = differencing order (how many times to difference)
    q = MA order (how many past errors to use)

===============================================================
IDENTIFICATION: ACF AND PACF
===============================================================

    ACF(k)  = Corr(y_t, y_{t-k})
    PACF(k) = Corr(y_t, y_{t-k} | y_{t-1}, ..., y_{t-k+1})

    process    ACF               PACF
    -------    ---------------   ---------------
    AR(p)      decays            cuts off after p
    MA(q)      cuts off after q  decays
    ARMA       decays            decays

Under white noise both are ≈ N(0, 1/n), so values outside
±1.96/√n are "significant".

===============================================================
FITTING: CONDITIONAL LEAST SQUARES
===============================================================

Treat the first max(p, q) errors as zero, run the recursion

    ε_t = y'_t - c - Σ φ_i y'_{t-i} - Σ θ_j ε_{t-j}

and choose (c, φ, θ) to minimize Σ ε_t². Pure AR models reduce to
ordinary least squares on lagged values.

===============================================================
CHECKING THE FIT
===============================================================

If the model captured the structure, the residuals are white noise.
The LJUNG-BOX test checks the first m residual autocorrelations at
once:

    Q = n(n+2) Σ_{k=1}^{m} r_k² / (n - k)   ~   χ²(m - p - q)

Small p-value → structure is left in the residuals.

Compare candidate orders with AIC = n log(σ²) + 2k.

===============================================================
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from scipy.optimize import minimize
from scipy.stats import norm, chi2

from statnotes import config


# ============================================================
# AUTOCORRELATION FUNCTIONS
# ============================================================

def acf(y, max_lag=None):
    """
    Sample autocorrelation function.

    ACF(k) = Cov(y_t, y_{t-k}) / Var(y)
    """
    y = np.asarray(y, dtype=float)
    n = len(y)
    if max_lag is None:
        max_lag = min(n // 4, 40)
    if not 0 < max_lag < n:
        raise ValueError(f"max_lag must be between 1 and {n - 1}, got {max_lag}")

    y_centered = y - np.mean(y)
    var_y = np.var(y)

    acf_values = np.zeros(max_lag + 1)
    acf_values[0] = 1.0

    for k in range(1, max_lag + 1):
        acf_values[k] = np.sum(y_centered[k:] * y_centered[:-k]) / (n * var_y)

    return acf_values


def pacf(y, max_lag=None):
    """
    Partial autocorrelation function by Durbin-Levinson recursion.

    This gives the DIRECT correlation at lag k, with the intermediate
    lags removed.
    """
    y = np.asarray(y, dtype=float)
    r = acf(y, max_lag)
    max_lag = len(r) - 1

    pacf_values = np.zeros(max_lag + 1)
    pacf_values[0] = 1.0
    pacf_values[1] = r[1]

    phi = np.zeros((max_lag + 1, max_lag + 1))
    phi[1, 1] = r[1]

    for k in range(2, max_lag + 1):
        numerator = r[k] - np.sum(phi[k-1, 1:k] * r[1:k][::-1])
        denominator = 1 - np.sum(phi[k-1, 1:k] * r[1:k])

        if abs(denominator) < 1e-10:
            pacf_values[k] = 0
        else:
            phi[k, k] = numerator / denominator
            pacf_values[k] = phi[k, k]

        for j in range(1, k):
            phi[k, j] = phi[k-1, j] - phi[k, k] * phi[k-1, k-j]

    return pacf_values


def significance_bands(n, alpha=0.05):
    """Half-width of the white-noise band for ACF/PACF: z_{1-α/2} / √n."""
    z = norm.ppf(1 - alpha / 2)
    return z / np.sqrt(n)


# ============================================================
# DIFFERENCING
# ============================================================

def difference(y, d=1):
    """Apply first differencing d times; the result is d values shorter."""
    if d < 0:
        raise ValueError(f"Differencing order must be non-negative, got {d}")
    y = np.asarray(y, dtype=float)
    if d >= len(y):
        raise ValueError(f"Cannot difference {len(y)} values {d} times")
    return np.diff(y, n=d) if d > 0 else y.copy()


def integrate(y_diff, y_orig, d):
    """
    Undo d differences for values that continue y_orig.

    Each level is rebuilt from the last value of y_orig differenced
    one time fewer.
    """
    result = np.asarray(y_diff, dtype=float)
    for level in range(d - 1, -1, -1):
        last = difference(y_orig, level)[-1]
        result = last + np.cumsum(result)
    return result


# ============================================================
# MODELS
# ============================================================

class AR:
    """
    AutoRegressive model of order p.

    y_t = c + φ₁y_{t-1} + ... + φₚy_{t-p} + ε_t

    Fitted using ordinary least squares.
    """

    def __init__(self, p=1):
        """
        Parameters:
        -----------
        p : int
            AR order (number of lags).
        """
        self.p = p
        self.phi = None
        self.const = None
        self.sigma = None
        self.fitted_values = None
        self.residuals = None
        self.aic_ = None

    def fit(self, y):
        """Fit AR(p) model using OLS."""
        y = np.asarray(y, dtype=float)
        n = len(y)
        p = self.p

        if n <= 2 * p + 1:
            raise ValueError(f"Need more than {2*p + 1} observations for AR({p})")

        # X[t] = [1, y_{t-1}, y_{t-2}, ..., y_{t-p}]
        X = np.column_stack([
            np.ones(n - p),
            *[y[p-i-1:n-i-1] for i in range(p)]
        ])
        y_target = y[p:]

        beta = np.linalg.lstsq(X, y_target, rcond=None)[0]

        self.const = beta[0]
        self.phi = beta[1:]

        self.fitted_values = X @ beta
        self.residuals = y_target - self.fitted_values
        self.sigma = np.std(self.residuals)
        self.aic_ = len(y_target) * np.log(self.sigma**2) + 2 * (p + 1)

        self._y = y
        return self

    def forecast(self, h=1, return_conf_int=False, alpha=0.05):
        """
        Forecast h steps ahead.

        Returns point forecasts and optionally confidence intervals.
        """
        y = self._y.copy()
        forecasts = []

        for _ in range(h):
            y_next = self.const
            if self.p > 0:
                y_recent = y[-self.p:][::-1]  # [y_t, y_{t-1}, ..., y_{t-p+1}]
                y_next += np.dot(self.phi, y_recent)
            forecasts.append(y_next)
            y = np.append(y, y_next)

        forecasts = np.array(forecasts)

        if return_conf_int:
            se = self.sigma * np.sqrt(np.cumsum(psi_weights(self.phi, [], h) ** 2))
            z = norm.ppf(1 - alpha / 2)
            return forecasts, forecasts - z * se, forecasts + z * se

        return forecasts

    def get_roots(self):
        """
        Roots of the characteristic polynomial.

        Stationary when every root lies inside the unit circle.
        """
        coeffs = np.concatenate([[1], -self.phi])
        return np.roots(coeffs)


def psi_weights(phi, theta, h, d=0):
    """
    First h coefficients of the MA(∞) form of an ARIMA model.

    The forecast error variance at horizon h is σ² Σ_{j<h} ψ_j².
    Differencing is folded in by multiplying the AR polynomial by (1-B)^d.
    """
    ar_poly = np.concatenate([[1.0], -np.asarray(phi, dtype=float)])
    for _ in range(d):
        ar_poly = np.convolve(ar_poly, [1.0, -1.0])
    phi_full = -ar_poly[1:]
    theta = np.asarray(theta, dtype=float)

    psi = np.zeros(h)
    psi[0] = 1.0
    for j in range(1, h):
        value = theta[j-1] if j <= len(theta) else 0.0
        for i in range(1, min(j, len(phi_full)) + 1):
            value += phi_full[i-1] * psi[j-i]
        psi[j] = value
    return psi


class ARIMA:
    """
    ARIMA(p, d, q) fitted by conditional least squares.

    Differences the series d times, fits an ARMA(p, q) with constant to
    the result, and integrates forecasts back to the original scale.
    """

    def __init__(self, p=1, d=1, q=0):
        """
        Parameters:
        -----------
        p : int
            AR order.
        d : int
            Differencing order.
        q : int
            MA order.
        """
        if min(p, d, q) < 0:
            raise ValueError(f"Orders must be non-negative, got ({p}, {d}, {q})")
        self.p = p
        self.d = d
        self.q = q

        self.phi = None
        self.theta = None
        self.const = None
        self.sigma = None
        self.aic_ = None

        self.fitted_values = None
        self.residuals = None

    def _errors(self, params, y_diff):
        p, q = self.p, self.q
        const, phi, theta = params[0], params[1:1+p], params[1+p:]
        n = len(y_diff)
        start = max(p, q)
        eps = np.zeros(n)
        for t in range(start, n):
            ar_part = const + np.dot(phi, y_diff[t-p:t][::-1]) if p > 0 else const
            ma_part = np.dot(theta, eps[t-q:t][::-1]) if q > 0 else 0.0
            eps[t] = y_diff[t] - ar_part - ma_part
        return eps

    def fit(self, y):
        """Fit ARIMA model."""
        y = np.asarray(y, dtype=float)
        y_diff = difference(y, self.d)
        n = len(y_diff)
        p, q = self.p, self.q
        start = max(p, q)

        if n - start <= p + q + 1:
            raise ValueError(f"Too few observations ({len(y)}) for "
                             f"ARIMA({p},{self.d},{q})")

        # start from the OLS AR fit, MA terms at zero
        if p > 0:
            ar = AR(p).fit(y_diff)
            init = np.concatenate([[ar.const], ar.phi, np.zeros(q)])
        else:
            init = np.concatenate([[np.mean(y_diff)], np.zeros(q)])

        if q > 0:
            bounds = [(None, None)] * (1 + p) + [(-0.99, 0.99)] * q
            result = minimize(lambda b: np.sum(self._errors(b, y_diff)[start:] ** 2),
                              init, method='L-BFGS-B', bounds=bounds)
            params = result.x
        else:
            params = init

        self.const = params[0]
        self.phi = params[1:1+p]
        self.theta = params[1+p:]

        eps = self._errors(params, y_diff)
        self._eps = eps
        self._y_orig = y
        self._y_diff = y_diff

        self.residuals = eps[start:]
        n_eff = len(self.residuals)
        self.sigma = np.sqrt(np.sum(self.residuals ** 2) / n_eff)
        self.aic_ = n_eff * np.log(self.sigma**2) + 2 * (p + q + 1)

        # one-step-ahead error is the same on both scales
        self.fitted_values = np.full(len(y), np.nan)
        self.fitted_values[self.d + start:] = y[self.d + start:] - self.residuals

        return self

    def forecast(self, h=1, return_conf_int=False, alpha=0.05):
        """Forecast h steps ahead, future errors set to zero."""
        y_diff = self._y_diff.copy()
        eps = self._eps.copy()
        p, q = self.p, self.q

        forecasts_diff = []
        for _ in range(h):
            ar_part = self.const + (np.dot(self.phi, y_diff[-p:][::-1]) if p > 0 else 0.0)
            ma_part = np.dot(self.theta, eps[-q:][::-1]) if q > 0 else 0.0
            forecast_diff = ar_part + ma_part
            forecasts_diff.append(forecast_diff)

            y_diff = np.append(y_diff, forecast_diff)
            eps = np.append(eps, 0.0)

        forecasts = integrate(np.array(forecasts_diff), self._y_orig, self.d)

        if return_conf_int:
            psi = psi_weights(self.phi, self.theta, h, self.d)
            se = self.sigma * np.sqrt(np.cumsum(psi ** 2))
            z = norm.ppf(1 - alpha / 2)
            return forecasts, forecasts - z * se, forecasts + z * se

        return forecasts


# ============================================================
# DIAGNOSTICS AND ORDER SELECTION
# ============================================================

def ljung_box(residuals, lags=10, fitted_params=0):
    """
    Ljung-Box portmanteau test on residual autocorrelations.

    Returns (Q, p_value); the χ² reference has lags - fitted_params df.
    """
    residuals = np.asarray(residuals, dtype=float)
    n = len(residuals)
    df = lags - fitted_params
    if df <= 0:
        raise ValueError(f"lags ({lags}) must exceed fitted_params ({fitted_params})")

    r = acf(residuals, lags)[1:]
    k = np.arange(1, lags + 1)
    q_stat = n * (n + 2) * np.sum(r**2 / (n - k))
    return q_stat, chi2.sf(q_stat, df)


def select_order(y, p_values=(0, 1, 2), d=1, q_values=(0, 1, 2)):
    """Fit ARIMA(p, d, q) over a grid and rank by AIC."""
    rows = []
    for p in p_values:
        for q in q_values:
            model = ARIMA(p, d, q).fit(y)
            rows.append({'p': p, 'd': d, 'q': q,
                         'aic': model.aic_, 'sigma': model.sigma})
    return pd.DataFrame(rows).sort_values('aic').reset_index(drop=True)


# ============================================================
# SYNTHETIC DATA GENERATORS
# ============================================================

def generate_arma_process(n, phi=(), theta=(), const=0, sigma=1.0, seed=42):
    """
    ARMA(p, q) sample path with a burn-in of 100 steps.

    y_t = c + φ₁y_{t-1} + ... + ε_t + θ₁ε_{t-1} + ...
    """
    np.random.seed(seed)
    phi = np.asarray(phi, dtype=float)
    theta = np.asarray(theta, dtype=float)
    p, q = len(phi), len(theta)
    burn = 100

    eps = np.random.randn(n + burn) * sigma
    y = np.zeros(n + burn)
    for t in range(max(p, q), n + burn):
        ar_part = np.dot(phi, y[t-p:t][::-1]) if p > 0 else 0.0
        ma_part = np.dot(theta, eps[t-q:t][::-1]) if q > 0 else 0.0
        y[t] = const + ar_part + eps[t] + ma_part

    return y[burn:]


def generate_arima_process(n, phi=(), theta=(), d=1, const=0, sigma=1.0, seed=42):
    """ARMA path integrated d times."""
    y = generate_arma_process(n, phi, theta, const, sigma, seed)
    for _ in range(d):
        y = np.cumsum(y)
    return y


# ============================================================
# DEMONSTRATIONS
# ============================================================

def demo_identification():
    """ACF/PACF signatures of AR and MA processes."""
    print("\n" + "="*60)
    print("IDENTIFICATION FROM ACF / PACF")
    print("="*60)

    n = 500
    band = significance_bands(n)
    print(f"white-noise band: ±{band:.3f}")
    for name, y in [('AR(2) φ=[0.6, 0.2]', generate_arma_process(n, phi=[0.6, 0.2])),
                    ('MA(1) θ=0.7', generate_arma_process(n, theta=[0.7]))]:
        print(f"\n{name}")
        print("-" * 40)
        a, pa = acf(y, 6), pacf(y, 6)
        for k in range(1, 7):
            flag_a = '*' if abs(a[k]) > band else ' '
            flag_p = '*' if abs(pa[k]) > band else ' '
            print(f"lag {k}:  ACF {a[k]:+.3f}{flag_a}   PACF {pa[k]:+.3f}{flag_p}")
    print("\n→ AR: PACF cuts off.  MA: ACF cuts off.")


def ablation_ar_order():
    """Effect of AR order on fit and forecast."""
    print("\n" + "="*60)
    print("ABLATION: Effect of AR Order on Forecasting")
    print("="*60)

    true_phi = [0.6, 0.2]
    y = generate_arma_process(200, phi=true_phi, seed=config.RANDOM_STATE)
    y_train, y_test = y[:150], y[150:]

    print(f"\nTrue process: AR(2) with φ = {true_phi}")
    print("-" * 40)

    for p in [1, 2, 3, 4, 5]:
        model = AR(p=p).fit(y_train)
        forecasts = model.forecast(len(y_test))
        mse = np.mean((y_test - forecasts)**2)
        print(f"AR({p}): MSE = {mse:.3f}, σ = {model.sigma:.3f}, AIC = {model.aic_:.1f}")

    print("\n→ Higher orders barely lower σ; AIC charges for every extra lag.")


def ablation_differencing_order():
    """Effect of differencing order on a trending series."""
    print("\n" + "="*60)
    print("ABLATION: Effect of Differencing Order")
    print("="*60)

    np.random.seed(config.RANDOM_STATE)
    t = np.arange(200)
    y = 0.1 * t + np.cumsum(np.random.randn(200)) * 0.5 + np.random.randn(200)
    y_train, y_test = y[:150], y[150:]

    for d in [0, 1, 2]:
        model = ARIMA(p=1, d=d, q=0).fit(y_train)
        forecasts = model.forecast(len(y_test))
        mse = np.mean((y_test - forecasts)**2)
        print(f"ARIMA(1,{d},0): MSE = {mse:.3f}")

    print("\n→ d=0 cannot follow the trend, d=2 over-differences.")


def demo_diagnostics():
    """Order selection by AIC, then Ljung-Box on the winner."""
    print("\n" + "="*60)
    print("ORDER SELECTION AND RESIDUAL DIAGNOSTICS")
    print("="*60)

    y = generate_arima_process(300, phi=[0.5], theta=[0.4], d=1, seed=config.RANDOM_STATE)
    table = select_order(y, p_values=[0, 1, 2], d=1, q_values=[0, 1, 2])
    print(table.round(3).to_string(index=False))

    best = table.iloc[0]
    p, q = int(best['p']), int(best['q'])
    model = ARIMA(p, 1, q).fit(y)
    q_stat, p_value = ljung_box(model.residuals, lags=10, fitted_params=p + q)
    print(f"\nARIMA({p},1,{q}): φ={np.round(model.phi, 3)}, θ={np.round(model.theta, 3)}")
    print(f"Ljung-Box Q(10) = {q_stat:.2f}, p = {p_value:.3f}")

    underfit = ARIMA(0, 1, 0).fit(y)
    q_stat, p_value = ljung_box(underfit.residuals, lags=10)
    print(f"ARIMA(0,1,0): Ljung-Box Q(10) = {q_stat:.2f}, p = {p_value:.4f}")
    print("→ The random walk leaves autocorrelation behind; the chosen model does not.")
    return table


def visualize_acf_pacf():
    """Series, ACF and PACF for AR(1), AR(2) and MA(1)."""
    n = 400
    band = significance_bands(n)
    max_lag = 20
    processes = [
        ('AR(1)', generate_arma_process(n, phi=[0.8])),
        ('AR(2)', generate_arma_process(n, phi=[0.5, 0.3])),
        ('MA(1)', generate_arma_process(n, theta=[0.7])),
    ]

    fig, axes = plt.subplots(3, 3, figsize=(15, 10))
    lags = np.arange(max_lag + 1)
    for row, (name, y) in enumerate(processes):
        axes[row, 0].plot(y[:150], 'b-', linewidth=0.8)
        axes[row, 0].set_title(name, fontweight='bold')
        for col, values, title in [(1, acf(y, max_lag), 'ACF'), (2, pacf(y, max_lag), 'PACF')]:
            ax = axes[row, col]
            ax.bar(lags, values, alpha=0.7, width=0.8)
            ax.axhline(y=band, color='red', linestyle='--', linewidth=1)
            ax.axhline(y=-band, color='red', linestyle='--', linewidth=1)
            ax.axhline(y=0, color='black', linewidth=0.5)
            ax.set_title(f'{name} {title}')

    plt.tight_layout()
    return fig


def visualize_forecast():
    """ARIMA forecast with widening prediction intervals."""
    y = generate_arima_process(200, phi=[0.5], theta=[0.4], d=1, seed=config.RANDOM_STATE)
    y_train, y_test = y[:170], y[170:]
    model = ARIMA(1, 1, 1).fit(y_train)
    forecasts, lower, upper = model.forecast(len(y_test), return_conf_int=True)

    t_test = np.arange(170, 200)
    fig, ax = plt.subplots(1, 1, figsize=(12, 5))
    ax.plot(np.arange(170), y_train, 'k-', linewidth=1, label='train')
    ax.plot(t_test, y_test, 'k--', linewidth=1, label='actual')
    ax.plot(t_test, forecasts, 'r-', linewidth=2, label='forecast')
    ax.fill_between(t_test, lower, upper, color='red', alpha=0.2, label='95% interval')
    ax.set_title('ARIMA(1,1,1) forecast')
    ax.legend()
    return fig


if __name__ == '__main__':
    print("="*60)
    print("ARIMA — Paradigm: AUTOREGRESSIVE INTEGRATED MOVING AVERAGE")
    print("="*60)

    demo_identification()
    ablation_ar_order()
    ablation_differencing_order()
    demo_diagnostics()

    config.save_figure(visualize_acf_pacf(), 'arima_acf_pacf')
    config.save_figure(visualize_forecast(), 'arima_forecast')
